"""Outbound webhook delivery."""

from typing import Any

import httpx

from src.feedback.core.logging import get_logger

logger = get_logger(__name__)


async def post_webhook(
    url: str,
    payload: dict[str, Any],
    timeout: float,
    client: httpx.AsyncClient | None = None,
) -> bool:
    """POST ``payload`` as JSON. Returns False on any transport or HTTP error."""
    try:
        if client is not None:
            response = await client.post(url, json=payload, timeout=timeout)
        else:
            async with httpx.AsyncClient(timeout=timeout) as owned:
                response = await owned.post(url, json=payload)
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning("Webhook delivery failed", url=url, error=str(e))
        return False

    logger.info("Webhook delivered", url=url, status_code=response.status_code)
    return True
