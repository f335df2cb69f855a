"""Authentication dependencies: static API keys and owner identification."""

from typing import Annotated

from fastapi import Depends, Header

from src.feedback.api.dependencies.app_state import AppSettings
from src.feedback.core.exceptions import AuthError
from src.feedback.core.logging import get_logger
from src.feedback.core.security import (
    MIN_TOKEN_LENGTH,
    is_valid_email,
    parse_bearer,
    verify_api_key,
)

logger = get_logger(__name__)


async def require_api_key(
    settings: AppSettings,
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Validate ``Authorization: Bearer <api key>``.

    Returns the accepted key. All failures are 401 with a specific message.
    """
    if not authorization:
        raise AuthError("Authorization header required")

    token = parse_bearer(authorization)
    if token is None:
        raise AuthError("Invalid authorization format. Use Bearer token")

    if len(token) < MIN_TOKEN_LENGTH:
        raise AuthError("Invalid token format")

    if not verify_api_key(token, settings.api_keys):
        logger.warning("Rejected API key", key_prefix=token[:4])
        raise AuthError("Invalid API key")

    return token


async def require_owner_email(
    x_owner_email: Annotated[str | None, Header()] = None,
) -> str:
    """Owner identification from ``X-Owner-Email``. Syntactic check only."""
    if not x_owner_email or not is_valid_email(x_owner_email.strip()):
        raise AuthError("Valid owner email required in X-Owner-Email header")
    return x_owner_email.strip()


ApiKey = Annotated[str, Depends(require_api_key)]
OwnerEmail = Annotated[str, Depends(require_owner_email)]
