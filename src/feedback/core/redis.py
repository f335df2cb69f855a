"""Optional Redis client shared by the rate limiter and health checks.

Redis is never required. While it is unconfigured or unreachable,
:func:`get_redis` returns None and callers keep their state in process.
A failed connection is retried at most once per ``RETRY_AFTER_SECONDS``.
"""

import time
from dataclasses import dataclass

from redis.asyncio import ConnectionPool, Redis

from src.feedback.core.config import get_settings
from src.feedback.core.logging import get_logger

logger = get_logger(__name__)

RETRY_AFTER_SECONDS = 30.0
_monotonic = time.monotonic


@dataclass
class _RedisState:
    client: Redis | None = None
    pool: ConnectionPool | None = None
    failed_at: float | None = None


_state = _RedisState()


async def _connect(url: str, pool_size: int) -> Redis:
    pool = ConnectionPool.from_url(url, max_connections=pool_size, decode_responses=True)
    client = Redis(connection_pool=pool)
    try:
        await client.ping()  # type: ignore[misc]
    except Exception:
        await client.aclose()
        await pool.disconnect()
        raise
    _state.pool = pool
    return client


async def get_redis() -> Redis | None:
    """Return the shared client, connecting lazily. None means "use memory"."""
    if _state.client is not None:
        return _state.client

    settings = get_settings()
    if not settings.redis_url:
        return None

    if _state.failed_at is not None and _monotonic() - _state.failed_at < RETRY_AFTER_SECONDS:
        return None

    try:
        _state.client = await _connect(settings.redis_url, settings.redis_pool_size)
    except Exception as e:
        _state.failed_at = _monotonic()
        logger.warning("Redis unavailable, using in-memory fallback", error=str(e))
        return None

    _state.failed_at = None
    logger.info("Redis connected")
    return _state.client


async def close_redis() -> None:
    """Close the client and pool. Called on application shutdown."""
    if _state.client is not None:
        await _state.client.aclose()
        logger.info("Redis connection closed")
    if _state.pool is not None:
        await _state.pool.disconnect()
    reset_redis_state()


def reset_redis_state() -> None:
    """Forget the client and any failure so the next call reconnects."""
    global _state
    _state = _RedisState()
