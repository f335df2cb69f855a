"""Rate limiting with an injectable fixed-window counter.

Two layers:
1. Global middleware: a fixed window per client IP, counted by a
   ``WindowCounter`` that lives on ``app.state`` (memory or Redis).
2. Endpoint decorators: slowapi limits on expensive routes.
"""

import asyncio
import math
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

from redis.asyncio import Redis
from slowapi import Limiter
from starlette.requests import Request

from src.feedback.core.config import Settings, get_settings
from src.feedback.core.logging import get_logger

logger = get_logger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class WindowResult:
    allowed: bool
    count: int
    retry_after: int


class WindowCounter(Protocol):
    async def hit(self, key: str, limit: int, window_seconds: int) -> WindowResult: ...


class InMemoryWindowCounter:
    """Per-process fixed-window counter.

    Expired windows are purged lazily on each hit; there is no timer.
    """

    def __init__(self, clock: Clock = time.monotonic):
        self._clock = clock
        self._windows: dict[str, tuple[int, float]] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._windows)

    async def hit(self, key: str, limit: int, window_seconds: int) -> WindowResult:
        now = self._clock()
        async with self._lock:
            expired = [k for k, (_, reset_at) in self._windows.items() if reset_at <= now]
            for k in expired:
                del self._windows[k]

            count, reset_at = self._windows.get(key, (0, now + window_seconds))
            count += 1
            self._windows[key] = (count, reset_at)

        retry_after = max(1, math.ceil(reset_at - now))
        return WindowResult(allowed=count <= limit, count=count, retry_after=retry_after)


class RedisWindowCounter:
    """Distributed fixed-window counter using INCR + EXPIRE.

    Falls back to an in-memory counter whenever Redis is unavailable or a
    command fails, so rate limiting never takes the API down.
    """

    def __init__(
        self,
        redis_provider: Callable[[], Awaitable[Redis | None]],
        fallback: InMemoryWindowCounter | None = None,
        prefix: str = "ratelimit",
    ):
        self._redis_provider = redis_provider
        self._fallback = fallback if fallback is not None else InMemoryWindowCounter()
        self._prefix = prefix

    async def hit(self, key: str, limit: int, window_seconds: int) -> WindowResult:
        redis = await self._redis_provider()
        if redis is None:
            return await self._fallback.hit(key, limit, window_seconds)

        redis_key = f"{self._prefix}:{key}"
        try:
            count = int(await redis.incr(redis_key))
            ttl = int(await redis.ttl(redis_key))
            if count == 1 or ttl < 0:
                await redis.expire(redis_key, window_seconds)
                ttl = window_seconds
        except Exception as e:
            logger.warning(
                "Redis rate limit check failed, falling back to in-memory",
                error=str(e),
                key=key,
            )
            return await self._fallback.hit(key, limit, window_seconds)

        return WindowResult(allowed=count <= limit, count=count, retry_after=max(1, ttl))


def get_client_ip(request: Request, trusted_headers: Sequence[str] | None = None) -> str:
    """Resolve the client IP from trusted proxy headers.

    Only the configured headers are consulted; the socket peer address is
    ignored, so a request with none of them is keyed as ``"unknown"``.
    """
    if trusted_headers is None:
        trusted_headers = get_settings().trusted_ip_headers
    for header in trusted_headers:
        value = request.headers.get(header)
        if value:
            # X-Forwarded-For: client, proxy1, proxy2 - first entry is the client
            first = value.split(",")[0].strip()
            if first:
                return first
    return "unknown"


def get_rate_limit_key(request: Request) -> str:
    """slowapi key function: client IP only, never user-controlled identifiers."""
    return get_client_ip(request)


def create_limiter(settings: Settings | None = None) -> Limiter:
    """Create the slowapi limiter for per-route limits.

    Uses Redis if configured, otherwise per-process memory. Disabled in the
    testing environment.
    """
    settings = settings or get_settings()

    if settings.app_env == "testing":
        logger.info("Route rate limiter disabled (testing environment)")
        return Limiter(key_func=get_rate_limit_key, enabled=False)

    if settings.redis_url:
        logger.info("Route rate limiter using Redis backend")
        return Limiter(key_func=get_rate_limit_key, storage_uri=settings.redis_url)

    logger.info("Route rate limiter using in-memory backend (not distributed)")
    return Limiter(key_func=get_rate_limit_key)


def project_create_limit() -> str:
    return get_settings().project_create_rate_limit


limiter = create_limiter()
