"""Root test fixtures shared across all test types.

This conftest contains fixtures that can be used by both unit and integration tests.
Database-specific fixtures are in tests/integration/conftest.py.
"""

import os

# Set APP_ENV to testing before any app imports to disable route rate limits
os.environ.setdefault("APP_ENV", "testing")
# In-memory SQLite; integration fixtures swap in a shared StaticPool engine
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

# ruff: noqa: E402 - Imports must be after env var setup
from collections.abc import AsyncGenerator

import pytest
from fakeredis import aioredis as fakeredis_aio
from redis.asyncio import Redis

from src.feedback.core import redis as redis_core
from src.feedback.core.config import Settings, get_settings
from src.feedback.core.storage import MemoryBlobStore
from tests.helpers import TEST_API_KEY, FrozenClock

# Clear settings cache to ensure test environment variables are picked up
get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    """Settings for an isolated app: one API key, global rate limit on."""
    return Settings(
        app_env="testing",
        database_url="sqlite+aiosqlite:///:memory:",
        api_keys=[TEST_API_KEY],
        rate_limit_enabled=True,
        rate_limit_requests=100,
        rate_limit_window_seconds=60,
    )


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()


# --- Redis Test Fixtures (shared) ---


@pytest.fixture
async def fake_redis() -> AsyncGenerator[Redis]:
    """Provides a fakeredis client for testing.

    Returns an in-memory Redis implementation that behaves like
    a real Redis server but doesn't require external dependencies.
    """
    client = fakeredis_aio.FakeRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
async def mock_redis(fake_redis: Redis, monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[Redis]:
    """Patches get_redis() to return the fakeredis client."""
    redis_core.reset_redis_state()

    async def _get_fake_redis() -> Redis:
        return fake_redis

    monkeypatch.setattr("src.feedback.core.redis.get_redis", _get_fake_redis)
    yield fake_redis
    redis_core.reset_redis_state()
