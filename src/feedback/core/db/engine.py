"""Database engine management."""

import ssl
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from src.feedback.core.config import Settings, get_settings

_engine: AsyncEngine | None = None


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _ssl_context(mode: str) -> ssl.SSLContext | None:
    """libpq-style sslmode to an SSLContext; "disable" means plain TCP."""
    if mode == "disable":
        return None
    context = ssl.create_default_context()
    verify = mode in ("verify-ca", "verify-full")
    context.check_hostname = mode == "verify-full"
    context.verify_mode = ssl.CERT_REQUIRED if verify else ssl.CERT_NONE
    return context


def _asyncpg_connect_args(settings: Settings) -> dict[str, Any]:
    connect_args: dict[str, Any] = {
        "statement_cache_size": settings.database_statement_cache_size,
    }
    context = _ssl_context(settings.database_ssl_mode)
    if context is not None:
        connect_args["ssl"] = context
    return connect_args


def build_engine(settings: Settings) -> AsyncEngine:
    """Async engine for ``settings.database_url``.

    SQLite (tests, local runs) gets no pool tuning and no asyncpg arguments.
    """
    if _is_sqlite(settings.database_url):
        return create_async_engine(settings.database_url)
    return create_async_engine(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_pre_ping=True,
        connect_args=_asyncpg_connect_args(settings),
    )


def get_engine() -> AsyncEngine:
    """Get or create the database engine singleton."""
    global _engine
    if _engine is None:
        _engine = build_engine(get_settings())
    return _engine


async def dispose_engine() -> None:
    """Dispose the database engine. Call during shutdown."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None
