import secrets
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy import text

from src.feedback.api.middlewares import setup_middlewares
from src.feedback.api.v1.router import api_router
from src.feedback.core.config import Settings, get_settings
from src.feedback.core.db import dispose_engine, get_session
from src.feedback.core.exceptions import AuthError, setup_exception_handlers
from src.feedback.core.logging import get_logger, setup_logging
from src.feedback.core.rate_limit import (
    InMemoryWindowCounter,
    RedisWindowCounter,
    WindowCounter,
    limiter,
)
from src.feedback.core.redis import close_redis, get_redis
from src.feedback.core.storage import create_blob_store

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan - startup and shutdown."""
    settings: Settings = app.state.settings
    setup_logging(settings.debug)
    logger.info(f"Starting {settings.app_name}", env=settings.app_env)

    yield

    logger.info("Closing connections...")
    await close_redis()
    await dispose_engine()
    logger.info("Shutdown complete")


OPENAPI_TAGS = [
    {"name": "projects", "description": "Feedback projects and their lifecycle"},
    {"name": "comments", "description": "Comment submission and moderation"},
    {"name": "admin", "description": "Maintenance operations"},
]


def _create_rate_limiter(settings: Settings) -> WindowCounter:
    if settings.redis_url:
        return RedisWindowCounter(get_redis)
    return InMemoryWindowCounter()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Collect visual feedback (comments and screenshots) on web pages",
        version=settings.api_version,
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
        docs_url="/docs" if settings.enable_openapi else None,
        redoc_url="/redoc" if settings.enable_openapi else None,
        openapi_url="/openapi.json" if settings.enable_openapi else None,
    )

    # Per-app state; tests build isolated apps with their own instances
    app.state.settings = settings
    app.state.blob_store = create_blob_store(settings)
    app.state.rate_limiter = _create_rate_limiter(settings)
    app.state.limiter = limiter

    setup_exception_handlers(app)
    setup_middlewares(app, settings, app.state.rate_limiter)

    app.include_router(api_router)

    # Prometheus metrics instrumentation
    instrumentator = Instrumentator().instrument(app)

    # Protect /metrics endpoint if API key is configured
    if settings.metrics_api_key:
        api_key_header = APIKeyHeader(name="X-Metrics-Key", auto_error=False)

        async def verify_metrics_key(api_key: str | None = Depends(api_key_header)) -> None:
            if (
                api_key is None
                or settings.metrics_api_key is None
                or not secrets.compare_digest(api_key, settings.metrics_api_key)
            ):
                raise AuthError("Invalid or missing metrics API key")

        instrumentator.expose(app, endpoint="/metrics", dependencies=[Depends(verify_metrics_key)])
    else:
        instrumentator.expose(app, endpoint="/metrics")

    @app.get("/api", tags=["meta"])
    async def api_info() -> dict[str, Any]:
        return {
            "name": settings.app_name,
            "version": settings.api_version,
            "endpoints": {
                "projects": "/api/projects",
                "comments": "/api/comments",
                "health": "/health",
            },
        }

    @app.get("/health", tags=["meta"])
    async def health() -> JSONResponse:
        """Liveness plus database check. Redis is optional and only degrades."""
        health_status: dict[str, Any] = {
            "status": "healthy",
            "database": "unknown",
            "redis": "not_configured",
            "timestamp": time.time(),
            "version": settings.api_version,
        }

        try:
            async with get_session() as session:
                await session.execute(text("SELECT 1"))
            health_status["database"] = "healthy"
        except Exception as e:
            logger.warning("Health check database failure", error=str(e))
            health_status["database"] = "unhealthy"
            health_status["status"] = "unhealthy"

        if settings.redis_url:
            redis = await get_redis()
            if redis is None:
                health_status["redis"] = "unavailable"
            else:
                try:
                    await redis.ping()  # type: ignore[misc]
                    health_status["redis"] = "healthy"
                except Exception as e:
                    logger.warning("Health check redis failure", error=str(e))
                    health_status["redis"] = "unhealthy"
            # Rate limiting falls back to memory, so Redis only degrades
            if health_status["redis"] != "healthy" and health_status["status"] == "healthy":
                health_status["status"] = "degraded"

        status_code = 503 if health_status["status"] == "unhealthy" else 200
        return JSONResponse(content=health_status, status_code=status_code)

    return app


app = create_app()
