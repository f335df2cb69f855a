"""Error taxonomy and exception handlers with request_id in responses.

Every error leaves the API as ``{"error": str, "request_id": str}`` plus an
optional ``details`` list. Middlewares that reject a request before routing
build the same envelope through :func:`exception_response`.
"""

from typing import Any

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.feedback.core.config import Settings, get_settings
from src.feedback.core.logging import get_logger

logger = get_logger(__name__)


class FeedbackError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, details: list[str] | None = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(FeedbackError):
    status_code = 400
    default_message = "Validation failed"


class SuspiciousContentError(FeedbackError):
    status_code = 400
    default_message = "Suspicious content detected"


class AuthError(FeedbackError):
    status_code = 401
    default_message = "Authentication required"


class ForbiddenError(FeedbackError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(FeedbackError):
    status_code = 404
    default_message = "Not found"


class PayloadTooLargeError(FeedbackError):
    status_code = 413
    default_message = "Request too large"


class RateLimitError(FeedbackError):
    status_code = 429
    default_message = "Too many requests"

    def __init__(self, retry_after: int = 1, message: str | None = None):
        self.retry_after = retry_after
        super().__init__(message)


class InternalError(FeedbackError):
    """Store or storage failure. Details never reach production clients."""

    status_code = 500
    default_message = "Internal server error"


def error_response(
    status_code: int,
    message: str,
    details: list[str] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the shared error envelope."""
    content: dict[str, Any] = {
        "error": message,
        "request_id": correlation_id.get(),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def exception_response(
    exc: FeedbackError,
    headers: dict[str, str] | None = None,
    *,
    expose_details: bool = True,
) -> JSONResponse:
    """Render a taxonomy error as the shared envelope."""
    headers = dict(headers or {})
    if isinstance(exc, RateLimitError):
        headers.setdefault("Retry-After", str(exc.retry_after))
    details = exc.details if expose_details else None
    return error_response(exc.status_code, exc.message, details, headers or None)


def _format_validation_errors(exc: RequestValidationError) -> list[str]:
    details = []
    for err in exc.errors():
        # Drop the "body"/"query"/"path" prefix FastAPI adds to locations
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "request"
        details.append(f"{field}: {err.get('msg', 'invalid value')}")
    return details


def _app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that render the shared error envelope."""

    @app.exception_handler(FeedbackError)
    async def feedback_error_handler(request: Request, exc: FeedbackError) -> JSONResponse:
        expose_details = True
        if isinstance(exc, InternalError):
            logger.error("Internal error", path=request.url.path, error=exc.message)
            expose_details = not _app_settings(request).is_production
        return exception_response(exc, expose_details=expose_details)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return error_response(400, "Validation failed", _format_validation_errors(exc))

    @app.exception_handler(RateLimitExceeded)
    async def route_rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        logger.warning("Route rate limit exceeded", path=request.url.path, limit=str(exc.detail))
        # Fixed windows reset within one window length
        retry_after = exc.limit.limit.get_expiry()
        return error_response(
            429,
            "Too many requests",
            [f"limit: {exc.detail}"],
            headers={"Retry-After": str(retry_after)},
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return error_response(exc.status_code, str(exc.detail), headers=exc.headers)
