"""Last-resort handler for exceptions that escape the app."""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from src.feedback.core.exceptions import InternalError, exception_response
from src.feedback.core.logging import get_logger

logger = get_logger(__name__)


class ErrorBoundaryMiddleware(BaseHTTPMiddleware):
    """Turn any uncaught exception into a 500 JSON body.

    The exception message is included as ``details`` only outside
    production.
    """

    def __init__(self, app: ASGIApp, expose_details: bool = False):
        super().__init__(app)
        self.expose_details = expose_details

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception(
                "Unhandled exception",
                path=request.url.path,
                method=request.method,
                exc_info=exc,
            )
            return exception_response(
                InternalError(details=[str(exc) or type(exc).__name__]),
                expose_details=self.expose_details,
            )
