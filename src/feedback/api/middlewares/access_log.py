"""Request logging with correlation context."""

import time

from asgi_correlation_id import correlation_id
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from src.feedback.core.logging import bind_request_context, clear_request_context, get_logger
from src.feedback.core.rate_limit import get_client_ip

logger = get_logger("feedback.access")

_IP_LOG_LENGTH = 15
_UA_LOG_LENGTH = 50


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Bind request_id to the log context and log each request's outcome."""

    def __init__(self, app: ASGIApp, trusted_ip_headers: list[str] | None = None):
        super().__init__(app)
        self.trusted_ip_headers = trusted_ip_headers

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        clear_request_context()
        bind_request_context(correlation_id.get())

        client_ip = get_client_ip(request, self.trusted_ip_headers)[:_IP_LOG_LENGTH]
        user_agent = request.headers.get("user-agent", "")[:_UA_LOG_LENGTH]
        start = time.perf_counter()

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client_ip=client_ip,
            user_agent=user_agent,
        )
        try:
            response = await call_next(request)
        except Exception:
            logger.warning(
                "request_failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.perf_counter() - start) * 1000, 1),
            )
            clear_request_context()
            raise

        logger.info(
            "request_finished",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 1),
        )
        clear_request_context()
        return response
