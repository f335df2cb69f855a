"""Global fixed-window rate limiting per client IP."""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from src.feedback.core.exceptions import RateLimitError, exception_response
from src.feedback.core.logging import get_logger
from src.feedback.core.rate_limit import WindowCounter, get_client_ip

logger = get_logger(__name__)

EXEMPT_PATHS = frozenset({"/health", "/metrics"})


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Count requests per client IP in a fixed window; 429 once over ``limit``.

    The counter is injected so its lifetime (and backend) is owned by the
    application, not this module.
    """

    def __init__(
        self,
        app: ASGIApp,
        counter: WindowCounter,
        limit: int,
        window_seconds: int,
        trusted_ip_headers: list[str] | None = None,
    ):
        super().__init__(app)
        self.counter = counter
        self.limit = limit
        self.window_seconds = window_seconds
        self.trusted_ip_headers = trusted_ip_headers

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        client_ip = get_client_ip(request, self.trusted_ip_headers)
        result = await self.counter.hit(client_ip, self.limit, self.window_seconds)
        if not result.allowed:
            logger.warning(
                "Rate limit exceeded",
                client_ip=client_ip,
                path=request.url.path,
                count=result.count,
            )
            return exception_response(
                RateLimitError(retry_after=result.retry_after),
                headers={
                    "X-RateLimit-Limit": str(self.limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.limit)
        response.headers["X-RateLimit-Remaining"] = str(max(0, self.limit - result.count))
        return response
