"""Application middlewares."""

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI

from src.feedback.core.config import Settings
from src.feedback.core.rate_limit import WindowCounter

from .access_log import AccessLogMiddleware
from .cors import CORSMiddleware
from .error_boundary import ErrorBoundaryMiddleware
from .header_validation import HeaderValidationMiddleware
from .injection_screen import InjectionScreenMiddleware
from .rate_limit import RateLimitMiddleware
from .request_size import RequestSizeLimitMiddleware
from .security_headers import SecurityHeadersMiddleware

__all__ = [
    "setup_middlewares",
    "AccessLogMiddleware",
    "CORSMiddleware",
    "ErrorBoundaryMiddleware",
    "HeaderValidationMiddleware",
    "InjectionScreenMiddleware",
    "RateLimitMiddleware",
    "RequestSizeLimitMiddleware",
    "SecurityHeadersMiddleware",
]


def setup_middlewares(app: FastAPI, settings: Settings, rate_limiter: WindowCounter) -> None:
    """Configure the request defense chain.

    Starlette wraps each added middleware around the previous ones, so they
    are added innermost first. Request order, outermost to innermost:
    correlation id, error boundary, access log, security headers, header
    validation, injection screen, size limit, rate limit, CORS.
    """
    app.add_middleware(CORSMiddleware)

    if settings.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            counter=rate_limiter,
            limit=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
            trusted_ip_headers=settings.trusted_ip_headers,
        )

    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_bytes)

    app.add_middleware(
        InjectionScreenMiddleware,
        max_body_bytes=settings.max_request_bytes,
        sql_exempt_fields=settings.injection_sql_exempt_fields,
    )

    app.add_middleware(
        HeaderValidationMiddleware,
        max_user_agent_length=settings.max_user_agent_length,
        block_suspicious_agents=settings.is_production,
    )

    # Stricter CSP in production when OpenAPI docs are disabled
    csp = None
    if not settings.enable_openapi and settings.csp_production:
        csp = settings.csp_production
    app.add_middleware(SecurityHeadersMiddleware, content_security_policy=csp)

    app.add_middleware(AccessLogMiddleware, trusted_ip_headers=settings.trusted_ip_headers)

    app.add_middleware(ErrorBoundaryMiddleware, expose_details=not settings.is_production)

    # Outermost: every response, including rejections, carries X-Request-ID
    app.add_middleware(CorrelationIdMiddleware)
