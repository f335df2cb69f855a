"""Content-Type and User-Agent checks."""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from src.feedback.core.exceptions import ForbiddenError, ValidationError, exception_response
from src.feedback.core.logging import get_logger

logger = get_logger(__name__)

ALLOWED_CONTENT_TYPES = ("application/json", "multipart/form-data")
# Non-browser client markers, matched case-insensitively anywhere in the agent
SUSPICIOUS_AGENTS = ("curl/", "wget/", "python-requests/", "go-http-client/", "libwww-perl/")
_BODY_METHODS = frozenset({"POST", "PUT"})
INVALID_CONTENT_TYPE = "Invalid Content-Type. Use application/json or multipart/form-data"


def _has_body(request: Request) -> bool:
    if "transfer-encoding" in request.headers:
        return True
    content_length = request.headers.get("content-length")
    if content_length is None:
        return False
    try:
        return int(content_length) > 0
    except ValueError:
        return True


def is_suspicious_agent(user_agent: str) -> bool:
    lowered = user_agent.lower()
    return any(marker in lowered for marker in SUSPICIOUS_AGENTS)


class HeaderValidationMiddleware(BaseHTTPMiddleware):
    """Reject bodies with unsupported Content-Type and abusive User-Agents.

    Known non-browser agents get 403 when ``block_suspicious_agents`` is set
    (production) and a warning log otherwise.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_user_agent_length: int = 500,
        block_suspicious_agents: bool = False,
    ):
        super().__init__(app)
        self.max_user_agent_length = max_user_agent_length
        self.block_suspicious_agents = block_suspicious_agents

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method in _BODY_METHODS and _has_body(request):
            content_type = request.headers.get("content-type", "").lower()
            if not content_type.startswith(ALLOWED_CONTENT_TYPES):
                return exception_response(ValidationError(INVALID_CONTENT_TYPE))

        user_agent = request.headers.get("user-agent", "")
        if len(user_agent) > self.max_user_agent_length:
            return exception_response(ValidationError("User-Agent header too long"))

        if user_agent and is_suspicious_agent(user_agent):
            if self.block_suspicious_agents:
                logger.warning("Blocked suspicious user agent", user_agent=user_agent[:50])
                return exception_response(ForbiddenError("Suspicious user agent detected"))
            logger.warning("Suspicious user agent", user_agent=user_agent[:50])

        return await call_next(request)
