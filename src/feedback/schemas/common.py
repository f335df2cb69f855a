"""Response envelopes shared across endpoints."""

from pydantic import BaseModel


class SuccessResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    """Documented shape of every error body."""

    error: str
    request_id: str | None = None
    details: list[str] | None = None


ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    400: {"model": ErrorResponse, "description": "Validation failed or malformed identifier"},
    404: {"model": ErrorResponse, "description": "Not found"},
}

AUTH_RESPONSES: dict[int | str, dict[str, object]] = {
    401: {"model": ErrorResponse, "description": "Missing or invalid credentials"},
}
