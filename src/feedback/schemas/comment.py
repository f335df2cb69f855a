"""Comment schemas for API request/response."""

from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from pydantic import AfterValidator, BaseModel, Field

from src.feedback.core import codes
from src.feedback.core.security import (
    decode_image_data_url,
    is_http_url,
    is_valid_screen_resolution,
)
from src.feedback.models import CommentPriority, CommentStatus

MAX_TEXT_LENGTH = 2000
MAX_BULK_IDS = 100


def _validate_project_code(v: str) -> str:
    v = codes.normalize(v)
    if not codes.is_valid_format(v):
        raise ValueError("Invalid project code format")
    return v


def _validate_url(v: str) -> str:
    v = v.strip()
    if not is_http_url(v):
        raise ValueError("URL must be an absolute http(s) URL")
    return v


def _validate_text(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Comment text cannot be empty")
    if len(v) > MAX_TEXT_LENGTH:
        raise ValueError(f"Comment text must be at most {MAX_TEXT_LENGTH} characters")
    return v


def _validate_screenshot(v: str | None) -> str | None:
    if v is None:
        return None
    # Raises ValueError with a user-facing message on bad format or size
    decode_image_data_url(v)
    return v


def _validate_resolution(v: str | None) -> str | None:
    if v is not None and not is_valid_screen_resolution(v):
        raise ValueError("Screen resolution must look like 1920x1080")
    return v


ProjectCodeStr = Annotated[str, AfterValidator(_validate_project_code)]
CommentText = Annotated[str, AfterValidator(_validate_text)]
CommentSort = Literal["created_at", "priority", "status"]


class Coordinates(BaseModel):
    """Capture rectangle in page pixels."""

    x: float = Field(ge=0)
    y: float = Field(ge=0)
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class CommentMetadata(BaseModel):
    user_agent: str | None = Field(default=None, max_length=500)
    screen_resolution: Annotated[str | None, AfterValidator(_validate_resolution)] = None


class CommentCreate(BaseModel):
    """Schema for submitting a comment."""

    project_code: ProjectCodeStr
    url: Annotated[str, Field(max_length=2048), AfterValidator(_validate_url)]
    text: CommentText
    priority: CommentPriority = CommentPriority.NORMAL
    screenshot: Annotated[str | None, AfterValidator(_validate_screenshot)] = None
    coordinates: Coordinates | None = None
    metadata: CommentMetadata | None = None


class CommentUpdate(BaseModel):
    """Partial update. Only fields present in the request are applied."""

    text: CommentText | None = None
    priority: CommentPriority | None = None
    status: CommentStatus | None = None


class CommentStatusUpdate(BaseModel):
    status: CommentStatus


class BulkStatusUpdate(BaseModel):
    """Bulk status change. Ids that are not UUIDs simply match nothing."""

    ids: list[str]
    status: CommentStatus


class CommentSubmitted(BaseModel):
    id: UUID
    status: Literal["success"] = "success"


class CommentRead(BaseModel):
    id: UUID
    project_code: str
    url: str
    text: str
    priority: str
    status: str
    screenshot_url: str | None = None
    coordinates: dict[str, float] | None = None
    user_agent: str | None = None
    screen_resolution: str | None = None
    created_at: datetime


class ProjectRef(BaseModel):
    id: UUID
    name: str
    code: str


class CommentPage(BaseModel):
    comments: list[CommentRead]
    total: int
    page: int
    per_page: int
    project: ProjectRef | None = None


class BulkStatusResult(BaseModel):
    success: bool = True
    updated: int
    total: int
