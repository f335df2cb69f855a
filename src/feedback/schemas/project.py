"""Project schemas for API request/response."""

from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from pydantic import AfterValidator, BaseModel, Field

from src.feedback.core.security import is_https_url, is_valid_email
from src.feedback.models import ProjectStatus


def _validate_name(v: str) -> str:
    v = v.strip()
    if len(v) < 2 or len(v) > 100:
        raise ValueError("Project name must be 2-100 characters")
    return v


def _validate_webhook(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip()
    if not v:
        return None
    if not is_https_url(v):
        raise ValueError("Webhook URL must be a valid https:// URL")
    return v


def _validate_email(v: str) -> str:
    v = v.strip()
    if not is_valid_email(v):
        raise ValueError("Invalid email address")
    return v


ProjectName = Annotated[str, AfterValidator(_validate_name)]
EmailAddress = Annotated[str, AfterValidator(_validate_email)]
WebhookUrl = Annotated[str | None, AfterValidator(_validate_webhook)]
ProjectSort = Literal["created_at", "name", "expires_at"]
SortOrder = Literal["asc", "desc"]


class ProjectCreate(BaseModel):
    """Schema for creating a project."""

    name: ProjectName
    owner_email: EmailAddress
    max_comments: int = Field(default=100, ge=1, le=1000)
    notify_email: bool = False
    webhook_url: WebhookUrl = None


class ProjectUpdate(BaseModel):
    """Partial update. Only fields present in the request are applied."""

    name: ProjectName | None = None
    max_comments: int | None = Field(default=None, ge=1, le=1000)
    notify_email: bool | None = None
    webhook_url: WebhookUrl = None
    status: ProjectStatus | None = None


class ProjectExtend(BaseModel):
    days: int = Field(default=30, ge=1, le=365)


class ProjectCreated(BaseModel):
    id: UUID
    code: str
    name: str
    expires_at: datetime
    max_comments: int

    model_config = {"from_attributes": True}


class ProjectSummary(BaseModel):
    """Public view of a live project. Owner details are not exposed."""

    code: str
    name: str
    status: str
    created_at: datetime
    expires_at: datetime
    max_comments: int

    model_config = {"from_attributes": True}


class OwnerProjectRead(ProjectSummary):
    """Owner view, including notification settings."""

    id: UUID
    notify_email: bool
    webhook_url: str | None


class ProjectStats(BaseModel):
    total_comments: int
    by_status: dict[str, int]
    by_priority: dict[str, int]


class ProjectExtended(BaseModel):
    success: bool = True
    expires_at: datetime
