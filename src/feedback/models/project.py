"""Project model - a short-lived, code-addressed feedback container."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from src.feedback.models.base import utc_now
from src.feedback.models.enums import ProjectStatus


class Project(SQLModel, table=True):
    """Feedback project addressed by its public code."""

    __tablename__ = "projects"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    code: str = Field(max_length=11, unique=True, index=True)
    name: str = Field(max_length=200)
    owner_email: str = Field(max_length=254, index=True)
    created_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime = Field(index=True)
    max_comments: int = Field(default=100)
    notify_email: bool = Field(default=False)
    webhook_url: str | None = Field(default=None, max_length=2048)
    status: str = Field(default=ProjectStatus.ACTIVE.value, max_length=20, index=True)

    def is_expired_at(self, now: datetime) -> bool:
        return self.expires_at < now
