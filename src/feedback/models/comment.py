"""Comment model - one piece of feedback, optionally with a screenshot."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from src.feedback.models.base import utc_now
from src.feedback.models.enums import CommentPriority, CommentStatus


class Comment(SQLModel, table=True):
    """Feedback comment bound to a project by code.

    ``project_code`` is a plain indexed column, not a foreign key; the
    project delete path removes comments explicitly.
    """

    __tablename__ = "comments"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_code: str = Field(max_length=11, index=True)
    url: str = Field(max_length=2048)
    text: str
    priority: str = Field(default=CommentPriority.NORMAL.value, max_length=20)
    status: str = Field(default=CommentStatus.NEW.value, max_length=20, index=True)
    screenshot_key: str | None = Field(default=None, max_length=255)
    coordinates_x: float | None = Field(default=None)
    coordinates_y: float | None = Field(default=None)
    coordinates_width: float | None = Field(default=None)
    coordinates_height: float | None = Field(default=None)
    user_agent: str | None = Field(default=None, max_length=500)
    screen_resolution: str | None = Field(default=None, max_length=20)
    created_at: datetime = Field(default_factory=utc_now, index=True)

    @property
    def coordinates(self) -> dict[str, float] | None:
        if self.coordinates_x is None:
            return None
        return {
            "x": self.coordinates_x,
            "y": self.coordinates_y or 0.0,
            "width": self.coordinates_width or 0.0,
            "height": self.coordinates_height or 0.0,
        }
