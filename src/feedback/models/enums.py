"""Shared enums for models."""

from enum import Enum


class ProjectStatus(str, Enum):
    """Project lifecycle status.

    ``expired`` is terminal for reads; only an explicit extension revives it.
    """

    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"


class CommentStatus(str, Enum):
    """Comment triage status. Any value may move to any other."""

    NEW = "new"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


class CommentPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


# Severity rank used when sorting by priority
PRIORITY_RANK: dict[str, int] = {
    CommentPriority.LOW.value: 0,
    CommentPriority.NORMAL.value: 1,
    CommentPriority.HIGH.value: 2,
}
