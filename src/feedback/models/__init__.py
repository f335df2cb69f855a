"""Model exports.

Import from here: `from src.feedback.models import Project, Comment`
"""

from src.feedback.models.comment import Comment
from src.feedback.models.enums import (
    PRIORITY_RANK,
    CommentPriority,
    CommentStatus,
    ProjectStatus,
)
from src.feedback.models.project import Project

__all__ = [
    # Enums
    "PRIORITY_RANK",
    "CommentPriority",
    "CommentStatus",
    "ProjectStatus",
    # Tables
    "Comment",
    "Project",
]
