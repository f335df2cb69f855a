"""Repository exports."""

from src.feedback.repositories.base import BaseRepository
from src.feedback.repositories.comment import CommentFilters, CommentRepository
from src.feedback.repositories.project import ProjectRepository

__all__ = [
    "BaseRepository",
    "CommentFilters",
    "CommentRepository",
    "ProjectRepository",
]
