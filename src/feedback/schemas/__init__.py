from src.feedback.schemas.comment import (
    BulkStatusResult,
    BulkStatusUpdate,
    CommentCreate,
    CommentMetadata,
    CommentPage,
    CommentRead,
    CommentStatusUpdate,
    CommentSubmitted,
    CommentUpdate,
    Coordinates,
    ProjectRef,
)
from src.feedback.schemas.common import ErrorResponse, SuccessResponse
from src.feedback.schemas.pagination import PageParams, PaginatedResponse
from src.feedback.schemas.project import (
    OwnerProjectRead,
    ProjectCreate,
    ProjectCreated,
    ProjectExtend,
    ProjectExtended,
    ProjectStats,
    ProjectSummary,
    ProjectUpdate,
)

__all__ = [
    # Comment
    "BulkStatusResult",
    "BulkStatusUpdate",
    "CommentCreate",
    "CommentMetadata",
    "CommentPage",
    "CommentRead",
    "CommentStatusUpdate",
    "CommentSubmitted",
    "CommentUpdate",
    "Coordinates",
    "ProjectRef",
    # Common
    "ErrorResponse",
    "SuccessResponse",
    # Pagination
    "PageParams",
    "PaginatedResponse",
    # Project
    "OwnerProjectRead",
    "ProjectCreate",
    "ProjectCreated",
    "ProjectExtend",
    "ProjectExtended",
    "ProjectStats",
    "ProjectSummary",
    "ProjectUpdate",
]
