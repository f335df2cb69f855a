"""Path parameter parsing shared by the v1 routers."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Path

from src.feedback.core import codes
from src.feedback.core.exceptions import ValidationError


def parse_project_code(code: Annotated[str, Path(description="Project code")]) -> str:
    """Normalize a project code from the path; malformed codes are 400."""
    normalized = codes.normalize(code)
    if not codes.is_valid_format(normalized):
        raise ValidationError("Invalid project code format")
    return normalized


def parse_comment_id(comment_id: Annotated[str, Path(description="Comment ID")]) -> UUID:
    try:
        return UUID(comment_id)
    except ValueError as e:
        raise ValidationError("Invalid comment ID format") from e


ProjectCode = Annotated[str, Depends(parse_project_code)]
CommentId = Annotated[UUID, Depends(parse_comment_id)]
