"""Service factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.feedback.api.dependencies.app_state import AppSettings, BlobStoreDep
from src.feedback.api.dependencies.db import DBSession
from src.feedback.repositories import CommentRepository, ProjectRepository
from src.feedback.services import CommentService, FeedbackService, ProjectService


def get_comment_service(session: DBSession, blob_store: BlobStoreDep) -> CommentService:
    """Get comment service bound to the request session."""
    return CommentService(CommentRepository(session), blob_store, session)


def get_project_service(
    session: DBSession,
    comment_service: Annotated[CommentService, Depends(get_comment_service)],
    settings: AppSettings,
) -> ProjectService:
    """Get project service sharing the comment service's session."""
    return ProjectService(ProjectRepository(session), comment_service, session, settings)


def get_feedback_service(
    project_service: Annotated[ProjectService, Depends(get_project_service)],
    comment_service: Annotated[CommentService, Depends(get_comment_service)],
    settings: AppSettings,
) -> FeedbackService:
    return FeedbackService(project_service, comment_service, settings)


FeedbackServiceDep = Annotated[FeedbackService, Depends(get_feedback_service)]
