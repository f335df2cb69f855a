"""Maintenance sweep activities.

Both activities are idempotent: a rerun finds nothing left to expire or
delete.
"""

from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession
from temporalio import activity

from src.feedback.core.config import get_settings
from src.feedback.core.db import get_session
from src.feedback.core.storage import BlobStore, create_blob_store
from src.feedback.repositories import CommentRepository, ProjectRepository
from src.feedback.services import CommentService, ProjectService

_blob_store: BlobStore | None = None


def _get_blob_store() -> BlobStore:
    global _blob_store
    if _blob_store is None:
        _blob_store = create_blob_store(get_settings())
    return _blob_store


def _comment_service(session: AsyncSession) -> CommentService:
    return CommentService(CommentRepository(session), _get_blob_store(), session)


@activity.defn
async def sweep_expired_projects() -> int:
    """Mark active projects past their expiry as expired.

    Returns:
        Number of projects expired
    """
    async with get_session() as session:
        service = ProjectService(
            ProjectRepository(session), _comment_service(session), session, get_settings()
        )
        count = await service.sweep_expired()

    activity.logger.info(f"Expired {count} projects")
    return count


@activity.defn
async def sweep_orphan_screenshots(grace_minutes: int) -> int:
    """Delete screenshots older than ``grace_minutes`` that no comment references.

    Returns:
        Number of screenshots deleted
    """
    async with get_session() as session:
        count = await _comment_service(session).sweep_orphan_screenshots(
            timedelta(minutes=grace_minutes)
        )

    activity.logger.info(f"Deleted {count} orphaned screenshots")
    return count
