"""Feedback service: the composition layer the API talks to.

Translates store-level results (None/False) into the error taxonomy and
keeps cross-entity rules here: a comment needs a live project, and a
project accepts at most ``max_comments`` comments.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Any

import httpx

from src.feedback.core.config import Settings, get_settings
from src.feedback.core.exceptions import NotFoundError, ValidationError
from src.feedback.core.logging import get_logger
from src.feedback.core.notifications import post_webhook, send_new_comment_email
from src.feedback.core.storage import Blob
from src.feedback.models import Comment, CommentStatus, Project
from src.feedback.repositories import CommentFilters
from src.feedback.schemas import (
    CommentCreate,
    CommentPage,
    CommentRead,
    CommentUpdate,
    PageParams,
    ProjectCreate,
    ProjectRef,
    ProjectStats,
    ProjectUpdate,
)
from src.feedback.services.comment_service import CommentService
from src.feedback.services.project_service import ProjectService

logger = get_logger(__name__)

PROJECT_NOT_FOUND = "Project not found"
COMMENT_NOT_FOUND = "Comment not found"


def comment_to_read(comment: Comment) -> CommentRead:
    return CommentRead(
        id=comment.id,
        project_code=comment.project_code,
        url=comment.url,
        text=comment.text,
        priority=comment.priority,
        status=comment.status,
        screenshot_url=(
            f"/api/comments/comment/{comment.id}/screenshot" if comment.screenshot_key else None
        ),
        coordinates=comment.coordinates,
        user_agent=comment.user_agent,
        screen_resolution=comment.screen_resolution,
        created_at=comment.created_at,
    )


class FeedbackService:
    """Service composing project and comment operations."""

    def __init__(
        self,
        project_service: ProjectService,
        comment_service: CommentService,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.projects = project_service
        self.comments = comment_service
        self.settings = settings or get_settings()
        self.http_client = http_client

    # --- Projects ---

    async def create_project(self, data: ProjectCreate) -> Project:
        return await self.projects.create(data)

    async def get_project(self, code: str) -> Project:
        project = await self.projects.get_by_code(code)
        if project is None:
            raise NotFoundError(PROJECT_NOT_FOUND)
        return project

    async def update_project(self, code: str, data: ProjectUpdate) -> None:
        # Only webhook_url may be cleared with null
        fields = {
            name: value
            for name, value in data.model_dump(exclude_unset=True).items()
            if value is not None or name == "webhook_url"
        }
        if not fields:
            raise ValidationError("No fields to update")
        if not await self.projects.update(code, fields):
            raise NotFoundError(PROJECT_NOT_FOUND)

    async def delete_project(self, code: str) -> None:
        if not await self.projects.delete(code):
            raise NotFoundError(PROJECT_NOT_FOUND)

    async def extend_project(self, code: str, days: int) -> datetime:
        expires_at = await self.projects.extend_expiration(code, days)
        if expires_at is None:
            raise NotFoundError(PROJECT_NOT_FOUND)
        return expires_at

    async def project_stats(self, code: str) -> ProjectStats:
        stats = await self.projects.stats(code)
        if stats is None:
            raise NotFoundError(PROJECT_NOT_FOUND)
        return stats

    async def list_owner_projects(
        self,
        owner_email: str,
        page: int | None = None,
        per_page: int | None = None,
        sort: str = "created_at",
        order: str = "desc",
    ) -> tuple[list[Project], int, PageParams]:
        return await self.projects.list_by_owner(owner_email, page, per_page, sort, order)

    # --- Comments ---

    async def submit_comment(self, data: CommentCreate) -> tuple[Comment, Project]:
        """Create a comment on a live project that still has room.

        Raises:
            NotFoundError: project missing, inactive or expired.
            ValidationError: the project's comment limit is reached.
        """
        project = await self.get_project(data.project_code)

        count = await self.comments.count_for_project(project.code)
        if count >= project.max_comments:
            raise ValidationError(
                "Project has reached its comment limit",
                details=[f"max_comments: {project.max_comments}"],
            )

        comment = await self.comments.create(data)
        return comment, project

    async def list_comments(
        self,
        code: str,
        filters: CommentFilters | None = None,
        page: int | None = None,
        per_page: int | None = None,
        sort: str = "created_at",
        order: str = "desc",
    ) -> CommentPage:
        project = await self.get_project(code)
        items, total, params = await self.comments.list_by_project(
            code, filters, page, per_page, sort, order
        )
        return CommentPage(
            comments=[comment_to_read(c) for c in items],
            total=total,
            page=params.page,
            per_page=params.per_page,
            project=ProjectRef(id=project.id, name=project.name, code=project.code),
        )

    async def get_comment(self, comment_id: str) -> Comment:
        comment = await self.comments.get(comment_id)
        if comment is None:
            raise NotFoundError(COMMENT_NOT_FOUND)
        return comment

    async def get_screenshot(self, comment_id: str) -> Blob:
        blob = await self.comments.read_screenshot(comment_id)
        if blob is None:
            raise NotFoundError("Screenshot not found")
        return blob

    async def update_comment(self, comment_id: str, data: CommentUpdate) -> None:
        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        if not fields:
            raise ValidationError("No fields to update")
        if not await self.comments.update(comment_id, fields):
            raise NotFoundError(COMMENT_NOT_FOUND)

    async def update_comment_status(self, comment_id: str, status: CommentStatus) -> None:
        if not await self.comments.update_status(comment_id, status):
            raise NotFoundError(COMMENT_NOT_FOUND)

    async def delete_comment(self, comment_id: str) -> None:
        if not await self.comments.delete(comment_id):
            raise NotFoundError(COMMENT_NOT_FOUND)

    async def bulk_update_status(self, ids: list[str], status: CommentStatus) -> int:
        return await self.comments.bulk_update_status(ids, status)

    # --- Notifications ---

    async def notify_new_comment(self, project: Project, comment: Comment) -> None:
        """Email and webhook fan-out after a comment is stored.

        Runs after the response is sent. Failures are logged, never raised.
        """
        try:
            if project.notify_email:
                await asyncio.to_thread(
                    send_new_comment_email,
                    project.owner_email,
                    project.name,
                    project.code,
                    comment.text,
                    comment.url,
                    comment.priority,
                )
            if project.webhook_url:
                await post_webhook(
                    project.webhook_url,
                    self._webhook_payload(project, comment),
                    timeout=self.settings.webhook_timeout_seconds,
                    client=self.http_client,
                )
        except Exception:
            logger.exception(
                "Comment notification failed",
                project_code=project.code,
                comment_id=str(comment.id),
            )

    @staticmethod
    def _webhook_payload(project: Project, comment: Comment) -> dict[str, Any]:
        return {
            "event": "comment.created",
            "project": {"code": project.code, "name": project.name},
            "comment": {
                "id": str(comment.id),
                "url": comment.url,
                "text": comment.text,
                "priority": comment.priority,
                "status": comment.status,
                "has_screenshot": comment.screenshot_key is not None,
                "created_at": comment.created_at.isoformat(),
            },
        }

    # --- Maintenance ---

    async def run_maintenance(self) -> dict[str, int]:
        """Expire overdue projects and drop orphaned screenshots."""
        expired = await self.projects.sweep_expired()
        orphans = await self.comments.sweep_orphan_screenshots(
            timedelta(minutes=self.settings.orphan_grace_minutes)
        )
        return {"expired_projects": expired, "orphan_screenshots": orphans}
