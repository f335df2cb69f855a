"""Comment service: comment rows plus their screenshot blobs.

A comment row and its screenshot live in two stores that share no
transaction. Writes are ordered so a row never points at a missing blob:
upload first, insert second, delete the blob if the insert fails. Deletes
go the other way (row first, blob best-effort afterwards). Blobs orphaned by
a crash between the two steps are collected by
:meth:`CommentService.sweep_orphan_screenshots`.
"""

import asyncio
import time
from dataclasses import replace
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.feedback.core import codes
from src.feedback.core.exceptions import InternalError, ValidationError
from src.feedback.core.logging import get_logger
from src.feedback.core.security import decode_image_data_url, sanitize_html
from src.feedback.core.storage import Blob, BlobStore
from src.feedback.models import Comment, CommentPriority, CommentStatus
from src.feedback.models.base import utc_now
from src.feedback.repositories import CommentFilters, CommentRepository
from src.feedback.schemas import CommentCreate, PageParams
from src.feedback.schemas.comment import MAX_BULK_IDS

logger = get_logger(__name__)

SCREENSHOT_PREFIX = "screenshots/"
SCREENSHOT_CONTENT_TYPE = "image/webp"
SCREENSHOT_CACHE_CONTROL = "public, max-age=31536000"
SCREENSHOT_DISPOSITION = "inline"

UPDATABLE_FIELDS = frozenset({"text", "priority", "status"})
SORT_FIELDS = frozenset({"created_at", "priority", "status"})


def screenshot_key(comment_id: UUID, uploaded_ms: int | None = None) -> str:
    """Storage key for a comment's screenshot."""
    if uploaded_ms is None:
        uploaded_ms = int(time.time() * 1000)
    return f"{SCREENSHOT_PREFIX}{comment_id}-{uploaded_ms}.webp"


def _parse_uuid(value: str | UUID) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(value)
    except (ValueError, TypeError, AttributeError):
        return None


class CommentService:
    """Service for comment operations."""

    def __init__(
        self,
        comment_repo: CommentRepository,
        blob_store: BlobStore,
        session: AsyncSession,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.comment_repo = comment_repo
        self.blob_store = blob_store
        self.session = session
        self.clock = clock

    async def create(self, data: CommentCreate) -> Comment:
        """Store the screenshot (if any), then insert the row.

        Raises:
            ValidationError: screenshot payload cannot be decoded.
            InternalError: upload or insert failed. On insert failure the
                uploaded screenshot is removed before raising.
        """
        comment_id = uuid4()
        key: str | None = None

        if data.screenshot:
            try:
                image = decode_image_data_url(data.screenshot)
            except ValueError as e:
                raise ValidationError(details=[f"screenshot: {e}"]) from e

            key = screenshot_key(comment_id)
            try:
                await self.blob_store.put(
                    key,
                    image,
                    content_type=SCREENSHOT_CONTENT_TYPE,
                    cache_control=SCREENSHOT_CACHE_CONTROL,
                    content_disposition=SCREENSHOT_DISPOSITION,
                    metadata={
                        "comment_id": str(comment_id),
                        "uploaded_at": self.clock().isoformat(),
                    },
                )
            except Exception as e:
                logger.error("Screenshot upload failed", comment_id=str(comment_id), error=str(e))
                raise InternalError("Failed to upload screenshot") from e

        coords = data.coordinates
        meta = data.metadata
        comment = Comment(
            id=comment_id,
            project_code=data.project_code,
            url=data.url,
            text=sanitize_html(data.text),
            priority=data.priority.value,
            status=CommentStatus.NEW.value,
            screenshot_key=key,
            coordinates_x=coords.x if coords else None,
            coordinates_y=coords.y if coords else None,
            coordinates_width=coords.width if coords else None,
            coordinates_height=coords.height if coords else None,
            user_agent=meta.user_agent if meta else None,
            screen_resolution=meta.screen_resolution if meta else None,
            created_at=self.clock(),
        )
        self.comment_repo.add(comment)

        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                "Comment insert failed",
                comment_id=str(comment_id),
                project_code=data.project_code,
                error=str(e),
            )
            if key:
                await self._delete_blob_quietly(key)
            raise InternalError("Failed to create comment") from e

        logger.info(
            "Comment created",
            comment_id=str(comment_id),
            project_code=data.project_code,
            has_screenshot=key is not None,
        )
        return comment

    async def list_by_project(
        self,
        project_code: str,
        filters: CommentFilters | None = None,
        page: int | None = None,
        per_page: int | None = None,
        sort: str = "created_at",
        order: str = "desc",
    ) -> tuple[list[Comment], int, PageParams]:
        """Filtered, paginated comments for a project.

        Malformed codes and store failures yield an empty page.
        """
        params = PageParams.clamp(page, per_page)
        if not codes.is_valid_format(project_code):
            return [], 0, params

        filters = filters or CommentFilters()
        if filters.search:
            # Stored text is HTML-escaped, so match against the escaped form
            filters = replace(filters, search=sanitize_html(filters.search))
        if sort not in SORT_FIELDS:
            sort = "created_at"
        if order not in ("asc", "desc"):
            order = "desc"

        try:
            items, total = await self.comment_repo.list_by_project(
                project_code, filters, params.page, params.per_page, sort, order
            )
        except SQLAlchemyError as e:
            logger.error("Comment list failed", project_code=project_code, error=str(e))
            return [], 0, params
        return items, total, params

    async def get(self, comment_id: str | UUID) -> Comment | None:
        parsed = _parse_uuid(comment_id)
        if parsed is None:
            return None
        try:
            return await self.comment_repo.get_by_id(parsed)
        except SQLAlchemyError as e:
            logger.error("Comment lookup failed", comment_id=str(parsed), error=str(e))
            return None

    async def read_screenshot(self, comment_id: str | UUID) -> Blob | None:
        comment = await self.get(comment_id)
        if comment is None or not comment.screenshot_key:
            return None
        return await self.blob_store.get(comment.screenshot_key)

    async def update(self, comment_id: str | UUID, fields: dict[str, Any]) -> bool:
        """Apply whitelisted fields. An empty update reports failure."""
        values: dict[str, Any] = {}
        for name, value in fields.items():
            if name not in UPDATABLE_FIELDS or value is None:
                continue
            if name == "text":
                value = sanitize_html(value)
            elif hasattr(value, "value"):
                value = value.value
            values[name] = value
        if not values:
            return False

        parsed = _parse_uuid(comment_id)
        if parsed is None:
            return False
        try:
            changed = await self.comment_repo.update_fields(parsed, values)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Comment update failed", comment_id=str(parsed), error=str(e))
            return False
        return changed > 0

    async def update_status(self, comment_id: str | UUID, status: CommentStatus) -> bool:
        return await self.update(comment_id, {"status": status})

    async def delete(self, comment_id: str | UUID) -> bool:
        """Delete the row, then its screenshot on a best-effort basis."""
        comment = await self.get(comment_id)
        if comment is None:
            return False

        try:
            deleted = await self.comment_repo.delete_by_id(comment.id)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Comment delete failed", comment_id=str(comment.id), error=str(e))
            return False

        if deleted and comment.screenshot_key:
            await self._delete_blob_quietly(comment.screenshot_key)
        return deleted > 0

    async def bulk_update_status(self, ids: Iterable[str | UUID], status: CommentStatus) -> int:
        """Set ``status`` on many comments; returns the changed-row count.

        Raises:
            ValidationError: more than 100 ids were supplied.
        """
        ids = list(ids)
        if len(ids) > MAX_BULK_IDS:
            raise ValidationError(f"Cannot update more than {MAX_BULK_IDS} comments at once")
        if not ids:
            return 0

        parsed = {uid for uid in (_parse_uuid(i) for i in ids) if uid is not None}
        if not parsed:
            return 0

        try:
            changed = await self.comment_repo.bulk_update_status(parsed, status.value)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Bulk status update failed", count=len(parsed), error=str(e))
            return 0

        logger.info("Bulk status update", requested=len(ids), updated=changed, status=status.value)
        return changed

    async def count_for_project(self, project_code: str) -> int:
        try:
            return await self.comment_repo.count_for_project(project_code)
        except SQLAlchemyError as e:
            logger.error("Comment count failed", project_code=project_code, error=str(e))
            raise InternalError("Failed to count comments") from e

    async def stats_by_project(self, project_code: str) -> dict[str, int]:
        """Comment counts per status, every status present."""
        counts = {s.value: 0 for s in CommentStatus}
        try:
            counts.update(await self.comment_repo.count_by_status(project_code))
        except SQLAlchemyError as e:
            logger.error("Comment stats failed", project_code=project_code, error=str(e))
        return counts

    async def priority_stats_by_project(self, project_code: str) -> dict[str, int]:
        counts = {p.value: 0 for p in CommentPriority}
        try:
            counts.update(await self.comment_repo.count_by_priority(project_code))
        except SQLAlchemyError as e:
            logger.error("Comment priority stats failed", project_code=project_code, error=str(e))
        return counts

    async def delete_all_for_project(self, project_code: str, *, commit: bool = True) -> int:
        """Remove every screenshot (in parallel, best-effort) then every row.

        With ``commit=False`` the row delete joins the caller's transaction.
        """
        keys = await self.comment_repo.screenshot_keys_for_project(project_code)
        if keys:
            await asyncio.gather(*(self._delete_blob_quietly(key) for key in keys))

        deleted = await self.comment_repo.delete_by_project(project_code)
        if commit:
            await self.session.commit()
        logger.info(
            "Comments deleted for project",
            project_code=project_code,
            comments=deleted,
            screenshots=len(keys),
        )
        return deleted

    async def sweep_orphan_screenshots(self, grace: timedelta) -> int:
        """Delete screenshots older than ``grace`` that no comment references."""
        cutoff = self.clock() - grace
        candidates = [
            info.key
            for info in await self.blob_store.list_blobs(SCREENSHOT_PREFIX)
            if info.uploaded_at < cutoff
        ]
        if not candidates:
            return 0

        referenced = await self.comment_repo.referenced_screenshot_keys(candidates)
        orphans = [key for key in candidates if key not in referenced]
        for key in orphans:
            await self._delete_blob_quietly(key)

        if orphans:
            logger.info("Orphan screenshots removed", count=len(orphans))
        return len(orphans)

    async def _delete_blob_quietly(self, key: str) -> None:
        try:
            await self.blob_store.delete(key)
        except Exception as e:
            logger.warning("Screenshot cleanup failed", key=key, error=str(e))
