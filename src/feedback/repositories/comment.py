"""Repository for Comment entity."""

from collections.abc import Collection
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import case, delete, func, update
from sqlmodel import select

from src.feedback.models import PRIORITY_RANK, Comment
from src.feedback.repositories.base import BaseRepository


@dataclass(frozen=True)
class CommentFilters:
    status: str | None = None
    priority: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    search: str | None = None


_PRIORITY_ORDER = case(PRIORITY_RANK, value=Comment.priority, else_=len(PRIORITY_RANK))


class CommentRepository(BaseRepository[Comment]):
    """Repository for Comment entity."""

    model = Comment

    async def list_by_project(
        self,
        project_code: str,
        filters: CommentFilters,
        page: int,
        per_page: int,
        sort: str = "created_at",
        order: str = "desc",
    ) -> tuple[list[Comment], int]:
        query = select(Comment).where(Comment.project_code == project_code)
        if filters.status:
            query = query.where(Comment.status == filters.status)
        if filters.priority:
            query = query.where(Comment.priority == filters.priority)
        if filters.date_from:
            query = query.where(Comment.created_at >= filters.date_from)
        if filters.date_to:
            query = query.where(Comment.created_at <= filters.date_to)
        if filters.search:
            query = query.where(
                Comment.text.contains(filters.search, autoescape=True)  # type: ignore[attr-defined]
            )

        if sort == "priority":
            primary = _PRIORITY_ORDER
        elif sort == "status":
            primary = Comment.status  # type: ignore[assignment]
        else:
            primary = Comment.created_at  # type: ignore[assignment]
        order_by = [primary.asc() if order == "asc" else primary.desc()]
        if sort != "created_at":
            # Ties within a priority or status bucket: newest first
            order_by.append(Comment.created_at.desc())  # type: ignore[attr-defined]
        return await self.paginate(query, order_by, page, per_page)

    async def update_fields(self, comment_id: UUID, fields: dict[str, Any]) -> int:
        result = await self.session.execute(
            update(Comment)
            .where(Comment.id == comment_id)  # type: ignore[arg-type]
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    async def bulk_update_status(self, ids: Collection[UUID], status: str) -> int:
        result = await self.session.execute(
            update(Comment)
            .where(Comment.id.in_(list(ids)))  # type: ignore[attr-defined]
            .values(status=status)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    async def delete_by_id(self, comment_id: UUID) -> int:
        result = await self.session.execute(
            delete(Comment)
            .where(Comment.id == comment_id)  # type: ignore[arg-type]
            .execution_options(synchronize_session=False)
        )
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    async def delete_by_project(self, project_code: str) -> int:
        result = await self.session.execute(
            delete(Comment)
            .where(Comment.project_code == project_code)  # type: ignore[arg-type]
            .execution_options(synchronize_session=False)
        )
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    async def screenshot_keys_for_project(self, project_code: str) -> list[str]:
        result = await self.session.execute(
            select(Comment.screenshot_key).where(
                Comment.project_code == project_code,
                Comment.screenshot_key.is_not(None),  # type: ignore[union-attr]
            )
        )
        return [key for key in result.scalars().all() if key]

    async def referenced_screenshot_keys(self, keys: Collection[str]) -> set[str]:
        """Return the subset of ``keys`` still referenced by a comment row."""
        if not keys:
            return set()
        result = await self.session.execute(
            select(Comment.screenshot_key).where(
                Comment.screenshot_key.in_(list(keys))  # type: ignore[union-attr]
            )
        )
        return {key for key in result.scalars().all() if key}

    async def count_for_project(self, project_code: str) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(Comment).where(Comment.project_code == project_code)
        )
        return int(result.scalar_one())

    async def _count_grouped(self, project_code: str, column: Any) -> dict[str, int]:
        result = await self.session.execute(
            select(column, func.count())
            .where(Comment.project_code == project_code)
            .group_by(column)
        )
        return {str(value): int(count) for value, count in result.all()}

    async def count_by_status(self, project_code: str) -> dict[str, int]:
        return await self._count_grouped(project_code, Comment.status)

    async def count_by_priority(self, project_code: str) -> dict[str, int]:
        return await self._count_grouped(project_code, Comment.priority)
