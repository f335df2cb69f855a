"""Repository for Project entity."""

from datetime import datetime
from typing import Any

from sqlalchemy import delete, update
from sqlmodel import select

from src.feedback.models import Project, ProjectStatus
from src.feedback.repositories.base import BaseRepository

SORT_COLUMNS = {
    "created_at": Project.created_at,
    "name": Project.name,
    "expires_at": Project.expires_at,
}


class ProjectRepository(BaseRepository[Project]):
    """Repository for Project entity."""

    model = Project

    async def get_by_code(self, code: str) -> Project | None:
        result = await self.session.execute(
            select(Project)
            .where(Project.code == code)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def code_exists(self, code: str) -> bool:
        result = await self.session.execute(select(Project.id).where(Project.code == code))
        return result.first() is not None

    async def set_status(self, code: str, status: ProjectStatus) -> int:
        result = await self.session.execute(
            update(Project)
            .where(Project.code == code)  # type: ignore[arg-type]
            .values(status=status.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    async def update_live(self, code: str, fields: dict[str, Any], now: datetime) -> int:
        """Update a project that is neither expired by status nor by time."""
        result = await self.session.execute(
            update(Project)
            .where(
                Project.code == code,  # type: ignore[arg-type]
                Project.status != ProjectStatus.EXPIRED.value,  # type: ignore[arg-type]
                Project.expires_at > now,  # type: ignore[arg-type]
            )
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    async def delete_by_code(self, code: str) -> int:
        result = await self.session.execute(
            delete(Project)
            .where(Project.code == code)  # type: ignore[arg-type]
            .execution_options(synchronize_session=False)
        )
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    async def expire_overdue(self, now: datetime) -> int:
        """Flip every active project past its expiry to expired."""
        result = await self.session.execute(
            update(Project)
            .where(
                Project.status == ProjectStatus.ACTIVE.value,  # type: ignore[arg-type]
                Project.expires_at < now,  # type: ignore[arg-type]
            )
            .values(status=ProjectStatus.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    async def list_by_owner(
        self,
        owner_email: str,
        page: int,
        per_page: int,
        sort: str = "created_at",
        order: str = "desc",
    ) -> tuple[list[Project], int]:
        column = SORT_COLUMNS.get(sort, Project.created_at)
        order_by = [column.asc() if order == "asc" else column.desc()]  # type: ignore[attr-defined]
        query = select(Project).where(Project.owner_email == owner_email)
        return await self.paginate(query, order_by, page, per_page)
