"""Base repository with common CRUD operations."""

from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select


ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """Base repository providing common database operations.

    Repositories handle data access only. Transaction control (commit)
    should be done in the service layer.
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, id: UUID) -> ModelType | None:
        """Get a record by its primary key."""
        result = await self.session.execute(
            select(self.model)
            .where(self.model.id == id)  # type: ignore[attr-defined]
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    def add(self, entity: ModelType) -> None:
        """Add entity to session (no flush/commit)."""
        self.session.add(entity)

    async def paginate(
        self,
        query: Any,  # SelectOfScalar - already filtered, not yet ordered
        order_by: list[Any],
        page: int,
        per_page: int,
    ) -> tuple[list[ModelType], int]:
        """Execute offset pagination on a query.

        Args:
            query: The filtered base query
            order_by: ORDER BY clauses applied to the page query
            page: 1-based page number
            per_page: Page size

        Returns:
            Tuple of (items, total) where total counts all matching rows.
        """
        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.session.execute(count_query)).scalar_one()

        page_query = query.order_by(*order_by).offset((page - 1) * per_page).limit(per_page)
        # Bulk UPDATEs skip the identity map; reload rows so pages are current
        page_query = page_query.execution_options(populate_existing=True)
        result = await self.session.execute(page_query)
        return list(result.scalars().all()), int(total)
