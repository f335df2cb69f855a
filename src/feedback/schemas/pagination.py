"""Offset pagination helpers."""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 100


class PageParams(BaseModel):
    """Clamped page/per_page pair. Out-of-range input is clamped, not rejected."""

    page: int = 1
    per_page: int = DEFAULT_PER_PAGE

    @classmethod
    def clamp(cls, page: int | None = None, per_page: int | None = None) -> "PageParams":
        return cls(
            page=max(1, page or 1),
            per_page=min(MAX_PER_PAGE, max(1, per_page or DEFAULT_PER_PAGE)),
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic page of items with the total match count."""

    items: list[T]
    total: int = Field(description="Number of items matching the filters across all pages.")
    page: int
    per_page: int
