"""Pagination shared by list endpoints."""

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, Field, computed_field


T = TypeVar("T")


class PageQuery(BaseModel):
    """``page`` / ``page_size`` query parameters."""

    page: int = Field(1, ge=1, description="Page number (1-indexed)")
    page_size: int = Field(50, ge=1, le=500, description="Items per page")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class Page(BaseModel, Generic[T]):
    """One page of results with the total across all pages."""

    items: list[T]
    total: int = Field(..., ge=0, description="Matches across all pages")
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.page_size)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_next(self) -> bool:
        return self.page < self.pages
