"""
Pagination value objects shared by list queries.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")

MAX_PAGE_SIZE = 100


class SortOrder(Enum):
    """Sort direction."""

    ASC = "ASC"
    DESC = "DESC"


@dataclass(frozen=True)
class PageRequest:
    """Requested page, page size, free-text search and ordering."""

    page: int = 1
    limit: int = 10
    search: Optional[str] = None
    sort_by: Optional[str] = None
    sort_order: SortOrder = SortOrder.DESC

    def __post_init__(self):
        if self.page < 1:
            raise ValueError("Page must be at least 1")
        if self.limit < 1 or self.limit > MAX_PAGE_SIZE:
            raise ValueError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results plus the metadata clients need to navigate."""

    items: List[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous_page(self) -> bool:
        return self.page > 1
