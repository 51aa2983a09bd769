from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, TypeVar

T = TypeVar("T")


# PUBLIC_INTERFACE
@dataclass
class PaginatedResult(Generic[T]):
    """
    One page of items plus the metadata needed to navigate the full result set.

    Attributes:
        items: Items on the current page (may be empty).
        total_count: Number of items matching the query across all pages.
        page: 1-indexed page number used to produce `items`.
        page_size: Page size used to produce `items`.
    """

    items: List[T] = field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = 10

    def __post_init__(self) -> None:
        if self.items is None:
            self.items = []
        elif not isinstance(self.items, list):
            self.items = list(self.items)

    @property
    def total_pages(self) -> int:
        if self.total_count <= 0 or self.page_size < 1:
            return 0
        return math.ceil(self.total_count / self.page_size)

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous_page(self) -> bool:
        return self.page > 1

    # PUBLIC_INTERFACE
    def to_envelope(self) -> Dict[str, Any]:
        """
        Build the standard pagination envelope for list endpoints.

        Returns:
            Dict with keys: items, total_count, page, page_size, total_pages,
            has_next_page, has_previous_page.
        """
        return {
            "items": self.items,
            "total_count": int(self.total_count),
            "page": int(self.page),
            "page_size": int(self.page_size),
            "total_pages": self.total_pages,
            "has_next_page": self.has_next_page,
            "has_previous_page": self.has_previous_page,
        }
