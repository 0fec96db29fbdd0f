"""
Sortable, paginated listing of root-to-leaf patterns.
"""

import math
from dataclasses import dataclass, field
from typing import Any

from .exceptions import InvalidPageActionError, InvalidSortError
from .models import PatternRecord

SORT_FIELDS = ("length", "count", "avg_score")
SORT_ORDERS = ("asc", "desc")
PAGE_ACTIONS = ("first", "previous", "next", "last")


@dataclass
class PatternTable:
    """
    Pattern listing state: rows, sort field/order and current page.

    Re-sorting by the active field flips the order; switching to another
    field sorts descending. Every sort change returns to page 1.
    """

    rows: list[PatternRecord] = field(default_factory=list)
    page_size: int = 5
    sort_field: str = "length"
    sort_order: str = "desc"
    page: int = 1

    def __post_init__(self):
        self._check(self.sort_field, SORT_FIELDS)
        self._check(self.sort_order, SORT_ORDERS)

    @staticmethod
    def _check(value: str, allowed: tuple[str, ...]) -> None:
        if value not in allowed:
            raise InvalidSortError(value, allowed)

    def sort_by(self, sort_field: str) -> None:
        self._check(sort_field, SORT_FIELDS)
        if sort_field == self.sort_field:
            self.sort_order = "asc" if self.sort_order == "desc" else "desc"
        else:
            self.sort_field = sort_field
            self.sort_order = "desc"
        self.page = 1

    def _sort_value(self, row: PatternRecord) -> float:
        if self.sort_field == "length":
            return row.length
        if self.sort_field == "count":
            return row.count
        return row.avg_score or 0.0

    def sorted_rows(self) -> list[PatternRecord]:
        """Rows in display order; ties keep their listing order."""
        return sorted(self.rows, key=self._sort_value, reverse=self.sort_order == "desc")

    @property
    def total_pages(self) -> int:
        return math.ceil(len(self.rows) / self.page_size)

    def go_to(self, page: int) -> int:
        """Move to ``page``, clamped to the available range."""
        self.page = max(1, min(page, self.total_pages))
        return self.page

    def first_page(self) -> int:
        return self.go_to(1)

    def last_page(self) -> int:
        return self.go_to(self.total_pages)

    def next_page(self) -> int:
        return self.go_to(self.page + 1)

    def previous_page(self) -> int:
        return self.go_to(self.page - 1)

    def navigate(self, action: str) -> int:
        """Apply a named page move (first, previous, next or last)."""
        if action not in PAGE_ACTIONS:
            raise InvalidPageActionError(action, PAGE_ACTIONS)
        return getattr(self, f"{action}_page")()

    def page_rows(self) -> list[PatternRecord]:
        start = (self.page - 1) * self.page_size
        return self.sorted_rows()[start:start + self.page_size]

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows": [row.to_dict() for row in self.page_rows()],
            "total": len(self.rows),
            "page": self.page,
            "total_pages": self.total_pages,
            "sort_field": self.sort_field,
            "sort_order": self.sort_order,
        }
