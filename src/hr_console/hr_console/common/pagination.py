from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Generic, Mapping, Sequence, TypeVar

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.exceptions import ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    current_page: int
    total_pages: int
    total: int
    page_size: int

    def to_dict(self, serialize: Callable[[T], Any] = lambda x: x, *, key: str = "items") -> dict:
        return {
            key: [serialize(item) for item in self.items],
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "total": self.total,
            "pageSize": self.page_size,
        }


def paginate(items: Sequence[T], page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> Page[T]:
    """Slice an in-memory list; page is 1-based and clamped into range."""

    if limit < 1:
        raise ValidationError("Limit must be at least 1.")
    limit = min(int(limit), MAX_PAGE_SIZE)

    total = len(items)
    total_pages = math.ceil(total / limit) if total else 0
    page = max(1, min(int(page), max(total_pages, 1)))

    start = (page - 1) * limit
    return Page(
        items=list(items[start : start + limit]),
        current_page=page,
        total_pages=total_pages,
        total=total,
        page_size=limit,
    )


def parse_page_args(args: Mapping[str, Any]) -> tuple[int, int]:
    try:
        page = int(args.get("page") or 1)
        limit = int(args.get("limit") or DEFAULT_PAGE_SIZE)
    except (TypeError, ValueError):
        raise ValidationError("Page and limit must be integers.")
    return page, limit
