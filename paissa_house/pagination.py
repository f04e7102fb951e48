"""Page slicing for filtered plot lists."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, List, Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T]
    page_index: int
    total_pages: int
    total_items: int
    has_multiple_pages: bool
    start: int
    end: int


def total_pages(count: int, page_size: int) -> int:
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    return max(1, math.ceil(count / page_size))


def clamp_page(page_index: int, pages: int) -> int:
    return max(0, min(page_index, pages - 1))


def paginate(records: Sequence[T], page_size: int, page_index: int) -> Page[T]:
    """Slice ``records`` to the requested page, clamping out-of-range indices.

    ``start``/``end`` are 1-based display bounds; both are 0 for an empty list.
    """

    pages = total_pages(len(records), page_size)
    index = clamp_page(page_index, pages)
    offset = index * page_size
    items = list(records[offset : offset + page_size])
    return Page(
        items=items,
        page_index=index,
        total_pages=pages,
        total_items=len(records),
        has_multiple_pages=len(records) > page_size,
        start=offset + 1 if items else 0,
        end=offset + len(items),
    )


__all__ = ["Page", "paginate", "total_pages", "clamp_page"]
