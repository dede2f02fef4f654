"""
Offset pagination over an ordered, already-filtered source.

The source is asked for its size first and for one window second. The
two calls are independent reads; a page built while the source is being
written to may report has_next with nothing left to show, or miss a row.
"""

import math
from dataclasses import dataclass, field
from typing import Generic, List, Optional, Protocol, Sequence, TypeVar

T = TypeVar("T")


class PageSource(Protocol[T]):
    def count(self) -> int:
        ...

    def slice(self, offset: int, limit: int) -> List[T]:
        ...


class SequenceSource(Generic[T]):
    """Adapts an in-memory ordered sequence to the PageSource protocol."""

    def __init__(self, items: Sequence[T]):
        self.items = items

    def count(self) -> int:
        return len(self.items)

    def slice(self, offset: int, limit: int) -> List[T]:
        return list(self.items[offset:offset + limit])


@dataclass
class Page(Generic[T]):
    items: List[T] = field(default_factory=list)
    page_index: int = 1
    page_size: int = 1
    total_count: int = 0

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size)

    # use for previous page button
    @property
    def has_previous(self) -> bool:
        return self.page_index > 1 and self.total_pages > 0

    # use for next page button
    @property
    def has_next(self) -> bool:
        return self.page_index < self.total_pages

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)


def create_page(source: PageSource[T], page_index: Optional[int], page_size: int) -> Page[T]:
    """
    Build one page of source.

    Args:
        source: count()/slice() provider, already filtered and ordered
        page_index: 1-based page number; None or < 1 means the first page
        page_size: rows per page, from configuration (>= 1)
    """
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    if page_index is None or page_index < 1:
        page_index = 1

    total_count = source.count()
    page = Page(items=[], page_index=page_index, page_size=page_size, total_count=total_count)

    if page_index <= page.total_pages:
        page.items = list(source.slice((page_index - 1) * page_size, page_size))
    return page
