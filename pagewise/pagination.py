"""
Page-window arithmetic and fetch result types for pagewise.

This module holds the value objects passed between a PaginationController
and its data source: the window a page covers, what a source reports back,
and the success/failure outcome the controller dispatches on.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, Union

from .exceptions import PagewiseError

T = TypeVar("T")


def page_count(total: int, page_size: int) -> int:
    """Number of pages needed to hold ``total`` records."""
    if total <= 0:
        return 0
    return math.ceil(total / page_size)


@dataclass(frozen=True)
class PageWindow:
    """
    The ``[offset, offset + length)`` slice requested for one page.

    Attributes:
        page: 1-based page number
        page_size: Configured page size
        offset: Index of the first record in the page
        length: Number of records requested
    """

    page: int
    page_size: int
    offset: int
    length: int

    @classmethod
    def for_page(cls, page: int, page_size: int, known_total: int = 0) -> "PageWindow":
        """
        Computes the window for ``page``.

        When the total is already known and fewer than ``page_size`` records
        remain past the offset, the window shrinks to the remainder.
        """
        offset = (page * page_size) - page_size
        if known_total > 0 and (known_total - offset) < page_size:
            length = known_total - offset
        else:
            length = page_size
        return cls(page=page, page_size=page_size, offset=offset, length=length)

    @property
    def end(self) -> int:
        return self.offset + self.length

    def apply(self, records: Sequence[Any]) -> list[Any]:
        """Slices ``records`` to this window. Never raises for short sequences."""
        if self.length <= 0:
            return []
        return list(records[self.offset : self.end])


@dataclass
class PageResult(Generic[T]):
    """
    What a data source reports for one window.

    Attributes:
        items: Records inside the requested window
        total: Authoritative number of records in the whole source
    """

    items: list[T]
    total: int

    @property
    def count(self) -> int:
        return len(self.items)

    @classmethod
    def empty(cls) -> "PageResult[T]":
        return cls(items=[], total=0)


@dataclass(frozen=True)
class FetchSuccess(Generic[T]):
    page: int
    items: list[T] = field(default_factory=list)
    total: int = 0


@dataclass(frozen=True)
class FetchFailure:
    page: int
    error: PagewiseError


FetchOutcome = Union[FetchSuccess[Any], FetchFailure]
