"""
Cursor / offset pagination helpers

Windows are inclusive row ranges (``from_`` .. ``to``) so they map directly
onto PostgREST-style ``range(from, to)`` reads as well as SQL
``OFFSET``/``LIMIT``. Every helper is stateless: a caller can restart from
any page number without holding a server-side cursor.
"""

from __future__ import annotations

from typing import AsyncIterator, Awaitable, Callable, Generic, TypeVar

from pydantic import Field, model_validator

from saleradar.core.exceptions import ValidationError
from saleradar.schemas.base import BaseSchema

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 50


class PageWindow(BaseSchema):
    """Inclusive row range for one page."""

    page: int = Field(ge=1)
    page_size: int = Field(ge=1)
    from_: int = Field(ge=0, alias="from")
    to: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "PageWindow":
        if self.to < self.from_:
            raise ValueError(f"window end {self.to} precedes start {self.from_}")
        return self

    @property
    def limit(self) -> int:
        return self.to - self.from_ + 1

    @property
    def offset(self) -> int:
        return self.from_


class PaginationParams(BaseSchema):
    """
    Pagination request

    ``from_``/``to`` override the window derived from ``page``/``page_size``.
    """

    page: int = Field(default=1, ge=1, description="Page number (1-indexed)")
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)
    from_: int | None = Field(default=None, ge=0, alias="from")
    to: int | None = Field(default=None, ge=0)


class PaginatedResult(BaseSchema, Generic[T]):
    """One page of rows plus continuation info."""

    data: list[T] = Field(default_factory=list)
    total: int = Field(ge=0)
    has_more: bool
    next_page: int | None = None


WindowFetch = Callable[[PageWindow], Awaitable[tuple[list[T], int]]]


def page_window(
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    from_: int | None = None,
    to: int | None = None,
) -> PageWindow:
    """
    Build the window for ``page``

    Args:
        page: 1-indexed page number
        page_size: Rows per page
        from_: Explicit start row (overrides the page-derived start)
        to: Explicit end row (overrides ``from_ + page_size - 1``)

    Raises:
        ValidationError: If page or page_size is below 1
    """
    if page < 1:
        raise ValidationError(f"page must be >= 1, got {page}")
    if page_size < 1:
        raise ValidationError(f"page_size must be >= 1, got {page_size}")

    start = (page - 1) * page_size if from_ is None else from_
    end = start + page_size - 1 if to is None else to
    return PageWindow(page=page, page_size=page_size, from_=start, to=end)


def has_more(total_count: int, window: PageWindow) -> bool:
    return total_count > window.to + 1


def next_window(total_count: int, window: PageWindow) -> PageWindow | None:
    """
    Window following ``window``, or None when ``total_count`` is exhausted

    Args:
        total_count: Total rows matching the query
        window: The window just read
    """
    if not has_more(total_count, window):
        return None
    return page_window(page=window.page + 1, page_size=window.page_size)


async def paginate(
    fetch: WindowFetch[T],
    params: PaginationParams | None = None,
) -> PaginatedResult[T]:
    """
    Run one windowed read

    Args:
        fetch: Callable returning ``(rows, total_count)`` for a window
        params: Page selection; defaults to the first page

    Returns:
        PaginatedResult with ``has_more``/``next_page`` computed from the total
    """
    params = params or PaginationParams()
    window = page_window(params.page, params.page_size, params.from_, params.to)
    rows, total = await fetch(window)
    more = has_more(total, window)
    return PaginatedResult(
        data=list(rows),
        total=total,
        has_more=more,
        next_page=window.page + 1 if more else None,
    )


async def iter_pages(
    fetch: WindowFetch[T],
    page_size: int = DEFAULT_PAGE_SIZE,
    start_page: int = 1,
) -> AsyncIterator[list[T]]:
    """
    Stream every page of a windowed query

    Stops when the total is exhausted or a window comes back empty.
    """
    window: PageWindow | None = page_window(start_page, page_size)
    while window is not None:
        rows, total = await fetch(window)
        if not rows:
            return
        yield rows
        window = next_window(total, window)
