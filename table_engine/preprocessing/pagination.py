"""Page slicing for ordered rows."""

import math
from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple


@dataclass(frozen=True)
class PageState:
    """Current page (1-indexed) and rows per page."""

    page: int = 1
    page_size: int = 10

    def __post_init__(self) -> None:
        validate_page_size(self.page_size)

    def to_dict(self) -> dict:
        return {"page": self.page, "page_size": self.page_size}


@dataclass(frozen=True)
class PageResult:
    """
    Result of slicing one page.

    Attributes:
        page: Rows of the visible window
        total_pages: Number of pages, at least 1
        clamped_page: The page number actually used for the window
    """

    page: List[Any]
    total_pages: int
    clamped_page: int


def validate_page_size(page_size: int) -> None:
    """Raise ValueError unless page_size is a positive integer."""
    if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
        raise ValueError(f"page_size must be a positive integer, got {page_size!r}")


def total_pages(total_rows: int, page_size: int) -> int:
    """Number of pages for ``total_rows``; an empty collection has one page."""
    validate_page_size(page_size)
    return max(1, math.ceil(total_rows / page_size))


def clamp_page(page: int, pages: int) -> int:
    """Clamp a page number into ``[1, pages]``."""
    return min(max(1, page), max(1, pages))


def paginate(rows: Sequence[Any], current_page: int, page_size: int) -> PageResult:
    """
    Slice the visible window out of ordered rows.

    The page is clamped before slicing, so a page past the end (for example
    after a search removed rows) shows the last page instead of nothing.

    Args:
        rows: Ordered rows
        current_page: Requested page, 1-indexed
        page_size: Rows per page

    Returns:
        PageResult with the window, page count and clamped page

    Raises:
        ValueError: If page_size is not a positive integer
    """
    pages = total_pages(len(rows), page_size)
    page = clamp_page(current_page, pages)
    start = (page - 1) * page_size
    return PageResult(
        page=list(rows[start : start + page_size]),
        total_pages=pages,
        clamped_page=page,
    )


def page_numbers(current_page: int, pages: int, max_buttons: int = 5) -> List[int]:
    """
    Page numbers to offer as direct navigation buttons.

    The window is centered on the current page and pinned at both ends,
    e.g. with 10 pages: page 1 → [1..5], page 6 → [4..8], page 10 → [6..10].

    Args:
        current_page: Current page, 1-indexed
        pages: Total number of pages
        max_buttons: Maximum number of buttons

    Returns:
        Ascending list of page numbers
    """
    if max_buttons < 1:
        raise ValueError(f"max_buttons must be at least 1, got {max_buttons}")
    pages = max(1, pages)
    current_page = clamp_page(current_page, pages)
    count = min(max_buttons, pages)
    first = current_page - (count - 1) // 2
    first = min(max(1, first), pages - count + 1)
    return list(range(first, first + count))


def page_range(current_page: int, page_size: int, total_rows: int) -> Tuple[int, int]:
    """
    1-based first and last row numbers shown on a page.

    Used for summaries like "Showing 11 to 20 of 95". Returns (0, 0) when
    there are no rows.
    """
    if total_rows <= 0:
        return (0, 0)
    page = clamp_page(current_page, total_pages(total_rows, page_size))
    first = (page - 1) * page_size + 1
    last = min(page * page_size, total_rows)
    return (first, last)
