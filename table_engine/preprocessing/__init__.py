"""Row transformations: search, sort and pagination."""

from .pagination import PageResult, PageState, page_numbers, page_range, paginate
from .search import apply_search, row_matches
from .sorting import SortState, apply_sort, default_compare, next_sort_state

__all__ = [
    "apply_search",
    "row_matches",
    "apply_sort",
    "default_compare",
    "next_sort_state",
    "SortState",
    "paginate",
    "page_numbers",
    "page_range",
    "PageState",
    "PageResult",
]
