"""
Table Engine - In-memory data table logic.

This package provides the search, sort, pagination and selection pipeline
behind an interactive data table, with state that can be owned by the table
or delegated to the caller.
"""

from .components.table import DataTable, TableView
from .core.columns import ColumnDescriptor, columns_from_data
from .core.registry import get_sorter, register_sorter
from .core.selection import SelectionTracker
from .core.state import ControlledState, LocalState, SessionState, StateHolder
from .preprocessing.pagination import PageResult, PageState, paginate
from .preprocessing.search import apply_search
from .preprocessing.sorting import SortState, apply_sort, next_sort_state

__version__ = "0.1.0"

__all__ = [
    # Pipeline
    "apply_search",
    "apply_sort",
    "next_sort_state",
    "paginate",
    # Core
    "ColumnDescriptor",
    "columns_from_data",
    "SortState",
    "PageState",
    "PageResult",
    "SelectionTracker",
    "StateHolder",
    "LocalState",
    "ControlledState",
    "SessionState",
    "register_sorter",
    "get_sorter",
    # Components
    "DataTable",
    "TableView",
]
