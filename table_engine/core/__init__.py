"""Core infrastructure for table_engine."""

from .cache import StageCache
from .columns import MISSING, ColumnDescriptor, columns_from_data, get_field
from .registry import get_sorter, register_sorter
from .selection import SelectionTracker
from .state import ControlledState, LocalState, SessionState, StateHolder

__all__ = [
    "ColumnDescriptor",
    "columns_from_data",
    "get_field",
    "MISSING",
    "SelectionTracker",
    "StateHolder",
    "LocalState",
    "ControlledState",
    "SessionState",
    "StageCache",
    "register_sorter",
    "get_sorter",
]
