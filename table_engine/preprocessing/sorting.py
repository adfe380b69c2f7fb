"""Single-column sorting with pluggable comparators."""

import math
import re
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Callable, List, Optional, Sequence

from ..core.columns import MISSING, ColumnDescriptor, get_field
from ..core.registry import get_sorter, register_sorter

ASC = "asc"
DESC = "desc"
_DIRECTIONS = (ASC, DESC)

RowComparator = Callable[[Any, Any], int]


@dataclass(frozen=True)
class SortState:
    """
    Active sort of a table.

    ``direction is None`` if and only if ``key is None``, which means no
    sort is active and rows keep their original order.
    """

    key: Optional[str] = None
    direction: Optional[str] = None

    def __post_init__(self) -> None:
        if self.direction is not None and self.direction not in _DIRECTIONS:
            raise ValueError(
                f"Invalid sort direction '{self.direction}'. "
                f"Allowed values: {list(_DIRECTIONS)} or None"
            )
        if (self.key is None) != (self.direction is None):
            raise ValueError(
                "Sort key and direction must both be set or both be None, "
                f"got key={self.key!r}, direction={self.direction!r}"
            )

    @classmethod
    def none(cls) -> "SortState":
        return cls()

    @property
    def active(self) -> bool:
        return self.key is not None

    def indicator(self, key: str) -> str:
        """Header indicator for a column: 'asc', 'desc' or 'none'."""
        if self.key == key and self.direction is not None:
            return self.direction
        return "none"

    def to_dict(self) -> dict:
        return {"key": self.key, "direction": self.direction}


def next_sort_state(state: SortState, key: str) -> SortState:
    """
    Advance the sort after a column is selected.

    Selecting the sorted column again cycles ascending → descending → none.
    Selecting any other column starts it at ascending.
    """
    if state.key != key:
        return SortState(key, ASC)
    if state.direction == ASC:
        return SortState(key, DESC)
    return SortState.none()


def _is_missing(value: Any) -> bool:
    if value is None or value is MISSING:
        return True
    return isinstance(value, float) and math.isnan(value)


def _missing_first(a: Any, b: Any) -> Optional[int]:
    a_missing = _is_missing(a)
    b_missing = _is_missing(b)
    if a_missing or b_missing:
        if a_missing and b_missing:
            return 0
        return -1 if a_missing else 1
    return None


def default_compare(a: Any, b: Any) -> int:
    """
    Compare two raw field values with the native ordering operators.

    Missing fields, None and float NaN order below every defined value, so
    they come first ascending and last descending. Values that cannot be
    ordered against each other (such as text against numbers) compare
    equal. Mixing such values in one column gives an order that depends on
    the input order.
    """
    missing = _missing_first(a, b)
    if missing is not None:
        return missing
    try:
        if a < b:
            return -1
        if a > b:
            return 1
    except TypeError:
        # Mixed types without an ordering rank as equal
        return 0
    return 0


def resolve_comparator(column: ColumnDescriptor) -> RowComparator:
    """
    Build the row comparator for a column.

    Resolution order: the column's ``custom_sort``, then its registered
    ``sorter``, then ``default_compare`` on the raw field values.
    """
    if column.custom_sort is not None:
        return column.custom_sort

    value_compare = get_sorter(column.sorter) if column.sorter else default_compare
    key = column.key

    def compare_rows(a: Any, b: Any) -> int:
        return value_compare(get_field(a, key), get_field(b, key))

    return compare_rows


def apply_sort(
    rows: Sequence[Any],
    sort_key: Optional[str],
    direction: Optional[str],
    columns: Sequence[ColumnDescriptor],
) -> List[Any]:
    """
    Order rows by one column. The input is never mutated.

    The sort is stable. Descending order reverses the ascending order of
    distinct values only: rows that compare equal keep their ascending
    relative order.

    Args:
        rows: Rows to sort
        sort_key: Column key, or None for the original order
        direction: 'asc', 'desc' or None
        columns: Column descriptors used to resolve the comparator

    Returns:
        New list of rows. Without an active sort, or when no column has
        ``sort_key``, the rows keep their original order.

    Raises:
        ValueError: If direction is not 'asc', 'desc' or None
    """
    if direction is not None and direction not in _DIRECTIONS:
        raise ValueError(
            f"Invalid sort direction '{direction}'. "
            f"Allowed values: {list(_DIRECTIONS)} or None"
        )
    if sort_key is None or direction is None:
        return list(rows)

    column = next((col for col in columns if col.key == sort_key), None)
    if column is None:
        return list(rows)

    comparator = resolve_comparator(column)
    # sorted() keeps equal elements in input order, also with reverse=True
    return sorted(rows, key=cmp_to_key(comparator), reverse=direction == DESC)


# =============================================================================
# Built-in sorters
# =============================================================================


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


@register_sorter("string")
def compare_string(a: Any, b: Any) -> int:
    """Case-insensitive text order."""
    missing = _missing_first(a, b)
    if missing is not None:
        return missing
    return default_compare(str(a).casefold(), str(b).casefold())


def _to_number(value: Any) -> Any:
    if _is_missing(value):
        return MISSING
    try:
        number = float(value)
    except (TypeError, ValueError):
        return MISSING
    if math.isnan(number):
        return MISSING
    return number


@register_sorter("number")
def compare_number(a: Any, b: Any) -> int:
    """Numeric order; values that are not numbers sort as missing."""
    a_num = _to_number(a)
    b_num = _to_number(b)
    missing = _missing_first(a_num, b_num)
    if missing is not None:
        return missing
    return _sign(a_num - b_num)


@register_sorter("boolean")
def compare_boolean(a: Any, b: Any) -> int:
    """False before True."""
    missing = _missing_first(a, b)
    if missing is not None:
        return missing
    return int(bool(a)) - int(bool(b))


_DIGITS = re.compile(r"(\d+)")


def _alphanum_parts(value: Any) -> List[Any]:
    parts = _DIGITS.split(str(value).casefold())
    return [
        (0, int(part), "") if part.isdecimal() else (1, 0, part)
        for part in parts
        if part
    ]


@register_sorter("alphanum")
def compare_alphanum(a: Any, b: Any) -> int:
    """Natural order: runs of digits compare numerically ('a2' < 'a10')."""
    missing = _missing_first(a, b)
    if missing is not None:
        return missing
    return default_compare(_alphanum_parts(a), _alphanum_parts(b))
