"""Free-text search over in-memory rows."""

import math
from typing import Any, Callable, List, Optional, Sequence

from ..core.columns import MISSING, field_values

SearchPredicate = Callable[[Any, str], bool]


def field_text(value: Any) -> str:
    """
    Render a field value as lowercase text for matching.

    None, missing values and float NaN render as an empty string, booleans
    as 'true'/'false'.
    """
    if value is None or value is MISSING:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).lower()


def row_matches(row: Any, query: str) -> bool:
    """
    Default match: any own field value contains the query.

    Args:
        row: Row to test
        query: Already lowercased query

    Returns:
        True if at least one field's text contains the query
    """
    return any(query in field_text(value) for value in field_values(row))


def apply_search(
    rows: Sequence[Any],
    query: Optional[str],
    predicate: Optional[SearchPredicate] = None,
) -> Sequence[Any]:
    """
    Reduce rows to those matching a free-text query.

    An empty or whitespace-only query returns ``rows`` itself. Otherwise a
    new list is returned, in input order. Errors raised by a custom
    predicate propagate to the caller.

    Args:
        rows: Source rows
        query: Search text
        predicate: Optional ``(row, lowercased_query) -> bool`` that fully
            replaces the default field scan

    Returns:
        Matching rows
    """
    if query is None or not query.strip():
        return rows

    lowered = query.lower()
    match = predicate if predicate is not None else row_matches
    result: List[Any] = [row for row in rows if match(row, lowered)]
    return result
