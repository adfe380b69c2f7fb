"""Data table combining search, sort, pagination and selection."""

import os
import sys
from dataclasses import dataclass
from typing import Any, Dict, Hashable, List, Optional, Sequence, Tuple, Union

import pandas as pd
import polars as pl

from ..core.cache import StageCache
from ..core.columns import (
    MISSING,
    ColumnDescriptor,
    ColumnLike,
    columns_from_data,
    get_field,
    normalize_columns,
    rows_from_data,
    schema_names,
)
from ..core.selection import KeyField, SelectionTracker
from ..core.state import LocalState, StateHolder
from ..preprocessing.pagination import (
    PageState,
    clamp_page,
    page_numbers,
    page_range,
    paginate,
    total_pages,
    validate_page_size,
)
from ..preprocessing.search import SearchPredicate, apply_search
from ..preprocessing.sorting import SortState, apply_sort, next_sort_state

# Set to "true" to print stage recomputation diagnostics to stderr
DEBUG_ENV_VAR = "TABLE_ENGINE_DEBUG"

SELECTED_COLUMN = "_selected"


def _debug(message: str) -> None:
    if os.environ.get(DEBUG_ENV_VAR, "false").lower() == "true":
        print(f"[TABLE] {message}", file=sys.stderr)


def cell_value(
    column: ColumnDescriptor, row: Any, index: int, rendered: bool = False
) -> Any:
    """
    Value of one cell.

    Args:
        column: Column of the cell
        row: Row of the cell
        index: Position of the row in the visible window
        rendered: Apply the column's ``render`` function if it has one

    Returns:
        The raw or rendered value; missing fields become None
    """
    value = get_field(row, column.key)
    if value is MISSING:
        value = None
    if rendered and column.render is not None:
        return column.render(value, row, index)
    return value


@dataclass(frozen=True)
class TableView:
    """
    Snapshot of what a table shows.

    Attributes:
        rows: Visible window after search, sort and pagination
        columns: Column descriptors
        page: Current page (already clamped)
        total_pages: Number of pages, at least 1
        page_size: Rows per page (total_rows when pagination is off)
        total_rows: Rows left after search
        source_rows: Rows in the source data
        sort: Active sort
        query: Active search query
        selected: Selection flag for each visible row
        selection_status: 'none', 'some' or 'all' for the visible rows
        selected_count: Size of the whole selection, visible or not
        page_numbers: Page numbers for direct navigation
        range_start: 1-based number of the first visible row (0 if empty)
        range_end: 1-based number of the last visible row (0 if empty)
        selectable: Whether the table shows selection controls
        empty_message: Text to show when there are no visible rows
    """

    rows: List[Any]
    columns: Tuple[ColumnDescriptor, ...]
    page: int
    total_pages: int
    page_size: int
    total_rows: int
    source_rows: int
    sort: SortState
    query: str
    selected: Tuple[bool, ...]
    selection_status: str
    selected_count: int
    page_numbers: List[int]
    range_start: int
    range_end: int
    selectable: bool = False
    empty_message: str = "No data available"

    @property
    def is_empty(self) -> bool:
        return not self.rows

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def _records(self, rendered: bool) -> List[Dict[str, Any]]:
        records = []
        for index, row in enumerate(self.rows):
            record = {
                col.key: cell_value(col, row, index, rendered) for col in self.columns
            }
            if self.selectable:
                record[SELECTED_COLUMN] = self.selected[index]
            records.append(record)
        return records

    def _column_names(self) -> List[str]:
        names = [col.key for col in self.columns]
        if self.selectable:
            names.append(SELECTED_COLUMN)
        return names

    def to_pandas(self, rendered: bool = False) -> pd.DataFrame:
        """
        Visible rows as a pandas DataFrame, one column per descriptor.

        Selectable tables get an extra boolean ``_selected`` column.

        Args:
            rendered: Use each column's ``render`` output instead of the
                raw field value
        """
        return pd.DataFrame(self._records(rendered), columns=self._column_names())

    def to_polars(self) -> pl.DataFrame:
        """Visible rows (raw values) as a polars DataFrame."""
        records = self._records(rendered=False)
        if not records:
            return pl.DataFrame({name: [] for name in self._column_names()})
        return pl.from_dicts(records, infer_schema_length=None)


class DataTable:
    """
    In-memory data table: search → sort → paginate, plus row selection.

    State is kept in four holders (query, sort, page, selection). Each one
    is a LocalState owned by the table unless a holder is passed in, in
    which case the caller owns it (controlled mode). Derived rows are
    memoized per stage, so changing the selection never re-runs search or
    sort, and changing the page never re-runs the search.

    Example:
        table = DataTable(
            data=[{"id": 1, "name": "b"}, {"id": 2, "name": "a"}],
            columns=[{"key": "name", "sortable": True}],
            page_size=1,
            selectable=True,
        )
        table.toggle_sort("name")
        table.view().rows  # [{"id": 2, "name": "a"}]
    """

    def __init__(
        self,
        data: Any,
        columns: Optional[Sequence[ColumnLike]] = None,
        key_field: KeyField = "id",
        searchable: bool = True,
        search_predicate: Optional[SearchPredicate] = None,
        pagination: bool = True,
        page_size: int = 10,
        selectable: bool = False,
        initial_sort: Optional[Union[SortState, Dict[str, Any]]] = None,
        query_state: Optional[StateHolder] = None,
        sort_state: Optional[StateHolder] = None,
        page_state: Optional[StateHolder] = None,
        selection_state: Optional[StateHolder] = None,
        empty_message: str = "No data available",
        title: Optional[str] = None,
        **kwargs,
    ):
        """
        Initialize the DataTable.

        Args:
            data: Rows (any sequence), or a polars DataFrame/LazyFrame or
                pandas DataFrame whose rows become dicts.
            columns: Column descriptors or definition dicts. If None,
                auto-generates sortable columns from the data schema.
            key_field: Field name (or callable) giving each row's unique
                identifier for selection. Must be unique within the data.
            searchable: Apply the search query. When False the query is
                kept but ignored.
            search_predicate: Optional ``(row, lowercased_query) -> bool``
                replacing the default all-fields text scan.
            pagination: Slice rows into pages (default: True). When False
                all rows form a single page.
            page_size: Rows per page when pagination is enabled.
            selectable: Show selection controls (adds ``_selected`` to
                exported frames).
            initial_sort: SortState or {'key': ..., 'direction': ...} used
                when the sort holder starts empty.
            query_state: Holder for the search query (controlled mode).
            sort_state: Holder for the SortState (controlled mode).
            page_state: Holder for the PageState (controlled mode).
            selection_state: Holder for the selected identifiers
                (controlled mode).
            empty_message: Message for an empty window.
            title: Table title.
            **kwargs: Additional configuration options, reported by
                get_config().
        """
        validate_page_size(page_size)

        self._key_field = key_field
        self._searchable = searchable
        self._search_predicate = search_predicate
        self._pagination = pagination
        self._page_size = page_size
        self._selectable = selectable
        self._empty_message = empty_message
        self._title = title
        self._config = kwargs

        if schema_names(data) is None:
            # Iterators would be consumed by column generation
            data = list(data)

        if columns is None:
            self._columns: Tuple[ColumnDescriptor, ...] = tuple(columns_from_data(data))
        else:
            self._columns = tuple(normalize_columns(columns))

        if isinstance(initial_sort, dict):
            initial_sort = SortState(
                initial_sort.get("key"), initial_sort.get("direction")
            )
        if initial_sort is not None and initial_sort.key is not None:
            self._column(initial_sort.key)

        if sort_state is None:
            sort_state = LocalState(initial_sort or SortState.none())
        elif initial_sort is not None and sort_state.get() is None:
            sort_state.set(initial_sort)

        self._query_state = query_state if query_state is not None else LocalState("")
        self._sort_state = sort_state
        self._page_state = (
            page_state
            if page_state is not None
            else LocalState(PageState(1, page_size))
        )

        self._selection = SelectionTracker(key_field, selection_state)

        self._search_cache = StageCache("search")
        self._sort_cache = StageCache("sort")
        self._page_cache = StageCache("page")

        self._data_version = 0
        self._rows: List[Any] = []
        self._load(data)

    # =========================================================================
    # Data
    # =========================================================================

    def _validate_mappings(self, data: Any) -> None:
        """Validate that column keys and the key field exist in a frame schema."""
        names = schema_names(data)
        if names is None:
            return  # Plain rows are not validated

        for col in self._columns:
            if col.key not in names:
                raise ValueError(
                    f"Column '{col.key}' not found in data. "
                    f"Available columns: {names}"
                )
        if isinstance(self._key_field, str) and self._key_field not in names:
            raise ValueError(
                f"Key field '{self._key_field}' not found in data. "
                f"Available columns: {names}"
            )

    def _load(self, data: Any) -> None:
        self._validate_mappings(data)
        self._rows = rows_from_data(data)
        self._data_version += 1
        self._search_cache.clear()
        self._sort_cache.clear()
        self._page_cache.clear()

    def set_data(self, data: Any) -> None:
        """
        Replace the source data.

        Search, sort and page are kept (the page re-clamps on the next
        view). Selected identifiers whose rows are gone are deselected.
        """
        self._load(data)
        if self._selection.retain(self._rows):
            _debug("dropped selections for rows removed from the data")

    @property
    def data(self) -> List[Any]:
        """Source rows."""
        return self._rows

    @property
    def columns(self) -> Tuple[ColumnDescriptor, ...]:
        return self._columns

    def _column(self, key: str) -> ColumnDescriptor:
        for col in self._columns:
            if col.key == key:
                return col
        raise KeyError(
            f"No column with key '{key}'. "
            f"Available columns: {[col.key for col in self._columns]}"
        )

    # =========================================================================
    # State
    # =========================================================================

    @property
    def query(self) -> str:
        return self._query_state.get() or ""

    @property
    def sort(self) -> SortState:
        value = self._sort_state.get()
        if value is None:
            return SortState.none()
        if isinstance(value, dict):
            return SortState(value.get("key"), value.get("direction"))
        return value

    @property
    def page_size(self) -> int:
        if not self._pagination:
            return max(1, len(self._sorted()))
        return self._page().page_size

    @property
    def current_page(self) -> int:
        """Current page, clamped to the current number of pages."""
        if not self._pagination:
            return 1
        state = self._page()
        return clamp_page(state.page, total_pages(len(self._sorted()), state.page_size))

    @property
    def selection(self) -> SelectionTracker:
        return self._selection

    def _page(self) -> PageState:
        value = self._page_state.get()
        if value is None:
            return PageState(1, self._page_size)
        if isinstance(value, dict):
            return PageState(
                value.get("page", 1), value.get("page_size", self._page_size)
            )
        return value

    # =========================================================================
    # Pipeline
    # =========================================================================

    def _search_key(self) -> Tuple[Hashable, ...]:
        query = self.query if self._searchable else ""
        return (self._data_version, query, self._search_predicate)

    def _searched(self) -> Sequence[Any]:
        key = self._search_key()
        query = key[1]
        rows, recomputed = self._search_cache.get_or_compute(
            key, lambda: apply_search(self._rows, query, self._search_predicate)
        )
        if recomputed:
            _debug(f"search {query!r}: {len(rows)}/{len(self._rows)} rows")
        return rows

    def _sort_key(self) -> Tuple[Hashable, ...]:
        sort = self.sort
        return self._search_key() + (sort.key, sort.direction, self._columns)

    def _sorted(self) -> List[Any]:
        sort = self.sort
        rows, recomputed = self._sort_cache.get_or_compute(
            self._sort_key(),
            lambda: apply_sort(
                self._searched(), sort.key, sort.direction, self._columns
            ),
        )
        if recomputed:
            _debug(f"sort key={sort.key} direction={sort.direction}")
        return rows

    def visible_rows(self) -> List[Any]:
        """Rows of the current page."""
        return self.view().rows

    def view(self) -> TableView:
        """
        Compute the visible window and its metadata.

        If the current page is past the last page it is clamped, and the
        clamped page is written back to the page holder.
        """
        sorted_rows = self._sorted()
        n = len(sorted_rows)

        if self._pagination:
            state = self._page()
            key = self._sort_key() + (state.page, state.page_size)
            result, recomputed = self._page_cache.get_or_compute(
                key, lambda: paginate(sorted_rows, state.page, state.page_size)
            )
            if result.clamped_page != state.page:
                _debug(f"page {state.page} clamped to {result.clamped_page}")
                self._page_state.set(PageState(result.clamped_page, state.page_size))
            page, pages, size = result.clamped_page, result.total_pages, state.page_size
            rows = result.page
        else:
            page, pages, size = 1, 1, max(1, n)
            rows = list(sorted_rows)

        selected_keys = self._selection.selected_keys
        first, last = page_range(page, size, n)
        return TableView(
            rows=rows,
            columns=self._columns,
            page=page,
            total_pages=pages,
            page_size=size,
            total_rows=n,
            source_rows=len(self._rows),
            sort=self.sort,
            query=self.query,
            selected=tuple(
                self._selection.row_key(row) in selected_keys for row in rows
            ),
            selection_status=self._selection.selection_status(rows),
            selected_count=len(selected_keys),
            page_numbers=page_numbers(page, pages),
            range_start=first,
            range_end=last,
            selectable=self._selectable,
            empty_message=self._empty_message,
        )

    # =========================================================================
    # Actions
    # =========================================================================

    def set_search(self, query: str) -> None:
        """Set the search query. The page re-clamps if fewer rows match."""
        self._query_state.set(query or "")

    def clear_search(self) -> None:
        self._query_state.set("")

    def toggle_sort(self, key: str) -> SortState:
        """
        Select a column header: cycles asc → desc → none on the same column.

        Columns that are not sortable leave the sort unchanged.

        Raises:
            KeyError: If no column has this key
        """
        column = self._column(key)
        if not column.sortable:
            return self.sort
        new_state = next_sort_state(self.sort, key)
        self._sort_state.set(new_state)
        return new_state

    def set_sort(self, key: Optional[str], direction: Optional[str]) -> SortState:
        """Set the sort directly. ``set_sort(None, None)`` clears it."""
        if key is not None:
            self._column(key)
        new_state = SortState(key, direction)
        self._sort_state.set(new_state)
        return new_state

    def clear_sort(self) -> None:
        self._sort_state.set(SortState.none())

    def set_page(self, page: int) -> int:
        """
        Go to a page, clamped to the available pages.

        Returns:
            The page actually selected
        """
        if not self._pagination:
            return 1
        state = self._page()
        page = clamp_page(page, total_pages(len(self._sorted()), state.page_size))
        self._page_state.set(PageState(page, state.page_size))
        return page

    def next_page(self) -> int:
        return self.set_page(self.current_page + 1)

    def previous_page(self) -> int:
        return self.set_page(self.current_page - 1)

    def set_page_size(self, page_size: int) -> None:
        """Change rows per page and go back to the first page."""
        validate_page_size(page_size)
        self._page_state.set(PageState(1, page_size))

    def reset(self) -> None:
        """Clear search and sort and go back to the first page. Selection is kept."""
        self.clear_search()
        self.clear_sort()
        self._page_state.set(PageState(1, self._page().page_size))

    def toggle_row(self, key: Hashable) -> bool:
        """Toggle selection of one row identifier."""
        return self._selection.toggle(key)

    def toggle_all_visible(self) -> bool:
        """Toggle the select-all control for the current page."""
        return self._selection.select_all_visible(self.visible_rows())

    def clear_selection(self) -> bool:
        return self._selection.clear()

    def selected_rows(self) -> List[Any]:
        """Selected rows from the whole source data, in source order."""
        return self._selection.selected_rows(self._rows)

    def render_cell(
        self, column: Union[str, ColumnDescriptor], row: Any, index: int = 0
    ) -> Any:
        """Display value of a cell, using the column's render function if set."""
        if isinstance(column, str):
            column = self._column(column)
        return cell_value(column, row, index, rendered=True)

    # =========================================================================
    # Configuration
    # =========================================================================

    def get_config(self) -> Dict[str, Any]:
        """
        Get the table configuration.

        Returns:
            JSON-serializable dict of configuration values
        """
        config: Dict[str, Any] = {
            "columns": [col.to_dict() for col in self._columns],
            "key_field": self._key_field if isinstance(self._key_field, str) else None,
            "searchable": self._searchable,
            "has_search_predicate": self._search_predicate is not None,
            "pagination": self._pagination,
            "page_size": self._page_size,
            "selectable": self._selectable,
            "empty_message": self._empty_message,
            "controlled": {
                "query": self._query_state.controlled,
                "sort": self._sort_state.controlled,
                "page": self._page_state.controlled,
                "selection": self._selection.state.controlled,
            },
        }
        if self._title:
            config["title"] = self._title
        config.update(self._config)
        return config

    def cache_stats(self) -> Dict[str, Dict[str, int]]:
        """Hit/miss counters of the stage caches."""
        return {
            cache.name: {"hits": cache.hits, "misses": cache.misses}
            for cache in (self._search_cache, self._sort_cache, self._page_cache)
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"rows={len(self._rows)}, "
            f"columns={[col.key for col in self._columns]}, "
            f"key_field={self._key_field!r}, "
            f"sort={self.sort.to_dict()}, "
            f"query={self.query!r})"
        )
