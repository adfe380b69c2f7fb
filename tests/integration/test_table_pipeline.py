"""
DataTable Pipeline Integration Tests.

Exercises the full search → sort → paginate pipeline together with the
selection tracker, in uncontrolled, controlled and Streamlit session-backed
mode.

Test Categories:
    - TestExampleScenario: The three-row walkthrough
    - TestPipelineProperties: Idempotence, stability, cycle, coverage
    - TestSelectionAcrossViews: Selection independent of filter/sort/page
    - TestMemoization: Stage caches skip unrelated recomputation
    - TestControlledTable: Caller-owned state holders
    - TestSessionBackedTable: State surviving Streamlit reruns
    - TestDataRefresh: Replacing the source data
"""

from typing import Any, Dict, List

import pytest

from table_engine import (
    ControlledState,
    DataTable,
    PageState,
    SessionState,
    SortState,
    apply_search,
)

# =============================================================================
# Helpers
# =============================================================================


def ids(rows: List[Dict[str, Any]]) -> List[int]:
    return [row["id"] for row in rows]


def all_pages(table: DataTable) -> List[Dict[str, Any]]:
    """Walk every page of the table and collect the rows."""
    rows = []
    table.set_page(1)
    for _ in range(table.view().total_pages):
        rows.extend(table.view().rows)
        table.next_page()
    return rows


@pytest.fixture
def item_table(many_rows) -> DataTable:
    """95 rows, 10 per page, sortable name and group."""
    return DataTable(
        data=many_rows,
        columns=[
            {"key": "name", "sortable": True},
            {"key": "group", "sortable": True},
        ],
        page_size=10,
        selectable=True,
    )


# =============================================================================
# TestExampleScenario
# =============================================================================


class TestExampleScenario:
    """Rows b, a, c sorted by name with two rows per page."""

    def test_walkthrough(self, letter_rows):
        table = DataTable(
            data=letter_rows,
            columns=[{"key": "name", "sortable": True}],
            page_size=2,
        )
        table.set_search("")
        table.toggle_sort("name")

        first = table.view()
        assert ids(first.rows) == [2, 1]
        assert first.total_pages == 2

        table.set_page(2)
        second = table.view()
        assert ids(second.rows) == [3]
        assert second.range_start == 3
        assert second.range_end == 3


# =============================================================================
# TestPipelineProperties
# =============================================================================


class TestPipelineProperties:
    """Properties that must hold for any data."""

    def test_search_idempotent(self, many_rows):
        once = apply_search(many_rows, "item_01")
        assert apply_search(once, "item_01") == once

    def test_descending_ties_keep_ascending_order(self, item_table):
        item_table.set_page_size(95)
        item_table.toggle_sort("group")
        ascending = item_table.view().rows
        item_table.toggle_sort("group")
        descending = item_table.view().rows

        for group in ("x", "y", "z"):
            asc_ids = [row["id"] for row in ascending if row["group"] == group]
            desc_ids = [row["id"] for row in descending if row["group"] == group]
            assert asc_ids == desc_ids == sorted(asc_ids)
        assert [row["group"] for row in descending][0] == "z"

    def test_three_header_selections_restore_order(self, item_table, many_rows):
        for _ in range(3):
            item_table.toggle_sort("name")
        item_table.set_page_size(95)
        assert item_table.view().rows == many_rows

    def test_pages_cover_filtered_sorted_rows(self, item_table):
        item_table.set_search("y")
        item_table.set_sort("name", "desc")
        expected = [
            row for row in reversed(item_table.data) if row["group"] == "y"
        ]
        assert all_pages(item_table) == expected


# =============================================================================
# TestSelectionAcrossViews
# =============================================================================


class TestSelectionAcrossViews:
    """Selection follows row identity, not view position."""

    def test_selection_survives_hiding_filter(self, item_table):
        item_table.toggle_row(7)
        item_table.set_search("item_05")
        assert 7 not in ids(item_table.view().rows)
        assert item_table.view().selected_count == 1

        item_table.clear_search()
        assert item_table.selection.is_selected(7)
        assert item_table.view().selected[6] is True

    def test_select_all_visible_toggles_only_visible(self, many_rows):
        table = DataTable(many_rows, page_size=5, selectable=True)
        table.toggle_row(50)

        assert table.toggle_all_visible() is True
        assert table.view().selection_status == "all"
        assert table.selection.selected_keys == frozenset({1, 2, 3, 4, 5, 50})

        assert table.toggle_all_visible() is False
        assert table.view().selection_status == "none"
        assert table.selection.selected_keys == frozenset({50})

    def test_selection_survives_sort_and_page(self, item_table):
        item_table.toggle_all_visible()
        item_table.toggle_sort("name")
        item_table.toggle_sort("name")
        item_table.set_page(5)

        assert item_table.view().selection_status == "none"
        assert item_table.selection.selected_keys == frozenset(range(1, 11))
        assert ids(item_table.selected_rows()) == list(range(1, 11))

    def test_indeterminate_status(self, item_table):
        item_table.toggle_row(3)
        assert item_table.view().selection_status == "some"


# =============================================================================
# TestMemoization
# =============================================================================


class TestMemoization:
    """Derived rows are recomputed only when their inputs change."""

    def test_selection_change_skips_search_and_sort(self, item_table):
        calls = []

        def predicate(row, query):
            calls.append(row["id"])
            return query in row["name"]

        table = DataTable(
            item_table.data,
            columns=item_table.columns,
            search_predicate=predicate,
            page_size=10,
        )
        table.set_search("item_0")
        table.toggle_sort("name")
        table.view()
        searched = len(calls)

        table.toggle_row(1)
        table.toggle_all_visible()
        table.view()

        assert len(calls) == searched
        stats = table.cache_stats()
        assert stats["search"]["misses"] == 1
        assert stats["sort"]["misses"] == 1

    def test_page_change_skips_search_and_sort(self, item_table):
        item_table.set_search("item")
        item_table.view()
        item_table.next_page()
        item_table.view()

        stats = item_table.cache_stats()
        assert stats["search"]["misses"] == 1
        assert stats["sort"]["misses"] == 1
        assert stats["page"]["misses"] == 2

    def test_sort_change_skips_search(self, item_table):
        item_table.set_search("x")
        item_table.view()
        item_table.toggle_sort("name")
        item_table.view()

        stats = item_table.cache_stats()
        assert stats["search"]["misses"] == 1
        assert stats["sort"]["misses"] == 2


# =============================================================================
# TestControlledTable
# =============================================================================


class CallerState:
    """Caller-owned table state, like a parent component's props."""

    def __init__(self):
        self.query = ""
        self.sort = SortState.none()
        self.page = PageState(1, 3)
        self.selection = frozenset()
        self.events: List[str] = []

    def holder(self, name: str) -> ControlledState:
        def setter(value):
            self.events.append(name)
            setattr(self, name, value)

        return ControlledState(lambda: getattr(self, name), setter)


class TestControlledTable:
    """All four holders owned by the caller."""

    @pytest.fixture
    def caller(self) -> CallerState:
        return CallerState()

    @pytest.fixture
    def table(self, caller, people_rows) -> DataTable:
        return DataTable(
            people_rows,
            columns=[{"key": "name", "sortable": True}, {"key": "age", "sortable": True}],
            query_state=caller.holder("query"),
            sort_state=caller.holder("sort"),
            page_state=caller.holder("page"),
            selection_state=caller.holder("selection"),
            selectable=True,
        )

    def test_actions_report_to_caller(self, table, caller):
        table.set_search("e")
        table.toggle_sort("age")
        table.toggle_row(1)
        table.next_page()

        assert caller.query == "e"
        assert caller.sort == SortState("age", "asc")
        assert caller.selection == frozenset({1})
        assert caller.page == PageState(2, 3)
        assert caller.events == ["query", "sort", "selection", "page"]

    def test_view_reflects_caller_changes(self, table, caller):
        caller.sort = SortState("age", "desc")
        caller.selection = frozenset({1, 2, 3})
        view = table.view()

        assert ids(view.rows) == [1, 3, 2]
        assert view.selection_status == "all"
        assert view.selected_count == 3

    def test_clamp_writes_back_to_caller(self, table, caller):
        caller.page = PageState(2, 3)
        caller.query = "berlin"
        assert table.view().page == 1
        assert caller.page == PageState(1, 3)

    def test_get_config_reports_controlled(self, table):
        assert all(table.get_config()["controlled"].values())


# =============================================================================
# TestSessionBackedTable
# =============================================================================


def build_session_table(rows) -> DataTable:
    """Build the table the way a Streamlit script does on every rerun."""
    return DataTable(
        rows,
        columns=[{"key": "name", "sortable": True, "sorter": "string"}],
        page_size=2,
        query_state=SessionState("people_query", default=""),
        sort_state=SessionState("people_sort", default=SortState.none()),
        page_state=SessionState("people_page", default=PageState(1, 2)),
        selection_state=SessionState("people_selection", default=frozenset()),
        selectable=True,
    )


class TestSessionBackedTable:
    """State in st.session_state survives rebuilding the table."""

    def test_state_survives_rerun(self, mock_streamlit, people_rows):
        table = build_session_table(people_rows)
        table.toggle_sort("name")
        table.toggle_row(2)
        table.next_page()

        rerun = build_session_table(people_rows)
        view = rerun.view()

        assert view.sort == SortState("name", "asc")
        assert view.page == 2
        assert ids(view.rows) == [3, 4]
        assert rerun.selection.is_selected(2)
        assert mock_streamlit["people_sort"]["counter"] == 1

    def test_sessions_are_isolated(self, mock_streamlit, people_rows):
        build_session_table(people_rows).toggle_row(1)
        mock_streamlit.clear()
        assert build_session_table(people_rows).selection.count == 0


# =============================================================================
# TestDataRefresh
# =============================================================================


class TestDataRefresh:
    """Replacing source data keeps view state and prunes selection."""

    def test_refresh_keeps_search_sort_and_reclamps(self, item_table, many_rows):
        item_table.set_search("item")
        item_table.toggle_sort("name")
        item_table.set_page(10)

        item_table.set_data(many_rows[:25])
        view = item_table.view()

        assert view.query == "item"
        assert view.sort == SortState("name", "asc")
        assert view.page == 3
        assert view.total_pages == 3

    def test_refresh_drops_selection_of_removed_rows(self, item_table, many_rows):
        item_table.selection.select([1, 2, 90])
        item_table.set_data(many_rows[:50])
        assert item_table.selection.selected_keys == frozenset({1, 2})

    def test_refresh_invalidates_caches(self, item_table, many_rows):
        item_table.view()
        item_table.set_data(list(reversed(many_rows)))
        assert ids(item_table.view().rows)[0] == 95
