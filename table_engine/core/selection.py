"""Row selection keyed by row identity."""

from typing import (
    Any,
    Callable,
    FrozenSet,
    Hashable,
    Iterable,
    List,
    Optional,
    Sequence,
    Union,
)

from .columns import get_field
from .state import LocalState, StateHolder

KeyField = Union[str, Callable[[Any], Hashable]]

SELECTION_NONE = "none"
SELECTION_SOME = "some"
SELECTION_ALL = "all"


class SelectionTracker:
    """
    Tracks selected row identifiers independently of what is visible.

    Selection is a property of row identity, not of view position: search,
    sort and pagination never add or remove identifiers. Only the mutating
    methods below change membership.

    The set lives in a StateHolder. With the default LocalState the tracker
    owns it (uncontrolled). With a ControlledState the caller owns it: the
    tracker reads it through the getter on every call and hands every new
    set to the change callback, never keeping a copy.

    Rows whose identifiers collide, or that have no identifier, are a caller
    contract violation and are not detected.

    Example:
        tracker = SelectionTracker("id")
        tracker.toggle(3)
        tracker.select_all_visible(page_rows)
    """

    def __init__(self, key_field: KeyField = "id", state: Optional[StateHolder] = None):
        """
        Initialize the tracker.

        Args:
            key_field: Field name, or callable returning a row's identifier
            state: Holder for the selected identifiers. Defaults to an
                uncontrolled LocalState starting empty.
        """
        self._key_field = key_field
        self._state = state if state is not None else LocalState(frozenset())

    @property
    def key_field(self) -> KeyField:
        return self._key_field

    @property
    def state(self) -> StateHolder:
        return self._state

    def row_key(self, row: Any) -> Hashable:
        """Return the identifier of a row."""
        if callable(self._key_field):
            return self._key_field(row)
        return get_field(row, self._key_field)

    @property
    def selected_keys(self) -> FrozenSet[Hashable]:
        """Current selection as a frozenset."""
        value = self._state.get()
        if value is None:
            return frozenset()
        return frozenset(value)

    @property
    def count(self) -> int:
        return len(self.selected_keys)

    def _commit(self, current: FrozenSet[Hashable], new: FrozenSet[Hashable]) -> bool:
        if new == current:
            return False
        self._state.set(new)
        return True

    def is_selected(self, key: Hashable) -> bool:
        return key in self.selected_keys

    def toggle(self, key: Hashable) -> bool:
        """
        Flip membership of one identifier.

        Returns:
            True if the identifier is selected afterwards
        """
        current = self.selected_keys
        if key in current:
            self._commit(current, current - {key})
            return False
        self._commit(current, current | {key})
        return True

    def select(self, keys: Iterable[Hashable]) -> bool:
        """Add identifiers. Returns True if the selection changed."""
        current = self.selected_keys
        return self._commit(current, current | frozenset(keys))

    def deselect(self, keys: Iterable[Hashable]) -> bool:
        """Remove identifiers. Returns True if the selection changed."""
        current = self.selected_keys
        return self._commit(current, current - frozenset(keys))

    def clear(self) -> bool:
        """Deselect everything. Returns True if anything was selected."""
        return self._commit(self.selected_keys, frozenset())

    def select_all_visible(self, visible_rows: Sequence[Any]) -> bool:
        """
        Toggle the "select all" control for the visible rows.

        If every visible row is already selected, the visible rows are
        deselected. Otherwise every visible row is added. Selections outside
        the visible rows are left alone either way.

        Returns:
            True if the visible rows are all selected afterwards
        """
        visible_keys = frozenset(self.row_key(row) for row in visible_rows)
        current = self.selected_keys
        if visible_keys and visible_keys <= current:
            self._commit(current, current - visible_keys)
            return False
        self._commit(current, current | visible_keys)
        return bool(visible_keys)

    def is_all_selected(self, visible_rows: Sequence[Any]) -> bool:
        """True iff there are visible rows and all of them are selected."""
        if not visible_rows:
            return False
        current = self.selected_keys
        return all(self.row_key(row) in current for row in visible_rows)

    def is_some_selected(self, visible_rows: Sequence[Any]) -> bool:
        """True iff at least one, but not every, visible row is selected."""
        return self.selection_status(visible_rows) == SELECTION_SOME

    def selection_status(self, visible_rows: Sequence[Any]) -> str:
        """
        Ternary state of the select-all control.

        Returns:
            'none', 'some' or 'all'
        """
        current = self.selected_keys
        selected = sum(1 for row in visible_rows if self.row_key(row) in current)
        if selected == 0:
            return SELECTION_NONE
        if selected == len(visible_rows):
            return SELECTION_ALL
        return SELECTION_SOME

    def selected_rows(self, rows: Iterable[Any]) -> List[Any]:
        """Return the rows from ``rows`` that are selected, in order."""
        current = self.selected_keys
        return [row for row in rows if self.row_key(row) in current]

    def retain(self, source_rows: Iterable[Any]) -> bool:
        """
        Drop identifiers whose rows are no longer in the source data.

        Returns:
            True if any identifier was dropped
        """
        current = self.selected_keys
        if not current:
            return False
        present = frozenset(self.row_key(row) for row in source_rows)
        return self._commit(current, current & present)

    def __repr__(self) -> str:
        return (
            f"SelectionTracker(key_field={self._key_field!r}, "
            f"selected={sorted(self.selected_keys, key=repr)})"
        )
