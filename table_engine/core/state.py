"""State holders for controlled and uncontrolled table state.

Every piece of table state (search query, sort, page, selection) lives in a
StateHolder. The table only talks to the holder interface, so the same code
runs whether the table owns its state or the caller does.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict


class StateHolder(ABC):
    """Abstract holder for a single piece of state."""

    @abstractmethod
    def get(self) -> Any:
        """Return the current value."""
        pass

    @abstractmethod
    def set(self, value: Any) -> None:
        """Replace the current value."""
        pass

    @property
    def controlled(self) -> bool:
        """True when the value is owned outside the table."""
        return False


class LocalState(StateHolder):
    """Uncontrolled holder: the table owns the value."""

    def __init__(self, initial: Any = None):
        self._value = initial

    def get(self) -> Any:
        return self._value

    def set(self, value: Any) -> None:
        self._value = value

    def __repr__(self) -> str:
        return f"LocalState({self._value!r})"


class ControlledState(StateHolder):
    """
    Controlled holder: reads and writes go straight to the caller.

    No copy of the value is kept. Every read calls ``getter`` and every
    write calls ``setter`` with the new value, which the caller is expected
    to store and return from ``getter`` afterwards.

    Args:
        getter: Returns the caller's current value
        setter: Change callback receiving the new value
    """

    def __init__(self, getter: Callable[[], Any], setter: Callable[[Any], Any]):
        self._getter = getter
        self._setter = setter

    def get(self) -> Any:
        return self._getter()

    def set(self, value: Any) -> None:
        self._setter(value)

    @property
    def controlled(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"ControlledState(getter={self._getter!r}, setter={self._setter!r})"


class SessionState(StateHolder):
    """
    Holder backed by Streamlit's session_state.

    Values survive Streamlit reruns. Each holder keeps a counter of
    accepted changes next to its value.

    Args:
        session_key: Key in st.session_state. Use different keys for
            independent tables.
        default: Value used the first time the key is created.
    """

    def __init__(self, session_key: str, default: Any = None):
        self._session_key = session_key
        self._default = default
        self._ensure_session_state()

    def _ensure_session_state(self) -> None:
        """Ensure session state is initialized."""
        import streamlit as st

        if self._session_key not in st.session_state:
            st.session_state[self._session_key] = {
                "counter": 0,
                "value": self._default,
            }

    @property
    def _state(self) -> Dict[str, Any]:
        import streamlit as st

        self._ensure_session_state()
        return st.session_state[self._session_key]

    @property
    def counter(self) -> int:
        """Get the number of accepted changes."""
        return self._state["counter"]

    def get(self) -> Any:
        return self._state["value"]

    def set(self, value: Any) -> None:
        if self._state["value"] == value:
            return
        self._state["value"] = value
        self._state["counter"] += 1

    @property
    def controlled(self) -> bool:
        return True

    def clear(self) -> None:
        """Restore the default value and reset the counter."""
        self._state["value"] = self._default
        self._state["counter"] = 0

    def __repr__(self) -> str:
        return (
            f"SessionState(session_key='{self._session_key}', "
            f"counter={self.counter}, "
            f"value={self.get()!r})"
        )
