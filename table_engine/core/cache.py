"""Single-entry memoization for derived table data.

Each pipeline stage keeps exactly one cached result, keyed on the tuple of
inputs that produced it. When the inputs change the old entry is replaced,
so memory stays O(number of stages).
"""

from typing import Any, Callable, Hashable, Optional, Tuple

_EMPTY = object()


class StageCache:
    """
    Cache holding the most recent result of one stage.

    Attributes:
        name: Stage name used in diagnostics
        hits: Number of lookups answered from the cache
        misses: Number of recomputations
    """

    def __init__(self, name: str):
        self.name = name
        self.hits = 0
        self.misses = 0
        self._key: Any = _EMPTY
        self._value: Any = None

    def get_or_compute(
        self, key: Tuple[Hashable, ...], compute: Callable[[], Any]
    ) -> Tuple[Any, bool]:
        """
        Return the cached value for ``key`` or compute and store it.

        Args:
            key: Tuple of the stage inputs
            compute: Zero-argument function producing the value

        Returns:
            Tuple of (value, recomputed)
        """
        if self._key is not _EMPTY and self._key == key:
            self.hits += 1
            return self._value, False

        value = compute()
        self._key = key
        self._value = value
        self.misses += 1
        return value, True

    def peek(self) -> Optional[Any]:
        """Return the cached value without touching counters."""
        return self._value if self._key is not _EMPTY else None

    def clear(self) -> None:
        """Drop the cached entry."""
        self._key = _EMPTY
        self._value = None

    def __repr__(self) -> str:
        return f"StageCache(name='{self.name}', hits={self.hits}, misses={self.misses})"
