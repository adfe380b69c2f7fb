"""Sorter registry for named column comparators."""

from typing import Any, Callable, Dict

Comparator = Callable[[Any, Any], int]

# Global registry mapping sorter names to value comparators
_SORTER_REGISTRY: Dict[str, Comparator] = {}


def register_sorter(name: str):
    """
    Decorator to register a value comparator in the registry.

    A registered comparator receives two field values (never whole rows)
    and returns a negative, zero or positive number.

    Args:
        name: Unique name for the sorter (e.g., 'number', 'string')

    Returns:
        Decorator function

    Example:
        @register_sorter("length")
        def compare_length(a, b):
            return len(a) - len(b)
    """

    def decorator(func: Comparator) -> Comparator:
        if name in _SORTER_REGISTRY:
            raise ValueError(
                f"Sorter '{name}' is already registered to "
                f"{_SORTER_REGISTRY[name].__name__}"
            )
        _SORTER_REGISTRY[name] = func
        return func

    return decorator


def get_sorter(name: str) -> Comparator:
    """
    Get a comparator by its registered name.

    Args:
        name: The registered sorter name

    Returns:
        The comparator function

    Raises:
        KeyError: If no sorter is registered with that name
    """
    if name not in _SORTER_REGISTRY:
        available = sorted(_SORTER_REGISTRY.keys())
        raise KeyError(
            f"No sorter registered with name '{name}'. "
            f"Available sorters: {available}"
        )
    return _SORTER_REGISTRY[name]


def list_registered_sorters() -> Dict[str, Comparator]:
    """Get all registered sorters."""
    return _SORTER_REGISTRY.copy()


def is_registered(name: str) -> bool:
    """Check if a sorter name is registered."""
    return name in _SORTER_REGISTRY


def unregister_sorter(name: str) -> None:
    """Remove a sorter from the registry (useful for testing)."""
    _SORTER_REGISTRY.pop(name, None)
