"""Keyword parameter history.

Each keyword maps to the ordered list of values it has been given, oldest
first. The last entry is the current value. Duplicates are kept so the list
doubles as an audit trail.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from prompt_manager.errors import ParameterError

_MISSING = object()


class ParameterStore:
    """Mapping of keyword token to value history.

    Usage:
        params = ParameterStore()
        params.set("[NAME]", "Alice")
        params.append("[NAME]", "Bob")
        params.current("[NAME]")   # "Bob"
        params.history("[NAME]")   # ["Alice", "Bob"]
    """

    def __init__(self, values: Mapping[str, Any] | None = None):
        self._values: dict[str, list[Any]] = {}
        if values:
            for key, value in values.items():
                self.set(key, value)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ParameterStore:
        """Build a store from a token -> history (or scalar) mapping."""
        return cls(data)

    def set(self, key: str, value: Any) -> None:
        """Replace the history for key.

        A list or tuple becomes the new history; any other value is sugar for
        a one-element history.

        Raises:
            ParameterError: If the new history would be empty
        """
        if isinstance(value, (list, tuple)):
            history = list(value)
        else:
            history = [value]
        if not history:
            raise ParameterError(f"History for {key} cannot be empty", missing=[key])
        self._values[key] = history

    def append(self, key: str, value: Any) -> None:
        """Append value to the history for key, creating it if needed."""
        self._values.setdefault(key, []).append(value)

    def current(self, key: str, default: Any = _MISSING) -> Any:
        """Return the most recent value for key.

        Raises:
            ParameterError: If key has no value and no default was given
        """
        history = self._values.get(key)
        if history:
            return history[-1]
        if default is _MISSING:
            raise ParameterError(f"No value for {key}", missing=[key])
        return default

    def history(self, key: str) -> list[Any]:
        """Return a copy of the history for key (empty if unknown)."""
        return list(self._values.get(key, []))

    def keys(self) -> list[str]:
        return list(self._values)

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def retain(self, keys: Iterable[str]) -> list[str]:
        """Drop every key not in keys.

        Returns:
            The keys that were dropped
        """
        keep = set(keys)
        dropped = [key for key in self._values if key not in keep]
        for key in dropped:
            del self._values[key]
        return dropped

    def current_values(self) -> dict[str, Any]:
        """Return token -> current value for every known key."""
        return {key: history[-1] for key, history in self._values.items()}

    def to_dict(self) -> dict[str, list[Any]]:
        return copy.deepcopy(self._values)

    def copy(self) -> ParameterStore:
        clone = ParameterStore()
        clone._values = self.to_dict()
        return clone

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._values))

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ParameterStore):
            return self._values == other._values
        return NotImplemented

    def __repr__(self) -> str:
        return f"ParameterStore({self._values!r})"
