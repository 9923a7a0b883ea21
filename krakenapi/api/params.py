"""Ordered request parameters.

Insertion order is part of the request: the serialized string is both the POST
body and the input to the request signature, so it must be reproducible.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple

from krakenapi.errors import FrozenParameterSetError

LIST_SEPARATOR = ","


def format_value(value: Any) -> str:
    """Render a parameter value in its wire form."""

    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class ParameterSet:
    """String-keyed map preserving insertion order.

    :meth:`set` overwrites a value in place. :meth:`append_to_list` treats the
    value as a comma separated list and silently ignores items already present.
    """

    def __init__(self, items: Optional[Iterable[Tuple[str, Any]]] = None) -> None:
        self._params: Dict[str, str] = {}
        self._frozen = False
        for key, value in items or ():
            self.set(key, value)

    def set(self, key: str, value: Any) -> "ParameterSet":
        self._check_mutable()
        self._params[key] = format_value(value)
        return self

    def append_to_list(self, key: str, value: Any) -> "ParameterSet":
        self._check_mutable()
        item = format_value(value)
        current = self._params.get(key)
        if not current:
            self._params[key] = item
            return self
        if item in current.split(LIST_SEPARATOR):
            return self
        self._params[key] = f"{current}{LIST_SEPARATOR}{item}"
        return self

    def extend_list(self, key: str, values: Iterable[Any]) -> "ParameterSet":
        for value in values:
            self.append_to_list(key, value)
        return self

    def reset_list(self, key: str, values: Iterable[Any]) -> "ParameterSet":
        """Replace a list value while keeping the key's position."""

        self.set(key, "")
        return self.extend_list(key, values)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._params.get(key, default)

    def items(self):
        return self._params.items()

    def serialize(self) -> Optional[str]:
        """Return ``key1=value1&key2=value2`` in insertion order, or None if empty."""

        if not self._params:
            return None
        return "&".join(f"{key}={value}" for key, value in self._params.items())

    def freeze(self) -> "ParameterSet":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def copy(self) -> "ParameterSet":
        """Return a mutable copy, regardless of whether this set is frozen."""

        return ParameterSet(self._params.items())

    def _check_mutable(self) -> None:
        if self._frozen:
            raise FrozenParameterSetError("parameters cannot change once attached to a request")

    def __contains__(self, key: object) -> bool:
        return key in self._params

    def __getitem__(self, key: str) -> str:
        return self._params[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._params)

    def __len__(self) -> int:
        return len(self._params)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParameterSet):
            return NotImplemented
        return list(self._params.items()) == list(other._params.items())

    def __repr__(self) -> str:
        return f"ParameterSet({list(self._params.items())!r})"


__all__ = ["ParameterSet", "format_value", "LIST_SEPARATOR"]
