"""Named narrative flags."""
from __future__ import annotations

from typing import Dict, Iterator, Mapping

from saga.domain.conditions import flag_values_equal

_MISSING = object()


class FlagStore:
    """Mapping of flag name to value; last write wins."""

    def __init__(self, initial: Mapping[str, object] | None = None) -> None:
        self._flags: Dict[str, object] = dict(initial or {})

    def set(self, name: str, value: object) -> object | None:
        """Store ``value`` and return the previous value (None when unset)."""
        previous = self._flags.get(name)
        self._flags[name] = value
        return previous

    def get(self, name: str, default: object | None = None) -> object | None:
        return self._flags.get(name, default)

    def check(self, name: str, expected: object) -> bool:
        """Equality test; an unset flag never matches."""
        value = self._flags.get(name, _MISSING)
        if value is _MISSING:
            return False
        return flag_values_equal(value, expected)

    def as_dict(self) -> Dict[str, object]:
        return dict(self._flags)

    def copy(self) -> "FlagStore":
        return FlagStore(self._flags)

    def __contains__(self, name: object) -> bool:
        return name in self._flags

    def __iter__(self) -> Iterator[str]:
        return iter(self._flags)

    def __len__(self) -> int:
        return len(self._flags)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FlagStore):
            return NotImplemented
        return self._flags == other._flags

    def __repr__(self) -> str:
        return f"FlagStore({self._flags!r})"
