"""Field-level validation flags."""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterator, Set


class ValidationTracker:
    """Set of named error flags. A flag present means the field is invalid."""

    def __init__(self) -> None:
        self._flags: Set[str] = set()

    def set_error(self, name: str) -> None:
        self._flags.add(name)

    def clear_error(self, name: str) -> None:
        self._flags.discard(name)

    def clear(self) -> None:
        self._flags.clear()

    def has_error(self, name: str) -> bool:
        return name in self._flags

    def is_valid(self) -> bool:
        return not self._flags

    def names(self) -> FrozenSet[str]:
        return frozenset(self._flags)

    def as_dict(self) -> Dict[str, bool]:
        return {name: True for name in sorted(self._flags)}

    def __contains__(self, name: object) -> bool:
        return name in self._flags

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._flags))

    def __len__(self) -> int:
        return len(self._flags)

    def __repr__(self) -> str:
        return f"ValidationTracker({sorted(self._flags)!r})"
