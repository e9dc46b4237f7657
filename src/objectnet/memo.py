"""Identity memo shared by the builder and validator traversals."""

import logging
from collections.abc import Iterator
from typing import Any

logger = logging.getLogger(__name__)

_MISSING = object()


class IdentityMemo:
    """Mapping keyed by reference identity, not equality.

    Every key is held strongly so its id() cannot be reused by another object
    while the memo is alive. A traversal registers a node before descending
    into its children; a later visit of the same node (a shared reference or
    a back-edge of a cycle) gets the registered output back.

    Not safe for concurrent mutation by several traversals.
    """

    def __init__(self) -> None:
        self._entries: dict[int, tuple[Any, Any]] = {}
        self._order: list[int] = []

    def __contains__(self, key: object) -> bool:
        return id(key) in self._entries

    def __getitem__(self, key: object) -> Any:
        entry = self._entries.get(id(key))
        if entry is None:
            raise KeyError(f"{type(key).__name__} at {id(key):#x} is not memoized")
        return entry[1]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Any]:
        return (self._entries[ident][0] for ident in self._order)

    def __repr__(self) -> str:
        return f"IdentityMemo(entries={len(self)})"

    def get(self, key: object, default: Any = None) -> Any:
        entry = self._entries.get(id(key), _MISSING)
        if entry is _MISSING:
            return default
        return entry[1]

    def register(self, key: object, value: Any) -> None:
        """Insert key -> value. A key may be registered only once."""
        ident = id(key)
        if ident in self._entries:
            raise ValueError(f"{type(key).__name__} at {ident:#x} is already memoized")
        self._entries[ident] = (key, value)
        self._order.append(ident)

    def values(self) -> list[Any]:
        return [self._entries[ident][1] for ident in self._order]

    def items(self) -> list[tuple[Any, Any]]:
        return [self._entries[ident] for ident in self._order]

    def checkpoint(self) -> int:
        """Return a mark for rollback()."""
        return len(self._order)

    def rollback(self, mark: int) -> int:
        """Drop every entry registered after mark.

        Returns:
            Number of entries discarded
        """
        discarded = self._order[mark:]
        for ident in discarded:
            del self._entries[ident]
        del self._order[mark:]
        if discarded:
            logger.debug(f"Rolled back {len(discarded)} memo entries to mark {mark}")
        return len(discarded)

    def clear(self) -> None:
        self._entries.clear()
        self._order.clear()
