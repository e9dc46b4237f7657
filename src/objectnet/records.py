"""Validation records produced by the validator engine."""

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class FieldValidation:
    """A single failed member: diagnostic payload, member key and offending value."""
    validation: Any  # message, error code or richer diagnostic object
    member: Enum
    value: Any = None

    def __str__(self) -> str:
        member = self.member.name if isinstance(self.member, Enum) else str(self.member)
        return f"{member}: {self.validation} (value={self.value!r})"


class ObjectValidation(dict):
    """Validation record for one instance: member key -> diagnostic.

    Values are FieldValidation entries or nested ObjectValidation records.
    An empty record means the instance is valid. Records are shared by
    identity, so a nested record may be reachable from several parents (or
    from itself, through a cycle).
    """

    __hash__ = None  # mutable mapping

    @property
    def is_valid(self) -> bool:
        return len(self) == 0

    def field_failures(self) -> dict[Enum, FieldValidation]:
        """Direct field-level failures of this record."""
        return {key: value for key, value in self.items() if isinstance(value, FieldValidation)}

    def nested(self) -> dict[Enum, "ObjectValidation"]:
        """Direct nested records of this record."""
        return {key: value for key, value in self.items() if isinstance(value, ObjectValidation)}

    def iter_failures(self) -> Iterator[tuple[tuple[Enum, ...], FieldValidation]]:
        """Walk every reachable field failure depth-first.

        Each distinct record is visited once, so shared and cyclic records
        are reported under the first path that reaches them.

        Yields:
            (path, failure) where path is the member keys from this record
        """
        seen: set[int] = set()
        stack: list[tuple[tuple[Enum, ...], ObjectValidation]] = [((), self)]

        while stack:
            path, record = stack.pop()
            if id(record) in seen:
                continue
            seen.add(id(record))

            children = []
            for key, value in record.items():
                if isinstance(value, ObjectValidation):
                    children.append((path + (key,), value))
                else:
                    yield path + (key,), value

            # reversed so nested records are visited in insertion order
            stack.extend(reversed(children))

    def __eq__(self, other: object) -> bool:
        """Structural equality that terminates on cyclic record graphs.

        Nested records are compared pairwise; a pair already under comparison
        is assumed equal, so two cycles of the same shape compare equal.
        """
        if not isinstance(other, ObjectValidation):
            return dict.__eq__(self, other)

        assumed: set[tuple[int, int]] = set()
        pending: list[tuple[ObjectValidation, ObjectValidation]] = [(self, other)]

        while pending:
            left, right = pending.pop()
            if left is right or (id(left), id(right)) in assumed:
                continue
            assumed.add((id(left), id(right)))

            if left.keys() != right.keys():
                return False
            for key, value in left.items():
                theirs = right[key]
                if isinstance(value, ObjectValidation) and isinstance(theirs, ObjectValidation):
                    pending.append((value, theirs))
                elif isinstance(value, ObjectValidation) or isinstance(theirs, ObjectValidation):
                    return False
                elif value != theirs:
                    return False
        return True

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __repr__(self) -> str:
        if self.is_valid:
            return "ObjectValidation(valid)"
        keys = ", ".join(key.name if isinstance(key, Enum) else repr(key) for key in self)
        return f"ObjectValidation(invalid: {keys})"
