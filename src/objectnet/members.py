"""Member capability tables.

A MemberTable maps each key of a record type's member enumeration to the
capabilities the engines need (read, assign, nested or plain). It is built
once per record type; the engines iterate it instead of dispatching on
member keys by hand.
"""

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import UnsupportedMemberError


@dataclass(frozen=True)
class MemberSpec:
    """Capabilities of one member of a record type."""
    key: Enum
    attribute: str
    nested: bool = False
    getter: Callable[[Any], Any] | None = field(default=None, compare=False)
    setter: Callable[[Any, Any], None] | None = field(default=None, compare=False)

    def read(self, instance: Any) -> Any:
        if self.getter is not None:
            return self.getter(instance)
        return getattr(instance, self.attribute)

    def assign(self, instance: Any, value: Any) -> None:
        if self.setter is not None:
            self.setter(instance, value)
        else:
            setattr(instance, self.attribute, value)


class MemberTable:
    """Ordered, exhaustive capability table for one record type.

    Iteration follows the definition order of the member enumeration, which
    is the fixed member order of every traversal.
    """

    def __init__(self, record_type: type, member_enum: type[Enum], specs: Iterable[MemberSpec]):
        self.record_type = record_type
        self.member_enum = member_enum
        by_key = {spec.key: spec for spec in specs}

        unknown = [key for key in by_key if not isinstance(key, member_enum)]
        if unknown:
            raise UnsupportedMemberError(unknown[0], record_type)

        missing = [key for key in member_enum if key not in by_key]
        if missing:
            raise ValueError(
                f"{record_type.__name__} member table has no entry for: "
                f"{', '.join(key.name for key in missing)}"
            )

        self._specs = {key: by_key[key] for key in member_enum}

    @classmethod
    def for_enum(
        cls,
        record_type: type,
        member_enum: type[Enum],
        nested: Iterable[Enum] = (),
        attributes: dict[Enum, str] | None = None,
        getters: dict[Enum, Callable[[Any], Any]] | None = None,
        setters: dict[Enum, Callable[[Any, Any], None]] | None = None,
    ) -> "MemberTable":
        """Build a table with one spec per enum member.

        Args:
            record_type: Target class; must be constructible without arguments
            member_enum: Enumeration of the record type's members
            nested: Keys whose values are nested records
            attributes: Attribute name overrides (default: the enum value)
            getters: Custom read capabilities by key
            setters: Custom assign capabilities by key

        Returns:
            MemberTable covering every member of member_enum
        """
        nested = set(nested)
        attributes = attributes or {}
        getters = getters or {}
        setters = setters or {}

        specs = [
            MemberSpec(
                key=key,
                attribute=attributes.get(key, str(key.value)),
                nested=key in nested,
                getter=getters.get(key),
                setter=setters.get(key),
            )
            for key in member_enum
        ]
        return cls(record_type, member_enum, specs)

    def __iter__(self) -> Iterator[MemberSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, self.member_enum) and key in self._specs

    def __repr__(self) -> str:
        return f"MemberTable({self.record_type.__name__}, {[key.name for key in self._specs]})"

    def keys(self) -> list[Enum]:
        return list(self._specs)

    def get(self, key: Enum) -> MemberSpec:
        """Return the spec for key.

        Raises:
            UnsupportedMemberError: If key is not a member of this record type
        """
        if key not in self:
            raise UnsupportedMemberError(key, self.record_type)
        return self._specs[key]

    def read(self, instance: Any, key: Enum) -> Any:
        return self.get(key).read(instance)

    def assign(self, instance: Any, key: Enum, value: Any) -> None:
        self.get(key).assign(instance, value)

    def create(self) -> Any:
        """Allocate an empty target instance."""
        return self.record_type()
