"""Reusable field predicates for RuleValidator.

Each factory returns a predicate: value -> None when the value passes,
otherwise a message describing the failure. None values pass every rule
except required().
"""

import re
from collections.abc import Iterable
from typing import Any

from .validator import FieldPredicate


def required() -> FieldPredicate:
    def predicate(value: Any) -> str | None:
        if value is None:
            return "Value is required"
        return None
    return predicate


def non_negative() -> FieldPredicate:
    def predicate(value: Any) -> str | None:
        if value is not None and value < 0:
            return "Value must be non-negative"
        return None
    return predicate


def in_range(minimum: float, maximum: float) -> FieldPredicate:
    """Inclusive numeric range."""
    if minimum > maximum:
        raise ValueError(f"in_range minimum {minimum} is greater than maximum {maximum}")

    def predicate(value: Any) -> str | None:
        if value is not None and not (minimum <= value <= maximum):
            return f"Value must be between {minimum} and {maximum}"
        return None
    return predicate


def min_length(length: int) -> FieldPredicate:
    def predicate(value: Any) -> str | None:
        if value is not None and len(value) < length:
            return f"Length must be at least {length}"
        return None
    return predicate


def max_length(length: int) -> FieldPredicate:
    def predicate(value: Any) -> str | None:
        if value is not None and len(value) > length:
            return f"Length must be at most {length}"
        return None
    return predicate


def matches(pattern: str) -> FieldPredicate:
    """Full match of a regular expression against a string value."""
    compiled = re.compile(pattern)

    def predicate(value: Any) -> str | None:
        if value is not None and not compiled.fullmatch(value):
            return f"Value must match pattern {pattern!r}"
        return None
    return predicate


def one_of(allowed: Iterable[Any]) -> FieldPredicate:
    allowed = tuple(allowed)

    def predicate(value: Any) -> str | None:
        if value is not None and value not in allowed:
            return f"Value must be one of {', '.join(repr(a) for a in allowed)}"
        return None
    return predicate
