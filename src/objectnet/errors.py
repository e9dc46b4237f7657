"""Exception taxonomy for objectnet.

Programmer errors (unsupported members, missing instances) fail fast and are
never caught by the engines. Validation findings are not exceptions; they are
recorded in an ObjectValidation. Faults raised by user-supplied predicates
are not wrapped.
"""

import asyncio
from enum import Enum


class ObjectNetError(Exception):
    """Base class for errors raised by objectnet."""
    pass


class UnsupportedMemberError(ObjectNetError, KeyError):
    """Raised when a member key is outside a record type's declared member set."""

    def __init__(self, member: object, record_type: type | None = None):
        self.member = member
        self.record_type = record_type
        type_name = record_type.__name__ if record_type is not None else "record"
        label = f"{type(member).__name__}.{member.name}" if isinstance(member, Enum) else repr(member)
        super().__init__(f"Unsupported member {label} for {type_name}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class NullInstanceError(ObjectNetError, ValueError):
    """Raised when None is supplied where a builder or instance is required."""

    def __init__(self, argument: str = "instance"):
        self.argument = argument
        super().__init__(f"{argument} must not be None")


class RecursionDepthError(ObjectNetError, RecursionError):
    """Raised when a traversal nests too deep.

    max_depth is the configured limit, or None when the walk ran into the
    interpreter's recursion limit (roughly a few hundred levels of nesting
    with the default sys.getrecursionlimit()).
    """

    def __init__(self, max_depth: int | None):
        self.max_depth = max_depth
        if max_depth is None:
            message = "Traversal exceeded the interpreter recursion limit"
        else:
            message = f"Traversal exceeded max_depth={max_depth}"
        super().__init__(message)


class OperationCancelledError(asyncio.CancelledError):
    """Raised when a CancellationToken is triggered during a traversal.

    Like task cancellation it derives from BaseException, so it is not an
    ObjectNetError and passes through `except Exception` blocks.
    """

    def __init__(self, reason: str | None = None):
        self.reason = reason
        super().__init__(reason or "Operation cancelled")
