"""Cycle-safe validator engine.

Validation walks an instance graph depth-first and produces one
ObjectValidation per distinct instance identity. The record of an instance
is memoized before any of its members are checked, so a cyclic back-edge
gets the ancestor's record (still being populated) instead of recursing.

A nested record is recorded in its parent only if it is invalid at the
moment it is observed. A back-edge reaching an ancestor whose record is
still empty adds nothing, so a cycle alone never makes a graph invalid. A
back-edge to an ancestor already holding findings is recorded, which can
mark an intermediate node invalid without changing the root's verdict.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .cancellation import CancellationToken
from .config import NestedRecordingPolicy, ValidationConfig
from .errors import NullInstanceError
from .members import MemberTable
from .memo import IdentityMemo
from .records import FieldValidation, ObjectValidation
from .traversal import Traversal, rollback_on_failure

logger = logging.getLogger(__name__)

# Returns None when the value passes, otherwise the diagnostic payload.
FieldPredicate = Callable[[Any], Any]


@dataclass(frozen=True)
class ValidationContext(Traversal):
    """Traversal state of one top-level validate call."""
    nested_recording: NestedRecordingPolicy = NestedRecordingPolicy.INVALID_ONLY


class AbstractObjectValidator(ABC):
    """Base class for validators of one record type.

    Subclasses provide ``members`` (class attribute or set in __init__) and
    implement validate_internal() with the check_field() and
    validate_nested() helpers.
    """

    members: MemberTable

    def __init__(self, config: ValidationConfig | None = None):
        self.config = config or ValidationConfig()

    async def validate(
        self,
        instance: Any,
        memo: IdentityMemo | None = None,
        cancellation: CancellationToken | None = None,
    ) -> ObjectValidation:
        """Validate the instance graph rooted at instance.

        Args:
            instance: Root instance
            memo: Identity memo to thread through the walk (default: a fresh
                  one). Records already in a shared memo are returned as-is.
            cancellation: Optional cooperative cancellation token

        Returns:
            Root validation record, empty if every reachable instance is valid

        Raises:
            NullInstanceError: If instance is None
            RecursionDepthError: If nesting exceeds config.max_depth or the
                                 interpreter recursion limit
            asyncio.CancelledError: On cancellation; memo entries added by this
                                    call are discarded first
        """
        if instance is None:
            raise NullInstanceError("instance")

        if memo is None:
            memo = IdentityMemo()
        context = ValidationContext(
            memo=memo,
            cancellation=cancellation,
            max_depth=self.config.max_depth,
            nested_recording=NestedRecordingPolicy(self.config.nested_recording),
        )

        with rollback_on_failure(memo, "validate"):
            record = await self.validate_in_context(instance, context)

        logger.info(
            f"Validated {type(instance).__name__}: "
            f"{'valid' if record.is_valid else 'invalid'}, {len(memo)} records in memo"
        )
        return record

    def validate_sync(self, instance: Any, **kwargs) -> ObjectValidation:
        """Run validate() to completion in a new event loop."""
        return asyncio.run(self.validate(instance, **kwargs))

    async def validate_in_context(self, instance: Any, context: ValidationContext) -> ObjectValidation:
        """Validate one node inside an ongoing traversal."""
        if instance is None:
            raise NullInstanceError("instance")

        memo = context.memo
        if instance in memo:
            logger.debug(f"Reusing record for {type(instance).__name__} at {id(instance):#x}")
            return memo[instance]

        context.enter()

        record = ObjectValidation()
        # registered before any check so back-edges resolve to this record
        memo.register(instance, record)
        logger.debug(f"Validating {type(instance).__name__} at depth {context.depth}")

        await self.validate_internal(instance, record, context)
        return record

    @abstractmethod
    async def validate_internal(self, instance: Any, record: ObjectValidation, context: ValidationContext) -> None:
        """Check the members of instance and add findings to record."""
        pass

    async def validate_nested(
        self,
        context: ValidationContext,
        record: ObjectValidation,
        key: Enum,
        nested: Any,
        validator: "AbstractObjectValidator | None" = None,
    ) -> ObjectValidation | None:
        """Validate a nested instance and record it under key if invalid.

        Args:
            context: Current traversal context
            record: Record of the instance that owns the member
            key: Member holding the nested instance
            nested: The nested instance; None is skipped
            validator: Validator for the nested instance (default: self)

        Returns:
            The nested record, or None if nested is None
        """
        self.members.get(key)
        if nested is None:
            return None

        context.raise_if_cancelled()
        validator = validator or self
        nested_record = await validator.validate_in_context(nested, context.descend())

        # an in-progress ancestor reached through a back-edge is judged by what it holds so far
        if context.nested_recording == NestedRecordingPolicy.ALWAYS or not nested_record.is_valid:
            record[key] = nested_record
        return nested_record

    def check_field(
        self,
        record: ObjectValidation,
        key: Enum,
        value: Any,
        predicate: FieldPredicate,
    ) -> FieldValidation | None:
        """Apply predicate to a member value and record a failure.

        Exceptions raised by the predicate propagate unchanged.

        Returns:
            The recorded FieldValidation, or None if the value passed
        """
        self.members.get(key)
        diagnostic = predicate(value)
        if diagnostic is None:
            return None

        failure = FieldValidation(diagnostic, key, value)
        record[key] = failure
        return failure


class RuleValidator(AbstractObjectValidator):
    """Table-driven validator.

    Nested members are visited first, in member order, then predicates are
    applied to plain members in member order. An ancestor's own field
    failures are therefore never visible through a back-edge. With several
    nested members, though, an earlier invalid child makes the ancestor
    record non-empty, and a back-edge from a later child then records it,
    giving a cyclic record graph. Predicates on a nested member run against
    the nested instance before descent; a failure there replaces the descent.
    The first failing predicate of a member wins.
    """

    def __init__(
        self,
        members: MemberTable,
        rules: dict[Enum, FieldPredicate | Iterable[FieldPredicate]] | None = None,
        delegates: dict[type, AbstractObjectValidator] | None = None,
        config: ValidationConfig | None = None,
    ):
        super().__init__(config)
        self.members = members
        self.rules: dict[Enum, list[FieldPredicate]] = {}
        self.delegates: dict[type, AbstractObjectValidator] = {}

        for key, predicates in (rules or {}).items():
            self.add_rule(key, predicates)
        for record_type, validator in (delegates or {}).items():
            self.delegate(record_type, validator)

    def add_rule(self, key: Enum, predicates: FieldPredicate | Iterable[FieldPredicate]) -> "RuleValidator":
        self.members.get(key)
        if callable(predicates):
            predicates = [predicates]
        self.rules.setdefault(key, []).extend(predicates)
        return self

    def delegate(self, record_type: type, validator: AbstractObjectValidator) -> "RuleValidator":
        """Use validator for nested instances of record_type."""
        self.delegates[record_type] = validator
        return self

    def validator_for(self, instance: Any) -> AbstractObjectValidator:
        for cls in type(instance).__mro__:
            if cls in self.delegates:
                return self.delegates[cls]
        return self

    async def validate_internal(self, instance: Any, record: ObjectValidation, context: ValidationContext) -> None:
        for spec in self.members:
            if not spec.nested:
                continue
            context.raise_if_cancelled()
            value = spec.read(instance)
            if self._apply_rules(record, spec.key, value) is not None:
                continue
            await self.validate_nested(context, record, spec.key, value, self.validator_for(value))

        for spec in self.members:
            if spec.nested:
                continue
            context.raise_if_cancelled()
            self._apply_rules(record, spec.key, spec.read(instance))

    def _apply_rules(self, record: ObjectValidation, key: Enum, value: Any) -> FieldValidation | None:
        for predicate in self.rules.get(key, ()):
            failure = self.check_field(record, key, value, predicate)
            if failure is not None:
                return failure
        return None


async def validate(
    validator: AbstractObjectValidator,
    instance: Any,
    memo: IdentityMemo | None = None,
    cancellation: CancellationToken | None = None,
) -> ObjectValidation:
    return await validator.validate(instance, memo=memo, cancellation=cancellation)


def validate_sync(validator: AbstractObjectValidator, instance: Any, **kwargs) -> ObjectValidation:
    """Run validator.validate() to completion in a new event loop."""
    return asyncio.run(validator.validate(instance, **kwargs))
