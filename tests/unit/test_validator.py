"""Tests for the validator engine."""

import asyncio
from enum import Enum

import pytest

from objectnet.config import NestedRecordingPolicy, ValidationConfig
from objectnet.errors import NullInstanceError, RecursionDepthError, UnsupportedMemberError
from objectnet.members import MemberTable
from objectnet.memo import IdentityMemo
from objectnet.records import FieldValidation, ObjectValidation
from objectnet.rules import non_negative, required
from objectnet.validator import AbstractObjectValidator, RuleValidator, validate, validate_sync

from sample_records import Member, SampleBuilder, SampleRecord, SampleValidator, make_chain, sample_rule_validator


class Stray(Enum):
    OTHER = "other"


class Owner:
    class Member(Enum):
        NAME = "name"
        PET = "pet"

    def __init__(self, name=None, pet=None):
        self.name = name
        self.pet = pet


OWNER_MEMBERS = MemberTable.for_enum(Owner, Owner.Member, nested=[Owner.Member.PET])


class Fork:
    class Member(Enum):
        VALUE = "value"
        LEFT = "left"
        RIGHT = "right"

    def __init__(self, value=None, left=None, right=None):
        self.value = value
        self.left = left
        self.right = right


FORK_MEMBERS = MemberTable.for_enum(Fork, Fork.Member, nested=[Fork.Member.LEFT, Fork.Member.RIGHT])


def sample(value=None, another_value=None, nested=None):
    record = SampleRecord()
    record.value = value
    record.another_value = another_value
    record.nested_object = nested
    return record


class TestAbstractObjectValidator:
    """Test the memoized validate() protocol."""

    def test_none_instance_rejected(self, validator):
        with pytest.raises(NullInstanceError) as exc_info:
            validator.validate_sync(None)

        assert exc_info.value.argument == "instance"

    def test_none_instance_is_value_error(self, validator):
        with pytest.raises(ValueError):
            validator.validate_sync(None)

    def test_field_failure_recorded(self, validator):
        record = validator.validate_sync(sample(value=-1))

        failure = record[Member.VALUE]
        assert isinstance(failure, FieldValidation)
        assert failure.member is Member.VALUE
        assert failure.value == -1
        assert failure.validation == "Value must be non-negative"

    def test_valid_nested_not_recorded(self, validator):
        record = validator.validate_sync(sample(value=1, nested=sample(value=2)))

        assert record.is_valid
        assert Member.NESTED_OBJECT not in record

    def test_fresh_memo_per_call(self, validator):
        instance = sample(value=-1)

        first = validator.validate_sync(instance)
        second = validator.validate_sync(instance)

        assert first is not second

    def test_shared_memo_returns_same_record(self, validator, memo):
        instance = sample(value=-1)

        first = validator.validate_sync(instance, memo=memo)
        second = validator.validate_sync(instance, memo=memo)

        assert first is second

    def test_shared_instance_validated_once(self, memo):
        calls = []

        class CountingValidator(SampleValidator):
            async def validate_internal(self, instance, record, context):
                calls.append(instance)
                await super().validate_internal(instance, record, context)

        shared = sample(value=-3)
        left = sample(value=1, nested=shared)
        root = sample(value=1, nested=left)
        validator = CountingValidator()

        asyncio.run(validator.validate(root, memo=memo))
        asyncio.run(validator.validate(shared, memo=memo))

        assert calls.count(shared) == 1
        assert len(memo) == 3

    def test_predicate_fault_propagates(self, memo):
        class FaultyValidator(SampleValidator):
            async def validate_internal(self, instance, record, context):
                await super().validate_internal(instance, record, context)
                self.check_field(record, Member.VALUE, instance.value, lambda value: 1 / 0)

        with pytest.raises(ZeroDivisionError):
            FaultyValidator().validate_sync(sample(value=1, nested=sample(value=2)), memo=memo)

        assert len(memo) == 0

    def test_unknown_member_in_helpers(self, validator):
        with pytest.raises(UnsupportedMemberError):
            validator.check_field(ObjectValidation(), Stray.OTHER, 1, lambda value: None)

    def test_module_level_helpers(self, validator):
        instance = sample(value=-1)

        assert not asyncio.run(validate(validator, instance)).is_valid
        assert not validate_sync(validator, instance).is_valid

    def test_abstract_method_required(self):
        class Incomplete(AbstractObjectValidator):
            members = OWNER_MEMBERS

        with pytest.raises(TypeError):
            Incomplete()


class TestRecordingPolicy:
    """Test how nested records are recorded in their parents."""

    def test_invalid_only_skips_in_progress_ancestor(self, validator):
        root = sample(value=1)
        root.nested_object = sample(value=1, nested=root)

        record = validator.validate_sync(root)

        assert record.is_valid

    def test_invalid_only_ignores_late_ancestor_errors(self, validator):
        root = sample(value=-1)
        child = sample(value=1, nested=root)
        root.nested_object = child

        record = validator.validate_sync(root)

        # the child saw the root record while it was still empty
        assert set(record) == {Member.VALUE}

    def test_always_records_every_nested_result(self, always_validator):
        record = always_validator.validate_sync(sample(value=1, nested=sample(value=2)))

        assert not record.is_valid
        assert record[Member.NESTED_OBJECT].is_valid

    def test_policy_from_string_config(self):
        config = ValidationConfig(nestedRecording="always")
        validator = SampleValidator(config)

        record = validator.validate_sync(sample(nested=sample()))

        assert Member.NESTED_OBJECT in record
        assert config.nested_recording == NestedRecordingPolicy.ALWAYS


class TestMaxDepth:
    """Test the optional validation nesting limit."""

    def test_deep_graph_rejected(self):
        instance = SampleBuilder().build_sync()
        node = instance
        for _ in range(4):
            node.nested_object = SampleRecord()
            node = node.nested_object

        validator = SampleValidator(ValidationConfig(max_depth=2))

        with pytest.raises(RecursionDepthError):
            validator.validate_sync(instance)

    def test_cycle_within_limit(self):
        instance = make_chain(3)[0].build_sync()
        validator = SampleValidator(ValidationConfig(max_depth=2))

        record = validator.validate_sync(instance)

        assert not record.is_valid

    def test_interpreter_limit_reported_as_depth_error(self, validator, memo):
        instance = SampleRecord()
        node = instance
        for _ in range(2000):
            node.nested_object = SampleRecord()
            node = node.nested_object

        with pytest.raises(RecursionDepthError) as exc_info:
            validator.validate_sync(instance, memo=memo)

        assert exc_info.value.max_depth is None
        assert len(memo) == 0


class TestRuleValidator:
    """Test the table-driven validator."""

    def test_first_failing_rule_wins(self):
        messages = []

        def first(value):
            messages.append("first")
            return "first failed"

        def second(value):
            messages.append("second")
            return "second failed"

        validator = sample_rule_validator()
        validator.add_rule(Member.VALUE, [first, second])

        record = validator.validate_sync(sample(value=1))

        assert record[Member.VALUE].validation == "first failed"
        assert messages == ["first"]

    def test_rule_for_unknown_member_rejected(self):
        with pytest.raises(UnsupportedMemberError):
            RuleValidator(OWNER_MEMBERS, rules={Member.VALUE: required()})

    def test_nested_member_rule_replaces_descent(self):
        validator = RuleValidator(OWNER_MEMBERS, rules={Owner.Member.PET: required()})

        record = validator.validate_sync(Owner(name="Ada"))

        assert record[Owner.Member.PET].validation == "Value is required"

    def test_delegate_validates_nested_type(self):
        pet_validator = sample_rule_validator()
        owner_validator = RuleValidator(
            OWNER_MEMBERS,
            rules={Owner.Member.NAME: required()},
            delegates={SampleRecord: pet_validator},
        )

        record = owner_validator.validate_sync(Owner(name="Ada", pet=sample(value=-1)))

        assert set(record) == {Owner.Member.PET}
        assert set(record[Owner.Member.PET]) == {Member.VALUE}

    def test_delegate_lookup_follows_mro(self):
        class SpecialRecord(SampleRecord):
            pass

        delegate = sample_rule_validator()
        validator = RuleValidator(OWNER_MEMBERS).delegate(SampleRecord, delegate)

        assert validator.validator_for(SpecialRecord()) is delegate
        assert validator.validator_for(Owner()) is validator

    def test_delegates_share_memo_across_types(self, memo):
        owner = Owner(name="Ada")
        pet = sample(value=1)
        owner.pet = pet

        owner_validator = RuleValidator(OWNER_MEMBERS, delegates={SampleRecord: sample_rule_validator()})
        record = owner_validator.validate_sync(owner, memo=memo)

        assert record.is_valid
        assert pet in memo and owner in memo

    def test_agrees_with_hand_written_validator(self, validator, rule_validator):
        for builders in (make_chain(3), make_chain(2, value=1, another_value="x"), make_chain(1, value=1)):
            instance = builders[0].build_sync()
            assert set(validator.validate_sync(instance)) == set(rule_validator.validate_sync(instance))


class TestSeveralNestedMembers:
    """Test back-edges reached from a later nested member."""

    @pytest.fixture
    def fork_validator(self):
        return RuleValidator(FORK_MEMBERS, rules={Fork.Member.VALUE: non_negative()})

    def make_fork(self, left_value):
        root = Fork(value=1, left=Fork(value=left_value))
        # the right branch leads back to the root after the left one was checked
        root.right = Fork(value=1, left=root)
        return root

    def test_back_edge_to_non_empty_ancestor_is_recorded(self, fork_validator):
        record = fork_validator.validate_sync(self.make_fork(left_value=-1))

        assert list(record) == [Fork.Member.LEFT, Fork.Member.RIGHT]
        assert list(record[Fork.Member.LEFT]) == [Fork.Member.VALUE]
        assert list(record[Fork.Member.RIGHT]) == [Fork.Member.LEFT]
        assert record[Fork.Member.RIGHT][Fork.Member.LEFT] is record

    def test_cyclic_record_reports_each_failure_once(self, fork_validator):
        record = fork_validator.validate_sync(self.make_fork(left_value=-1))

        failures = list(record.iter_failures())

        assert [path for path, _ in failures] == [(Fork.Member.LEFT, Fork.Member.VALUE)]

    def test_root_validity_still_composes(self, fork_validator):
        invalid = fork_validator.validate_sync(self.make_fork(left_value=-1))
        valid = fork_validator.validate_sync(self.make_fork(left_value=1))

        assert not invalid.is_valid
        assert valid.is_valid

    def test_earlier_back_edge_sees_empty_ancestor(self, fork_validator):
        root = Fork(value=-1, right=Fork(value=1))
        root.left = Fork(value=1, left=root)

        record = fork_validator.validate_sync(root)

        assert list(record) == [Fork.Member.VALUE]
