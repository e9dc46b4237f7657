"""Pytest configuration and fixtures for objectnet tests."""

import pytest

from objectnet.config import NestedRecordingPolicy, ValidationConfig
from objectnet.memo import IdentityMemo

from sample_records import SampleValidator, sample_rule_validator


@pytest.fixture
def memo():
    return IdentityMemo()


@pytest.fixture
def validator():
    """Hand-written sample validator with the default recording policy."""
    return SampleValidator()


@pytest.fixture
def rule_validator():
    """Table-driven sample validator."""
    return sample_rule_validator()


@pytest.fixture
def always_validator():
    """Sample validator that records every nested result."""
    return SampleValidator(ValidationConfig(nested_recording=NestedRecordingPolicy.ALWAYS))


@pytest.fixture(params=["hand_written", "table_driven"])
def any_validator(request):
    """Both sample validators; they must agree on every scenario."""
    if request.param == "hand_written":
        return SampleValidator()
    return sample_rule_validator()
