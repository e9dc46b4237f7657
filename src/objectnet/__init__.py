"""objectnet - cycle-safe object builders and validators.

objectnet builds instances of user-defined record types from fluent builder
graphs and validates instance graphs recursively. Both walks memoize by
object identity, so self-referential and mutually-referential graphs
terminate and keep their sharing.
"""

__version__ = "0.1.0"
__author__ = "objectnet contributors"
__description__ = "Cycle-safe object builders and validators"

from objectnet.builder import AsyncValue, ObjectBuilder, build, build_sync
from objectnet.cancellation import CancellationToken
from objectnet.config import NestedRecordingPolicy, ObjectNetConfig, configure_logging, load_config
from objectnet.errors import (
    NullInstanceError,
    ObjectNetError,
    OperationCancelledError,
    RecursionDepthError,
    UnsupportedMemberError,
)
from objectnet.members import MemberSpec, MemberTable
from objectnet.memo import IdentityMemo
from objectnet.records import FieldValidation, ObjectValidation
from objectnet.validator import (
    AbstractObjectValidator,
    RuleValidator,
    ValidationContext,
    validate,
    validate_sync,
)

__all__ = [
    "__version__",
    "__author__",
    "__description__",
    "AbstractObjectValidator",
    "AsyncValue",
    "CancellationToken",
    "FieldValidation",
    "IdentityMemo",
    "MemberSpec",
    "MemberTable",
    "NestedRecordingPolicy",
    "NullInstanceError",
    "ObjectBuilder",
    "ObjectNetConfig",
    "ObjectNetError",
    "ObjectValidation",
    "OperationCancelledError",
    "RecursionDepthError",
    "RuleValidator",
    "UnsupportedMemberError",
    "ValidationContext",
    "build",
    "build_sync",
    "configure_logging",
    "load_config",
    "validate",
    "validate_sync",
]
