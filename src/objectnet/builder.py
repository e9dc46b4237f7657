"""Builder nodes and the cycle-safe builder engine.

A builder holds one deferred value per member: a plain value, a nested
ObjectBuilder (possibly forming a cycle) or an AsyncValue resolved at build
time. Building walks the builder graph depth-first and returns one target
instance per distinct builder identity, so shared builders give shared
instances and cyclic builders give genuine reference cycles.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from .cancellation import CancellationToken
from .config import BuilderConfig
from .errors import NullInstanceError
from .members import MemberTable
from .memo import IdentityMemo
from .traversal import Traversal, rollback_on_failure

logger = logging.getLogger(__name__)


class AsyncValue:
    """Deferred member value resolved when the owning builder is built.

    The factory takes no arguments and returns either an awaitable or a plain
    value. The result may itself be an ObjectBuilder, which is then built as
    a nested node.
    """

    def __init__(self, factory: Callable[[], Awaitable[Any] | Any]):
        if not callable(factory):
            raise TypeError("AsyncValue factory must be callable")
        self.factory = factory

    async def resolve(self) -> Any:
        result = self.factory()
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        return f"AsyncValue({getattr(self.factory, '__qualname__', self.factory)!r})"


class ObjectBuilder:
    """Base class for builder nodes.

    Subclasses set the class attribute ``members`` to the MemberTable of the
    record type they build, and usually add typed ``with_<member>`` helpers
    on top of set().
    """

    members: MemberTable

    def __init__(self) -> None:
        self._values: dict[Enum, Any] = {}

    def set(self, key: Enum, value: Any) -> "ObjectBuilder":
        """Set the deferred value of a member.

        Raises:
            UnsupportedMemberError: If key is not a member of the record type
        """
        self.members.get(key)
        self._values[key] = value
        return self

    def unset(self, key: Enum) -> "ObjectBuilder":
        self.members.get(key)
        self._values.pop(key, None)
        return self

    def get(self, key: Enum, default: Any = None) -> Any:
        self.members.get(key)
        return self._values.get(key, default)

    def has(self, key: Enum) -> bool:
        self.members.get(key)
        return key in self._values

    def values(self) -> list[tuple[Enum, Any]]:
        """Snapshot of the values held, in member order."""
        return [(spec.key, self._values[spec.key]) for spec in self.members if spec.key in self._values]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({', '.join(key.name for key, _ in self.values())})"

    async def build(
        self,
        memo: IdentityMemo | None = None,
        cancellation: CancellationToken | None = None,
        config: BuilderConfig | None = None,
    ) -> Any:
        return await build(self, memo=memo, cancellation=cancellation, config=config)

    def build_sync(self, **kwargs) -> Any:
        return build_sync(self, **kwargs)


async def build(
    node: ObjectBuilder,
    memo: IdentityMemo | None = None,
    cancellation: CancellationToken | None = None,
    config: BuilderConfig | None = None,
) -> Any:
    """Build the instance graph rooted at node.

    Args:
        node: Root builder
        memo: Identity memo to thread through the walk (default: a fresh one).
              Passing a memo used by an earlier call reuses its instances.
        cancellation: Optional cooperative cancellation token
        config: Builder configuration (max_depth)

    Returns:
        The root instance; nested members reachable from it are fully populated

    Raises:
        NullInstanceError: If node is None
        UnsupportedMemberError: If a builder holds a key its table does not declare
        RecursionDepthError: If nesting exceeds config.max_depth or the
                             interpreter recursion limit
        asyncio.CancelledError: On cancellation; memo entries added by this call
                                are discarded first
    """
    if node is None:
        raise NullInstanceError("node")

    config = config or BuilderConfig()
    if memo is None:
        memo = IdentityMemo()
    traversal = Traversal(memo=memo, cancellation=cancellation, max_depth=config.max_depth)

    with rollback_on_failure(memo, "build"):
        instance = await _build_node(node, traversal)

    logger.debug(f"Built {type(instance).__name__} graph, memo holds {len(memo)} instances")
    return instance


async def _build_node(node: ObjectBuilder, traversal: Traversal) -> Any:
    memo = traversal.memo
    if node in memo:
        logger.debug(f"Reusing instance for {type(node).__name__} at {id(node):#x}")
        return memo[node]

    traversal.enter()

    table = node.members
    instance = table.create()
    # registered before any member is set so back-edges resolve to this instance
    memo.register(node, instance)
    logger.debug(f"Constructing {type(instance).__name__} at depth {traversal.depth}")

    for key, value in node.values():
        traversal.raise_if_cancelled()
        spec = table.get(key)

        if isinstance(value, AsyncValue):
            value = await value.resolve()
            traversal.raise_if_cancelled()

        if isinstance(value, ObjectBuilder):
            value = await _build_node(value, traversal.descend())

        spec.assign(instance, value)

    return instance


def build_sync(node: ObjectBuilder, **kwargs) -> Any:
    """Run build() to completion in a new event loop."""
    return asyncio.run(build(node, **kwargs))
