"""Per-call traversal state shared by the builder and validator engines."""

import asyncio
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace

from .cancellation import CancellationToken
from .errors import RecursionDepthError
from .memo import IdentityMemo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Traversal:
    """State threaded through one top-level build or validate call.

    The memo is the same object in every frame; depth grows by one per nested
    descent. Memo hits return before any check, so a back-edge never counts
    against max_depth.
    """
    memo: IdentityMemo
    cancellation: CancellationToken | None = None
    max_depth: int | None = None
    depth: int = 0

    def raise_if_cancelled(self) -> None:
        if self.cancellation is not None:
            self.cancellation.raise_if_cancelled()

    def enter(self) -> None:
        """Checks run before a new node is registered."""
        self.raise_if_cancelled()
        if self.max_depth is not None and self.depth > self.max_depth:
            raise RecursionDepthError(self.max_depth)

    def descend(self) -> "Traversal":
        return replace(self, depth=self.depth + 1)


@contextmanager
def rollback_on_failure(memo: IdentityMemo, operation: str) -> Iterator[None]:
    """Discard memo entries added inside the block if it does not complete.

    Entries registered before the block (e.g. by an earlier call sharing the
    memo) are kept. Exhausting the interpreter recursion limit on a deep
    acyclic graph is reported as RecursionDepthError.
    """
    mark = memo.checkpoint()
    try:
        yield
    except asyncio.CancelledError:
        discarded = memo.rollback(mark)
        logger.warning(f"{operation} cancelled, discarded {discarded} partial memo entries")
        raise
    except RecursionDepthError:
        memo.rollback(mark)
        raise
    except RecursionError as e:
        memo.rollback(mark)
        logger.warning(f"{operation} hit the interpreter recursion limit, set max_depth to bound nesting")
        raise RecursionDepthError(None) from e
    except BaseException:
        memo.rollback(mark)
        raise
