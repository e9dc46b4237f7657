"""Cooperative cancellation for build and validate traversals."""

import logging

from .errors import OperationCancelledError

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative cancellation signal checked at every traversal step.

    The engines call raise_if_cancelled() before each node and each member,
    so a cancel() issued from another coroutine (or from a value source
    awaited during the walk) stops the traversal at the next step.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """Request cancellation. Repeated calls keep the first reason."""
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason
        logger.debug(f"Cancellation requested: {reason or 'no reason given'}")

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise OperationCancelledError(self._reason)
