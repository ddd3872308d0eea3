"""Promise error types."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from syncpromise.promise import Promise


class PromiseError(RuntimeError):
    """Base class for errors raised by syncpromise."""


class BrokenError(PromiseError):
    """Raised by ``sync()`` when nothing is left to run but the promise is still pending.

    This means the dependency graph stalled: the promise waits on work that
    was never scheduled (or on itself through a longer cycle), so no amount
    of draining will settle it.

    Attributes:
        promise: The promise that could not be resolved.
    """

    def __init__(self, promise: Promise[Any] | None = None) -> None:
        self.promise = promise
        super().__init__("broken promise: scheduler is empty but the promise is still pending")


class SubscriptionError(PromiseError, TypeError):
    """Raised when ``subscribe`` is misused.

    Either the promise already settled (consume it with ``then`` instead) or
    the observer does not implement ``promise_fulfilled``/``promise_rejected``.
    """


class ChainingCycleError(PromiseError, TypeError):
    """Reason used when a promise is fulfilled with itself."""


class RejectionError(PromiseError):
    """Wraps a rejection reason that is not an exception.

    ``promise.reject("x")`` stores ``RejectionError("x")`` so that ``sync()``
    always has something raisable. The original value is kept on ``reason``.
    """

    def __init__(self, reason: Any) -> None:
        self.reason = reason
        super().__init__(reason)

    def __str__(self) -> str:
        return str(self.reason)

    def __repr__(self) -> str:
        return f"RejectionError({self.reason!r})"


__all__ = [
    "BrokenError",
    "ChainingCycleError",
    "PromiseError",
    "RejectionError",
    "SubscriptionError",
]
