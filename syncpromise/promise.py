"""
Promise state machine.

A Promise starts ``PENDING`` and settles exactly once, to ``FULFILLED`` with a
value or to ``REJECTED`` with an exception. Consumers chain continuations with
``then``; producers settle with ``fulfill``/``reject``; ``sync`` drains the
scheduler until the promise settles and returns (or raises) the outcome.

Example::

    p = Promise()
    doubled = p.then(lambda x: x * 2)
    p.fulfill(21)
    doubled.sync()  # 42

Fulfilling a promise with another promise never stores the inner promise as
a value. An already settled inner promise has its outcome copied; a pending
one is followed, and the outer promise settles when the inner one does.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from enum import Enum
from types import TracebackType
from typing import Any, Generic, TypeVar

from loguru import logger

from syncpromise.errors import BrokenError, ChainingCycleError, SubscriptionError
from syncpromise.observer import Observer, is_observer
from syncpromise.outcome import Outcome, invoke
from syncpromise.scheduler import TaskQueue, current_scheduler
from syncpromise.utils import coerce_reason

T = TypeVar("T")

Handler = Callable[[Any], Any]
Resolver = Callable[["Promise[Any]"], Any]


class PromiseState(Enum):
    PENDING = "pending"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"


def _ensure_optional_callable(value: object, *, name: str) -> None:
    if value is not None and not callable(value):
        raise TypeError(f"{name} must be callable or None, got {type(value).__name__}")


class _SyncMethod:
    """``promise.sync()`` forces that promise; ``Promise.sync(value)`` forces any value."""

    def __init__(self, method: Callable[..., Any]) -> None:
        self._method = method
        self.__doc__ = method.__doc__

    def __get__(self, instance: Any, owner: type | None = None) -> Callable[..., Any]:
        if instance is None:
            return owner.sync_value
        return self._method.__get__(instance, owner)


class Promise(Generic[T]):
    """A value that is not known yet.

    Args:
        resolver: Optional ``resolver(promise)`` called lazily, at most once,
            the first time the promise is waited on. It is expected to settle
            the promise; if it raises, the promise is rejected with the error.
        scheduler: Queue for deferred notifications. Defaults to the
            scheduler of the active ``ExecutionContext``.
        async_guaranteed: Notify observers synchronously at settlement time
            instead of through a microtask.
    """

    def __init__(
        self,
        resolver: Resolver | None = None,
        *,
        scheduler: TaskQueue | None = None,
        async_guaranteed: bool = False,
    ) -> None:
        _ensure_optional_callable(resolver, name="resolver")
        self._state = PromiseState.PENDING
        self._value: Any = None
        self._reason: BaseException | None = None
        self._reason_tb: TracebackType | None = None
        self._observers: list[tuple[Observer, Any, Any]] = []
        self._followee: Promise[Any] | None = None
        self._sources: list[Promise[Any]] = []
        self._resolver = resolver
        self._resolver_scheduled = False
        self._scheduler = scheduler if scheduler is not None else current_scheduler()
        self.async_guaranteed = async_guaranteed

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> PromiseState:
        return self._state

    @property
    def value(self) -> T | None:
        """The fulfillment value, or ``None`` unless fulfilled."""
        return self._value

    @property
    def reason(self) -> BaseException | None:
        """The rejection reason, or ``None`` unless rejected."""
        return self._reason

    @property
    def scheduler(self) -> TaskQueue:
        return self._scheduler

    @property
    def is_pending(self) -> bool:
        return self._state is PromiseState.PENDING

    @property
    def is_fulfilled(self) -> bool:
        return self._state is PromiseState.FULFILLED

    @property
    def is_rejected(self) -> bool:
        return self._state is PromiseState.REJECTED

    @property
    def is_resolved(self) -> bool:
        """Settled, or committed to follow another promise."""
        return self._state is not PromiseState.PENDING or self._followee is not None

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def fulfill(self, value: Any) -> Promise[T]:
        if self.is_resolved:
            return self
        return self._fulfill(value)

    def reject(self, reason: Any) -> Promise[T]:
        """Reject with ``reason``.

        Exception classes are instantiated and plain values are wrapped in
        ``RejectionError``; an exception without a traceback gets the
        current call stack attached.
        """
        if self.is_resolved:
            return self
        return self._reject(reason)

    def _fulfill(self, value: Any) -> Promise[T]:
        if self._state is not PromiseState.PENDING:
            return self
        if isinstance(value, Promise):
            return self._adopt(value)

        self._value = value
        self._state = PromiseState.FULFILLED
        self._followee = None
        self._sources = []
        self._resolver = None
        logger.debug("fulfilled {!r}", self)
        self._schedule_notification("notify_fulfillment")
        return self

    def _reject(self, reason: Any) -> Promise[T]:
        if self._state is not PromiseState.PENDING:
            return self

        self._reason = coerce_reason(reason)
        self._reason_tb = self._reason.__traceback__
        self._state = PromiseState.REJECTED
        self._followee = None
        self._sources = []
        self._resolver = None
        logger.debug("rejected {!r}", self)
        self._schedule_notification("notify_rejection")
        return self

    def _adopt(self, other: Promise[Any]) -> Promise[T]:
        if other is self:
            return self._reject(ChainingCycleError("promise cannot be fulfilled with itself"))
        if other.is_fulfilled:
            return self._fulfill(other.value)
        if other.is_rejected:
            return self._reject(other.reason)

        logger.debug("{!r} follows {!r}", self, other)
        self._followee = other
        # the followee settles this promise now, not its own resolver
        self._resolver = None
        self.depends_on(other)
        other.subscribe(self, None, None)
        return self

    def depends_on(self, source: Promise[Any]) -> None:
        """Record that this promise settles only after ``source`` does.

        ``sync()`` drains the schedulers of its sources when its own
        scheduler runs dry, so promises bound to different schedulers still
        resolve each other.
        """
        if self._state is PromiseState.PENDING:
            self._sources.append(source)

    def _settle(self, outcome: Outcome[Any]) -> Promise[T]:
        if outcome.is_ok():
            return self._fulfill(outcome.value)
        return self._reject(outcome.error)

    def _schedule_notification(self, selector: str) -> None:
        if not self._observers:
            return
        if self.async_guaranteed:
            getattr(self, selector)()
        else:
            self._scheduler.enqueue_microtask(self, selector)

    # ------------------------------------------------------------------
    # Chaining
    # ------------------------------------------------------------------

    def then(
        self,
        on_fulfill: Handler | None = None,
        on_reject: Handler | None = None,
    ) -> Promise[Any]:
        """Return a promise for the outcome of the matching handler.

        A missing handler passes the outcome through unchanged. A handler
        that raises rejects the returned promise with the raised error, and
        a handler that returns a promise makes the returned promise follow it.
        """
        _ensure_optional_callable(on_fulfill, name="on_fulfill")
        _ensure_optional_callable(on_reject, name="on_reject")

        successor: Promise[Any] = Promise(scheduler=self._scheduler)
        if self._state is PromiseState.FULFILLED:
            self._scheduler.enqueue_microtask(successor, "promise_fulfilled", self._value, on_fulfill)
        elif self._state is PromiseState.REJECTED:
            self._scheduler.enqueue_microtask(successor, "promise_rejected", self._reason, on_reject)
        else:
            successor.depends_on(self)
            self.subscribe(successor, on_fulfill, on_reject)
        return successor

    def rescue(self, on_reject: Handler) -> Promise[Any]:
        return self.then(None, on_reject)

    catch = rescue

    def subscribe(self, observer: Observer, on_fulfill_arg: Any = None, on_reject_arg: Any = None) -> None:
        """Register ``observer`` to be notified when this promise settles.

        Raises:
            SubscriptionError: The promise already settled, or ``observer``
                lacks ``promise_fulfilled``/``promise_rejected``.
        """
        if self._state is not PromiseState.PENDING:
            raise SubscriptionError(
                f"cannot subscribe to a {self._state.value} promise; use then() instead"
            )
        if not is_observer(observer):
            raise SubscriptionError(
                f"observer must implement promise_fulfilled and promise_rejected, "
                f"got {type(observer).__name__}"
            )

        self._observers.append((observer, on_fulfill_arg, on_reject_arg))
        if self._resolver is not None and not self._resolver_scheduled:
            self._resolver_scheduled = True
            self._scheduler.enqueue_macrotask(self, "wait")

    def notify_fulfillment(self) -> None:
        self._fan_out(lambda observer, arg, _: observer.promise_fulfilled(self._value, arg))

    def notify_rejection(self) -> None:
        self._fan_out(lambda observer, _, arg: observer.promise_rejected(self._reason, arg))

    def _fan_out(self, deliver: Callable[[Observer, Any, Any], None]) -> None:
        """Deliver to every observer in subscription order.

        An observer that raises does not stop delivery to the ones after it;
        the first error is re-raised once all of them were notified.
        """
        observers, self._observers = self._observers, []
        first_error: Exception | None = None
        for observer, on_fulfill_arg, on_reject_arg in observers:
            try:
                deliver(observer, on_fulfill_arg, on_reject_arg)
            except Exception as exc:
                logger.debug("observer {!r} raised {!r}", observer, exc)
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error

    # Observer capability: lets a promise follow another promise.

    def promise_fulfilled(self, value: Any, on_fulfill: Handler | None) -> None:
        if on_fulfill is None:
            self._fulfill(value)
        elif not self.is_resolved:
            self._settle(invoke(on_fulfill, value))

    def promise_rejected(self, reason: BaseException, on_reject: Handler | None) -> None:
        if on_reject is None:
            self._reject(reason)
        elif not self.is_resolved:
            self._settle(invoke(on_reject, reason))

    # ------------------------------------------------------------------
    # Forcing
    # ------------------------------------------------------------------

    def wait(self) -> Promise[T]:
        """Run the lazy resolver, if there is one and it has not run yet.

        A followed promise's resolver is not run here; following subscribes
        to it, which already queued its ``wait`` as a macrotask.
        """
        if self._state is not PromiseState.PENDING or self._resolver is None:
            return self

        resolver, self._resolver = self._resolver, None
        outcome = invoke(resolver, self)
        if outcome.is_err():
            self.reject(outcome.error)
        return self

    @_SyncMethod
    def sync(self) -> T:
        """Drain the scheduler until this promise settles.

        When this promise's scheduler runs dry, work queued on the schedulers
        of the promises it waits on is run as well.

        Returns:
            The fulfillment value.

        Raises:
            BrokenError: Nothing is left to run and the promise is still pending.
            BaseException: The rejection reason, if the promise rejected.
        """
        if self.is_pending:
            self.wait()
            while not self._scheduler.run_until_resolved(self):
                queue = self._upstream_work()
                if queue is None:
                    break
                queue.run_once()

        if self.is_pending:
            logger.debug("broken {!r}", self)
            raise BrokenError(self)
        if self._reason is not None:
            # reset so repeated syncs do not keep extending the traceback
            raise self._reason.with_traceback(self._reason_tb)
        return self._value

    def _upstream_work(self) -> TaskQueue | None:
        """Find a non-empty scheduler among the promises this one waits on."""
        seen = {id(self)}
        pending = list(self._sources)
        while pending:
            source = pending.pop(0)
            if id(source) in seen:
                continue
            seen.add(id(source))
            if source.scheduler:
                return source.scheduler
            pending.extend(source._sources)
        return None

    # ------------------------------------------------------------------
    # Class-level helpers
    # ------------------------------------------------------------------

    @classmethod
    def resolve(cls, value: Any, *, scheduler: TaskQueue | None = None) -> Promise[Any]:
        """Wrap ``value`` in a fulfilled promise; promises pass through."""
        if isinstance(value, Promise):
            return value
        return cls(scheduler=scheduler).fulfill(value)

    @classmethod
    def reject_with(cls, reason: Any, *, scheduler: TaskQueue | None = None) -> Promise[Any]:
        return cls(scheduler=scheduler).reject(reason)

    @classmethod
    def all(cls, items: Iterable[Any], *, scheduler: TaskQueue | None = None) -> Promise[list[Any]]:
        """Aggregate promises and plain values; see ``Group``."""
        from syncpromise.group import Group

        return Group.all(items, scheduler=scheduler)

    @staticmethod
    def sync_value(value: Any) -> Any:
        """Force ``value`` if it is a promise, otherwise return it unchanged."""
        if isinstance(value, Promise):
            return value.sync()
        return value

    def __repr__(self) -> str:
        if self._state is PromiseState.FULFILLED:
            detail = f" value={self._value!r}"
        elif self._state is PromiseState.REJECTED:
            detail = f" reason={self._reason!r}"
        elif self._followee is not None:
            detail = " following"
        else:
            detail = ""
        return f"<Promise {self._state.value}{detail} at {id(self):#x}>"


sync = Promise.sync_value


__all__ = [
    "Promise",
    "PromiseState",
    "sync",
]
