"""Cooperative task queue that drives promise continuations.

Nothing here runs concurrently. "Scheduling" means recording a deferred call
and running it later, on the calling thread, when someone drains the queue
(usually ``Promise.sync``).

There are two tiers. Microtasks carry promise notifications and ``then``
continuations; macrotasks carry lower-priority work such as lazy resolvers.
Every microtask is drained before any macrotask runs, and within a tier the
most recently enqueued task runs first.
"""

from __future__ import annotations

from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from types import TracebackType
from typing import TYPE_CHECKING, Any, Literal

from loguru import logger

if TYPE_CHECKING:
    from syncpromise.promise import Promise


@dataclass(frozen=True)
class Task:
    """A deferred call: ``getattr(target, selector)(*args)``."""

    target: Any
    selector: str
    args: tuple[Any, ...] = ()

    def run(self) -> None:
        getattr(self.target, self.selector)(*self.args)


class TaskQueue:
    """Two-tier LIFO queue of deferred calls.

    Example:
        queue = TaskQueue()
        queue.enqueue_microtask(log, "append", "a")
        queue.enqueue_microtask(log, "append", "b")
        queue.run()
        # log == ["b", "a"]
    """

    def __init__(self) -> None:
        self._microtasks: list[Task] = []
        self._macrotasks: list[Task] = []

    def enqueue_microtask(self, target: Any, selector: str, *args: Any) -> None:
        task = Task(target, selector, args)
        logger.debug("enqueue microtask {}", task)
        self._microtasks.append(task)

    def enqueue_macrotask(self, target: Any, selector: str, *args: Any) -> None:
        task = Task(target, selector, args)
        logger.debug("enqueue macrotask {}", task)
        self._macrotasks.append(task)

    def run_once(self) -> bool:
        """Run the newest microtask, or else the newest macrotask.

        Returns:
            ``False`` when both tiers were empty and nothing ran.
        """
        if self._microtasks:
            task = self._microtasks.pop()
        elif self._macrotasks:
            task = self._macrotasks.pop()
        else:
            return False

        logger.debug("run {}", task)
        task.run()
        return True

    def run(self) -> None:
        while self.run_once():
            pass

    def run_until_resolved(self, promise: Promise[Any]) -> bool:
        """Drain until ``promise`` settles or the queue runs dry.

        Returns:
            Whether the promise settled.
        """
        while promise.is_pending and self.run_once():
            pass
        return not promise.is_pending

    @property
    def microtask_count(self) -> int:
        return len(self._microtasks)

    @property
    def macrotask_count(self) -> int:
        return len(self._macrotasks)

    def __len__(self) -> int:
        return len(self._microtasks) + len(self._macrotasks)

    def __bool__(self) -> bool:
        return bool(self._microtasks or self._macrotasks)

    def __repr__(self) -> str:
        return f"TaskQueue(microtasks={self.microtask_count}, macrotasks={self.macrotask_count})"


_DEFAULT_QUEUE = TaskQueue()


def default_scheduler() -> TaskQueue:
    """The process-wide queue used when no ``ExecutionContext`` is active."""
    return _DEFAULT_QUEUE


@dataclass
class ExecutionContext:
    """Binds a scheduler to the current context.

    Promises created inside ``with ExecutionContext() as ctx:`` queue their
    work on ``ctx.scheduler`` instead of the process-wide default, which keeps
    tests and independent subsystems from draining each other's tasks.
    """

    scheduler: TaskQueue = field(default_factory=TaskQueue)
    _token: Token[ExecutionContext | None] | None = field(default=None, repr=False)

    @classmethod
    def get(cls) -> ExecutionContext | None:
        return EXECUTION_CONTEXT.get()

    def __enter__(self) -> ExecutionContext:
        self._token = EXECUTION_CONTEXT.set(self)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_val: BaseException | None = None,
        exc_tb: TracebackType | None = None,
    ) -> Literal[False]:
        if self._token is not None:
            EXECUTION_CONTEXT.reset(self._token)
            self._token = None
        return False


EXECUTION_CONTEXT: ContextVar[ExecutionContext | None] = ContextVar(
    "syncpromise_execution_context", default=None
)


def current_scheduler() -> TaskQueue:
    ctx = EXECUTION_CONTEXT.get()
    if ctx is None:
        return _DEFAULT_QUEUE
    return ctx.scheduler


__all__ = [
    "EXECUTION_CONTEXT",
    "ExecutionContext",
    "Task",
    "TaskQueue",
    "current_scheduler",
    "default_scheduler",
]
