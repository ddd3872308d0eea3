"""Tests for TaskQueue draining order and ExecutionContext scoping."""

import contextvars

from syncpromise import (
    ExecutionContext,
    Promise,
    TaskQueue,
    current_scheduler,
    default_scheduler,
)
from syncpromise.scheduler import Task


class Spawner:
    """Task target that enqueues a follow-up task when run."""

    def __init__(self, queue: TaskQueue, log: list[str]) -> None:
        self.queue = queue
        self.log = log

    def spawn(self, name: str) -> None:
        self.log.append(name)
        self.queue.enqueue_microtask(self.log, "append", f"{name}-child")


def test_task_run_calls_selector_with_args() -> None:
    log: list[int] = []
    Task(log, "extend", ([1, 2],)).run()
    assert log == [1, 2]


def test_run_once_is_last_in_first_out() -> None:
    """Microtasks enqueued A then B run B first."""
    queue = TaskQueue()
    log: list[str] = []
    queue.enqueue_microtask(log, "append", "A")
    queue.enqueue_microtask(log, "append", "B")

    assert queue.run_once() is True
    assert log == ["B"]
    assert queue.run_once() is True
    assert log == ["B", "A"]
    assert queue.run_once() is False


def test_run_once_on_empty_queue_reports_nothing_ran() -> None:
    assert TaskQueue().run_once() is False


def test_microtasks_drain_before_macrotasks() -> None:
    queue = TaskQueue()
    log: list[str] = []
    queue.enqueue_macrotask(log, "append", "M1")
    queue.enqueue_macrotask(log, "append", "M2")
    queue.enqueue_microtask(log, "append", "a")

    queue.run()

    assert log == ["a", "M2", "M1"]


def test_run_drains_tasks_enqueued_while_running() -> None:
    queue = TaskQueue()
    log: list[str] = []
    spawner = Spawner(queue, log)
    queue.enqueue_macrotask(log, "append", "macro")
    queue.enqueue_microtask(spawner, "spawn", "first")

    queue.run()

    assert log == ["first", "first-child", "macro"]
    assert len(queue) == 0
    assert not queue


def test_counts_track_both_tiers() -> None:
    queue = TaskQueue()
    queue.enqueue_microtask([], "append", 1)
    queue.enqueue_macrotask([], "append", 2)
    queue.enqueue_macrotask([], "append", 3)

    assert queue.microtask_count == 1
    assert queue.macrotask_count == 2
    assert len(queue) == 3
    assert "microtasks=1" in repr(queue)


def test_run_until_resolved_stops_once_promise_settles() -> None:
    queue = TaskQueue()
    promise: Promise[int] = Promise(scheduler=queue)
    log: list[str] = []
    queue.enqueue_microtask(log, "append", "later")
    queue.enqueue_microtask(promise, "fulfill", 1)

    assert queue.run_until_resolved(promise) is True
    assert promise.value == 1
    assert log == []
    assert len(queue) == 1


def test_run_until_resolved_reports_stalled_promise() -> None:
    queue = TaskQueue()
    promise: Promise[int] = Promise(scheduler=queue)
    queue.enqueue_microtask([], "append", 1)

    assert queue.run_until_resolved(promise) is False
    assert promise.is_pending
    assert len(queue) == 0


def test_unrelated_chains_run_last_enqueued_first(scheduler: TaskQueue) -> None:
    log: list[str] = []
    Promise.resolve("a").then(log.append)
    Promise.resolve("b").then(log.append)

    scheduler.run()

    assert log == ["b", "a"]


def test_promises_use_the_active_context_scheduler(scheduler: TaskQueue) -> None:
    assert current_scheduler() is scheduler
    assert Promise().scheduler is scheduler


def test_execution_context_restores_previous_scheduler(scheduler: TaskQueue) -> None:
    with ExecutionContext() as inner:
        assert current_scheduler() is inner.scheduler
        Promise.resolve(1).then(lambda v: v + 1)
        assert len(inner.scheduler) == 1

    assert current_scheduler() is scheduler
    assert len(scheduler) == 0
    assert ExecutionContext.get() is not inner


def test_default_scheduler_outside_any_context() -> None:
    fresh = contextvars.Context()

    assert fresh.run(ExecutionContext.get) is None
    assert fresh.run(current_scheduler) is default_scheduler()


def test_explicit_scheduler_overrides_context(scheduler: TaskQueue) -> None:
    queue = TaskQueue()
    promise = Promise.resolve(2, scheduler=queue)
    chained = promise.then(lambda v: v * 10)

    assert chained.scheduler is queue
    assert len(queue) == 1
    assert len(scheduler) == 0
    assert chained.sync() == 20
