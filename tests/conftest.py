"""
Pytest configuration for syncpromise tests.

Every test runs inside its own ExecutionContext so promises created by one
test never queue work on another test's scheduler.
"""

from collections.abc import Iterator

import pytest

from syncpromise import ExecutionContext, TaskQueue


@pytest.fixture(autouse=True)
def execution_context() -> Iterator[ExecutionContext]:
    with ExecutionContext() as ctx:
        yield ctx


@pytest.fixture
def scheduler(execution_context: ExecutionContext) -> TaskQueue:
    """The task queue promises in the current test are bound to."""
    return execution_context.scheduler


class Recorder:
    """Observer that records every notification it receives."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, object, object]] = []

    def promise_fulfilled(self, value: object, arg: object) -> None:
        self.calls.append(("fulfilled", value, arg))

    def promise_rejected(self, reason: BaseException, arg: object) -> None:
        self.calls.append(("rejected", reason, arg))


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
