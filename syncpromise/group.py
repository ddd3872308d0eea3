"""Aggregate a collection of promises and plain values into one promise."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from syncpromise.promise import Promise
from syncpromise.scheduler import TaskQueue


class Group:
    """Observer that collects the outcomes of several inputs.

    ``group.promise`` fulfils with the resolved values in input order once
    every input has fulfilled, or rejects with the first rejection reason.
    Outcomes arriving after the aggregate settled are ignored.

    Example::

        Group.all([1, Promise.resolve(2), 3]).sync()  # [1, 2, 3]
    """

    def __init__(self, items: Iterable[Any], *, scheduler: TaskQueue | None = None) -> None:
        inputs = list(items)
        self.promise: Promise[list[Any]] = Promise(scheduler=scheduler)
        self._results: list[Any] = [None] * len(inputs)
        self._remaining = len(inputs)

        for index, item in enumerate(inputs):
            if not isinstance(item, Promise):
                self._store(index, item)
            elif item.is_fulfilled:
                self._store(index, item.value)
            elif item.is_rejected:
                self.promise.reject(item.reason)
                break
            else:
                self.promise.depends_on(item)
                item.subscribe(self, index, index)

        if self._remaining == 0:
            self.promise.fulfill(list(self._results))

    @classmethod
    def all(cls, items: Iterable[Any], *, scheduler: TaskQueue | None = None) -> Promise[list[Any]]:
        return cls(items, scheduler=scheduler).promise

    def _store(self, index: int, value: Any) -> None:
        self._results[index] = value
        self._remaining -= 1

    def promise_fulfilled(self, value: Any, index: int) -> None:
        if self.promise.is_resolved:
            return
        self._store(index, value)
        if self._remaining == 0:
            self.promise.fulfill(list(self._results))

    def promise_rejected(self, reason: BaseException, index: int) -> None:
        self.promise.reject(reason)

    def __repr__(self) -> str:
        return f"Group(remaining={self._remaining}, promise={self.promise!r})"


__all__ = ["Group"]
