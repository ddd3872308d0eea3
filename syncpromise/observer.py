"""Observer capability for promise settlement notifications."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Observer(Protocol):
    """Anything that can be passed to ``Promise.subscribe``.

    ``arg`` is the value given at subscription time for the matching outcome,
    e.g. the ``then`` handler for a chained promise or the input index for
    a ``Group``.
    """

    def promise_fulfilled(self, value: Any, arg: Any) -> None: ...

    def promise_rejected(self, reason: BaseException, arg: Any) -> None: ...


def is_observer(obj: object) -> bool:
    # runtime_checkable only checks that the attributes exist, and a class
    # object would pass with its unbound methods
    return (
        not isinstance(obj, type)
        and isinstance(obj, Observer)
        and callable(getattr(obj, "promise_fulfilled"))
        and callable(getattr(obj, "promise_rejected"))
    )


__all__ = ["Observer", "is_observer"]
