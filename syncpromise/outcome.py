"""
Outcome of invoking a user callback.

Handlers passed to ``Promise.then`` and lazy resolvers are run through
:func:`invoke`, which turns a raised exception into an ``Err`` instead of
letting it unwind through the scheduler.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, NoReturn, TypeVar

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class Outcome(Generic[T_co]):
    """Either the value a callback returned or the exception it raised."""

    __slots__ = ()

    def is_ok(self) -> bool:
        """Return ``True`` when the callback returned normally."""

        return isinstance(self, Ok)

    def is_err(self) -> bool:
        """Return ``True`` when the callback raised."""

        return isinstance(self, Err)

    def unwrap(self) -> T_co:
        """Return the value or raise the stored error."""

        if isinstance(self, Ok):
            return self.value
        raise self.error

    def __bool__(self) -> bool:
        return self.is_ok()


@dataclass(frozen=True)
class Ok(Outcome[T], Generic[T]):
    """Callback returned ``value``."""

    value: T


@dataclass(frozen=True)
class Err(Outcome[NoReturn]):
    """Callback raised ``error``."""

    error: Exception


def invoke(fn: Callable[..., Any], *args: Any) -> Outcome[Any]:
    try:
        return Ok(fn(*args))
    except Exception as exc:
        return Err(exc)


__all__ = [
    "Err",
    "Ok",
    "Outcome",
    "invoke",
]
