"""
Utility functions for syncpromise.
"""

from __future__ import annotations

import os
import sys
from types import TracebackType
from typing import Any

from syncpromise import config
from syncpromise.errors import RejectionError

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))


def _is_syncpromise_internal(path: str) -> bool:
    if path.startswith("<"):
        return False
    return os.path.abspath(path).startswith(_PACKAGE_DIR + os.sep)


def capture_call_context(limit: int | None = None) -> TracebackType | None:
    """
    Build a traceback for the current call stack.

    Frames inside syncpromise itself are skipped, so the innermost entry is
    the user code that triggered the capture.

    Args:
        limit: Keep at most this many frames, innermost first. ``None`` keeps all.

    Returns:
        The outermost traceback entry, or ``None`` if no frame is available.
    """
    try:
        frame = sys._getframe(1)
    except ValueError:
        return None

    while frame is not None and _is_syncpromise_internal(frame.f_code.co_filename):
        frame = frame.f_back

    frames = []
    while frame is not None and (limit is None or len(frames) < limit):
        frames.append(frame)
        frame = frame.f_back

    # tb_next points inward, so build the chain from the innermost frame out
    tb: TracebackType | None = None
    for current in frames:
        tb = TracebackType(tb, current, current.f_lasti, current.f_lineno)
    return tb


def coerce_reason(reason: Any) -> BaseException:
    """Turn a rejection reason into an exception that carries a traceback.

    - an exception class is instantiated with no arguments
    - any other non-exception value is wrapped in ``RejectionError``
    - an exception without a traceback gets the current call stack attached
    """
    if isinstance(reason, type) and issubclass(reason, BaseException):
        reason = reason()
    elif not isinstance(reason, BaseException):
        reason = RejectionError(reason)

    if reason.__traceback__ is None:
        reason = reason.with_traceback(capture_call_context(config.TRACE_DEPTH))
    return reason


__all__ = [
    "capture_call_context",
    "coerce_reason",
]
