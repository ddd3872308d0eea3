"""
Environment configuration.

    SYNCPROMISE_DEBUG=1          enable the library's loguru records
    SYNCPROMISE_TRACE_DEPTH=16   frames captured into a rejection reason
"""

from __future__ import annotations

import os

DEBUG_ENV_KEY = "SYNCPROMISE_DEBUG"
TRACE_DEPTH_ENV_KEY = "SYNCPROMISE_TRACE_DEPTH"


def parse_flag(raw: str | None) -> bool:
    return (raw or "").strip().lower() in ("1", "true", "yes")


def parse_depth(raw: str | None) -> int | None:
    """Return a positive frame limit, or ``None`` for an unlimited capture."""
    if not raw:
        return None
    try:
        depth = int(raw)
    except ValueError:
        return None
    return depth if depth > 0 else None


DEBUG = parse_flag(os.environ.get(DEBUG_ENV_KEY))
TRACE_DEPTH = parse_depth(os.environ.get(TRACE_DEPTH_ENV_KEY))


__all__ = [
    "DEBUG",
    "DEBUG_ENV_KEY",
    "TRACE_DEPTH",
    "TRACE_DEPTH_ENV_KEY",
    "parse_depth",
    "parse_flag",
]
