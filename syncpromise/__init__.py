"""
syncpromise - Promises with a cooperative, synchronous scheduler.

Continuations are queued on a single-threaded task queue and run when some
caller forces a result with ``sync()``. There are no threads, no event loop
and no timeouts: ``sync()`` drains the queue until the promise settles or
nothing is left to run.

Example:
    >>> from syncpromise import Promise
    >>>
    >>> p = Promise()
    >>> total = Promise.all([1, p.then(lambda x: x + 1), 3])
    >>> _ = p.fulfill(1)
    >>> total.sync()
    [1, 2, 3]
"""

from loguru import logger

from syncpromise import config
from syncpromise.errors import (
    BrokenError,
    ChainingCycleError,
    PromiseError,
    RejectionError,
    SubscriptionError,
)
from syncpromise.group import Group
from syncpromise.observer import Observer, is_observer
from syncpromise.outcome import Err, Ok, Outcome, invoke
from syncpromise.promise import Promise, PromiseState, sync
from syncpromise.scheduler import (
    ExecutionContext,
    Task,
    TaskQueue,
    current_scheduler,
    default_scheduler,
)

__version__ = "0.1.0"

if not config.DEBUG:
    logger.disable("syncpromise")

__all__ = [
    "BrokenError",
    "ChainingCycleError",
    "Err",
    "ExecutionContext",
    "Group",
    "Observer",
    "Ok",
    "Outcome",
    "Promise",
    "PromiseError",
    "PromiseState",
    "RejectionError",
    "SubscriptionError",
    "Task",
    "TaskQueue",
    "__version__",
    "current_scheduler",
    "default_scheduler",
    "invoke",
    "is_observer",
    "sync",
]
