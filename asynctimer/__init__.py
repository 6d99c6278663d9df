"""Cancellable timers, debouncers and throttlers for asyncio."""

from .core.interval import Interval, require_valid
from .core.priority import TaskPriority
from .debouncer import AsyncDebouncer
from .throttler import AsyncThrottler, ThrottleBehavior, ThrottleCadence
from .timer import AsyncTimer

__version__ = "0.1.0"

__all__ = [
    "AsyncDebouncer",
    "AsyncThrottler",
    "AsyncTimer",
    "Interval",
    "TaskPriority",
    "ThrottleBehavior",
    "ThrottleCadence",
    "require_valid",
    "__version__",
]
