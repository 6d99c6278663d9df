"""Logging helpers for asynctimer.

Every logger handed out by :func:`get_logger` tags its records with the
timer and priority of the background task that emitted them.  Timer tasks
are named ``"<timer>[<priority>]"``; records logged from any other task carry
``"-"`` for both fields.  Nothing is installed on import.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re

__all__ = ["TimerContextFilter", "configure_logging", "get_logger", "LOGGER_PREFIX"]

LOGGER_PREFIX = "asynctimer"

_TASK_NAME = re.compile(r"^(?P<timer>.+)\[(?P<priority>[a-z_]+)\]$")

_FORMAT = "%(asctime)s %(levelname)s %(name)s timer=%(timer)s priority=%(priority)s %(message)s"


def _current_task_name() -> str | None:
    try:
        task = asyncio.current_task()
    except RuntimeError:
        return None
    return None if task is None else task.get_name()


class TimerContextFilter(logging.Filter):
    """Attach ``timer`` and ``priority`` attributes parsed from the task name."""

    def filter(self, record: logging.LogRecord) -> bool:
        timer = priority = "-"
        task_name = _current_task_name()
        if task_name:
            match = _TASK_NAME.match(task_name)
            if match:
                timer, priority = match.group("timer"), match.group("priority")
        record.timer = timer
        record.priority = priority
        return True


_context_filter = TimerContextFilter()


def configure_logging(*, default_level: int = logging.INFO) -> None:
    """Send asynctimer records to stderr with their timer context.

    ``ASYNCTIMER_LOG_VERBOSE=1`` switches the package to DEBUG.  The root
    logger is left untouched.
    """

    level = default_level
    if os.getenv("ASYNCTIMER_LOG_VERBOSE", "").lower() in {"1", "true", "yes", "on"}:
        level = logging.DEBUG

    package_logger = logging.getLogger(LOGGER_PREFIX)
    package_logger.setLevel(level)
    if not any(getattr(h, "_asynctimer", False) for h in package_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(_FORMAT, defaults={"timer": "-", "priority": "-"})
        )
        handler._asynctimer = True  # type: ignore[attr-defined]
        package_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Return a logger below the ``asynctimer`` namespace."""

    if not (name == LOGGER_PREFIX or name.startswith(LOGGER_PREFIX + ".")):
        name = f"{LOGGER_PREFIX}.{name}"
    logger = logging.getLogger(name)
    if _context_filter not in logger.filters:
        logger.addFilter(_context_filter)
    return logger
