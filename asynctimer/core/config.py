"""Library defaults with environment overrides."""

from __future__ import annotations

import logging
import os
from typing import Callable, TypeVar

from .priority import TaskPriority

log = logging.getLogger(__name__)

T = TypeVar("T")


def _get_env(name: str, default: T, caster: Callable[[str], T]) -> T:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return caster(value)
    except (TypeError, ValueError):
        log.warning("Invalid value for %s: %r (using default %r)", name, value, default)
        return default


def _non_negative(raw: str) -> float:
    value = float(raw)
    if value < 0:
        raise ValueError(raw)
    return value


DEFAULT_PRIORITY: TaskPriority = _get_env(
    "ASYNCTIMER_DEFAULT_PRIORITY", TaskPriority.MEDIUM, TaskPriority.parse
)

SLOW_HANDLER_WARN_MS: float = _get_env("ASYNCTIMER_SLOW_HANDLER_MS", 50.0, _non_negative)
