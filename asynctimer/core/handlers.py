"""Invocation of caller-supplied handlers."""

from __future__ import annotations

import inspect
import logging
import time
from typing import Awaitable, Callable, Optional, Union

import metrics

from ..utils.runtime import is_perf_logging_enabled
from . import config
from .clock import elapsed_ms

__all__ = ["Handler", "run_handler"]

log = logging.getLogger(__name__)

Handler = Callable[[], Union[Awaitable[None], None]]


async def run_handler(
    handler: Optional[Handler],
    *,
    component: str,
    logger: Optional[logging.Logger] = None,
) -> bool:
    """Run *handler*, awaiting it when it returns an awaitable.

    Exceptions raised by the handler are logged and counted, never
    re-raised.  Returns ``True`` when the handler completed normally.
    """

    if handler is None:
        return True
    _log = logger or log
    start = time.perf_counter()
    try:
        result = handler()
        if inspect.isawaitable(result):
            await result
    except Exception:
        _log.exception("%s handler failed", component)
        metrics.inc("handler_errors_total", component=component)
        return False
    finally:
        duration = elapsed_ms(start)
        threshold = config.SLOW_HANDLER_WARN_MS
        if threshold > 0 and duration >= threshold:
            _log.warning("%s handler took %.2f ms", component, duration)
        if is_perf_logging_enabled():
            _log.debug("%s handler ran in %.3f ms", component, duration)
            metrics.observe("timer_handler_ms", duration, component=component)
    return True
