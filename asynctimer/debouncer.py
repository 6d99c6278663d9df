"""Coalesce bursts of calls into a single trailing invocation."""

from __future__ import annotations

import asyncio
import itertools
from typing import Optional

import metrics

from .core.handlers import Handler, run_handler
from .core.interval import Interval, IntervalLike, require_valid
from .core.logging import get_logger
from .core.priority import TaskPriority
from .timer import AsyncTimer

__all__ = ["AsyncDebouncer"]

log = get_logger("debouncer")

_ids = itertools.count(1)


class _PendingSlot:
    """The debouncer's pending timer, shared with that timer's fire callback."""

    __slots__ = ("timer", "generation", "closed")

    def __init__(self) -> None:
        self.timer: Optional[AsyncTimer] = None
        self.generation = 0
        self.closed = False

    def take(self) -> Optional[AsyncTimer]:
        timer, self.timer = self.timer, None
        self.generation += 1
        return timer


def _deliver_later(slot: _PendingSlot, generation: int, handler: Handler, name: str) -> Handler:
    async def fire() -> None:
        if slot.closed or slot.generation != generation:
            return
        await run_handler(handler, component=name, logger=log)
        if slot.generation == generation:
            slot.timer = None

    return fire


class AsyncDebouncer:
    """Run only the last handler of a burst, after *debounce_time* of quiet.

    Every :meth:`call` discards the previously pending handler, so callers
    must not expect one invocation per call.  A zero debounce time bypasses
    debouncing and runs each handler straight away.

    Dropping the debouncer stops its pending timer; the pending handler is
    discarded.
    """

    def __init__(
        self,
        debounce_time: IntervalLike,
        *,
        priority: Optional[TaskPriority] = None,
        name: Optional[str] = None,
    ) -> None:
        self._debounce_time = require_valid(debounce_time, "debounce_time")
        self._priority = priority
        self._name = name or f"AsyncDebouncer-{next(_ids)}"
        self._lock = asyncio.Lock()
        self._slot = _PendingSlot()

    @property
    def debounce_time(self) -> Interval:
        return self._debounce_time

    @property
    def is_waiting(self) -> bool:
        """Whether a handler is armed and waiting for the quiet period."""

        return self._slot.timer is not None

    def set_debounce_time(self, debounce_time: IntervalLike) -> None:
        """Change the quiet period used by subsequent calls."""

        new_time = require_valid(debounce_time, "debounce_time")
        if new_time != self._debounce_time:
            self._debounce_time = new_time

    async def call(
        self, handler: Handler, *, debounce_time: Optional[IntervalLike] = None
    ) -> None:
        """Schedule *handler*, superseding whatever was pending."""

        async with self._lock:
            if debounce_time is not None:
                self.set_debounce_time(debounce_time)

            superseded = self._slot.take()
            if superseded is not None:
                await superseded.stop()
                metrics.inc("debounce_superseded_total", debouncer=self._name)
                log.debug("%s superseded pending call", self._name)

            if self._debounce_time.is_positive:
                timer = AsyncTimer(
                    self._debounce_time,
                    _deliver_later(self._slot, self._slot.generation, handler, self._name),
                    priority=self._priority,
                    repeating=False,
                    fires_immediately=False,
                    name=f"{self._name}.timer",
                )
                self._slot.timer = timer
                await timer.start()
                return

        await run_handler(handler, component=self._name, logger=log)

    async def cancel(self) -> None:
        """Drop the pending handler without running it."""

        timer = self._slot.take()
        if timer is not None:
            await timer.stop()
            log.debug("%s cancelled", self._name)

    async def aclose(self) -> None:
        self._slot.closed = True
        timer = self._slot.take()
        if timer is not None:
            await timer.aclose()

    async def __aenter__(self) -> "AsyncDebouncer":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def __del__(self) -> None:
        slot = getattr(self, "_slot", None)
        if slot is None:
            return
        slot.closed = True
        if slot.timer is not None:
            slot.timer.stop_soon()
