"""Rate-limit calls to at most one execution per window."""

from __future__ import annotations

import asyncio
import itertools
from enum import Enum
from typing import Optional

import metrics

from .core import clock
from .core.handlers import Handler, run_handler
from .core.interval import Interval, IntervalLike, require_valid
from .core.logging import get_logger
from .core.priority import TaskPriority
from .timer import AsyncTimer

__all__ = ["AsyncThrottler", "ThrottleBehavior", "ThrottleCadence"]

log = get_logger("throttler")

_ids = itertools.count(1)


class ThrottleBehavior(Enum):
    """Which edges of a window execute a handler."""

    LEADING_ONLY = "leading_only"
    TRAILING_ONLY = "trailing_only"
    LEADING_AND_TRAILING = "leading_and_trailing"

    @property
    def leading(self) -> bool:
        return self is not ThrottleBehavior.TRAILING_ONLY

    @property
    def trailing(self) -> bool:
        return self is not ThrottleBehavior.LEADING_ONLY


class ThrottleCadence(Enum):
    """How the length of the next window is computed.

    ``ROLLING`` waits the full throttle time from whenever the window opens,
    so handler latency accumulates.  ``PHASE_ALIGNED`` keeps windows on the
    grid ``t0, t0 + T, t0 + 2T, ...`` and shortens (down to zero) a window
    that opens late.
    """

    ROLLING = "rolling"
    PHASE_ALIGNED = "phase_aligned"


class _ThrottleState:
    """Window bookkeeping shared between a throttler and its window timers.

    A window is *open* while its cooldown timer exists and *opening* while an
    edge handler runs and the next window has not been scheduled yet; both
    count as throttling.  ``epoch`` changes on every cancel so that a handler
    finishing after a cancel does not reopen a window.
    """

    def __init__(
        self,
        name: str,
        throttle_time: Interval,
        behavior: ThrottleBehavior,
        cadence: ThrottleCadence,
        priority: Optional[TaskPriority],
    ) -> None:
        self.name = name
        self.throttle_time = throttle_time
        self.behavior = behavior
        self.cadence = cadence
        self.priority = priority
        self.lock = asyncio.Lock()
        self.cooldown_timer: Optional[AsyncTimer] = None
        self.window_id = 0
        self.opening = False
        self.epoch = 0
        self.pending: Optional[Handler] = None
        self.baseline_ns: Optional[int] = None
        self.closed = False

    @property
    def windowed(self) -> bool:
        return self.cooldown_timer is not None or self.opening

    def set_pending(self, handler: Optional[Handler]) -> None:
        self.pending = handler
        metrics.gauge("throttle_pending", 0.0 if handler is None else 1.0, throttler=self.name)

    def reset(self) -> Optional[AsyncTimer]:
        """Forget the window and pending work; return the timer to stop."""

        timer, self.cooldown_timer = self.cooldown_timer, None
        self.epoch += 1
        self.opening = False
        if self.pending is not None:
            self.set_pending(None)
        self.baseline_ns = None
        return timer

    def next_delay_ns(self) -> int:
        interval_ns = self.throttle_time.nanoseconds
        if self.cadence is ThrottleCadence.ROLLING:
            return interval_ns
        now = clock.now_mono_ns()
        base = now if self.baseline_ns is None else self.baseline_ns
        deadline = base + interval_ns
        self.baseline_ns = deadline
        return max(0, deadline - now)

    # ------------------------------------------------------------------
    async def call(self, handler: Handler, throttle_time: Optional[IntervalLike]) -> None:
        async with self.lock:
            if throttle_time is not None:
                self.throttle_time = require_valid(throttle_time, "throttle_time")

            if not self.throttle_time.is_positive:
                epoch = None
            elif self.windowed:
                self._absorb(handler)
                return
            elif not self.behavior.leading:
                self.set_pending(handler)
                self.baseline_ns = None
                await self._open_window()
                return
            else:
                if self.cadence is ThrottleCadence.PHASE_ALIGNED:
                    # Anchor before the handler so its latency does not shift the grid.
                    self.baseline_ns = clock.now_mono_ns()
                self.opening = True
                epoch = self.epoch

        await run_handler(handler, component=self.name, logger=log)
        if epoch is not None:
            await self._reopen_after(epoch)

    def _absorb(self, handler: Handler) -> None:
        if self.behavior.trailing:
            if self.pending is not None:
                metrics.inc("throttle_superseded_total", throttler=self.name)
            self.set_pending(handler)
        else:
            metrics.inc("throttle_dropped_total", throttler=self.name)
            log.debug("%s dropped call inside window", self.name)

    async def _reopen_after(self, epoch: int) -> None:
        async with self.lock:
            if self.closed or self.epoch != epoch:
                return
            self.opening = False
            await self._open_window()

    async def _open_window(self) -> None:
        delay_ns = self.next_delay_ns()
        self.window_id += 1
        window_id = self.window_id

        async def on_expired() -> None:
            await self._window_expired(window_id)

        def on_ended() -> None:
            if self.window_id == window_id:
                self.cooldown_timer = None

        timer = AsyncTimer(
            Interval.from_nanoseconds(delay_ns),
            on_expired,
            priority=self.priority,
            repeating=False,
            fires_immediately=False,
            cancel_handler=on_ended,
            name=f"{self.name}.window",
        )
        self.cooldown_timer = timer
        await timer.start()
        log.debug("%s window opened delay=%.6fs", self.name, delay_ns / 1e9)

    async def _window_expired(self, window_id: int) -> None:
        async with self.lock:
            if self.closed or self.window_id != window_id or self.cooldown_timer is None:
                return
            self.cooldown_timer = None
            handler = self.pending
            if not self.behavior.trailing or handler is None:
                self.baseline_ns = None
                log.debug("%s window closed", self.name)
                return
            self.set_pending(None)
            self.opening = True
            epoch = self.epoch

        await run_handler(handler, component=self.name, logger=log)
        await self._reopen_after(epoch)


class AsyncThrottler:
    """Allow at most one handler execution per *throttle_time* window.

    The throttler is either idle or inside a cooldown window backed by a
    one-shot :class:`~asynctimer.timer.AsyncTimer`.  Calls made during a
    window are either dropped (leading-only) or replace the pending trailing
    handler (last call wins).

    Handlers run outside the throttler's lock, so a handler may call or
    cancel the throttler that invoked it.  Dropping the throttler stops its
    window and discards pending work.
    """

    def __init__(
        self,
        throttle_time: IntervalLike,
        *,
        behavior: ThrottleBehavior = ThrottleBehavior.LEADING_AND_TRAILING,
        cadence: ThrottleCadence = ThrottleCadence.PHASE_ALIGNED,
        priority: Optional[TaskPriority] = None,
        name: Optional[str] = None,
    ) -> None:
        self._state = _ThrottleState(
            name or f"AsyncThrottler-{next(_ids)}",
            require_valid(throttle_time, "throttle_time"),
            ThrottleBehavior(behavior),
            ThrottleCadence(cadence),
            priority,
        )

    # ------------------------------------------------------------------
    @property
    def name(self) -> str:
        return self._state.name

    @property
    def throttle_time(self) -> Interval:
        return self._state.throttle_time

    @property
    def behavior(self) -> ThrottleBehavior:
        return self._state.behavior

    @property
    def cadence(self) -> ThrottleCadence:
        return self._state.cadence

    @property
    def is_throttling(self) -> bool:
        """Whether a cooldown window is open or about to open."""

        return self._state.windowed

    @property
    def has_pending(self) -> bool:
        return self._state.pending is not None

    def set_throttle_time(self, throttle_time: IntervalLike) -> None:
        """Change the window length; an open window keeps its deadline."""

        new_time = require_valid(throttle_time, "throttle_time")
        if new_time != self._state.throttle_time:
            self._state.throttle_time = new_time

    # ------------------------------------------------------------------
    async def call(
        self, handler: Handler, *, throttle_time: Optional[IntervalLike] = None
    ) -> None:
        """Submit *handler*; it runs now, at the window's end, or never."""

        await self._state.call(handler, throttle_time)

    async def cancel(self) -> None:
        """Close the current window and discard any pending trailing call."""

        async with self._state.lock:
            timer = self._state.reset()
        if timer is not None:
            await timer.stop()
            log.debug("%s cancelled", self._state.name)

    async def aclose(self) -> None:
        async with self._state.lock:
            self._state.closed = True
            timer = self._state.reset()
        if timer is not None:
            await timer.aclose()

    async def __aenter__(self) -> "AsyncThrottler":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def __del__(self) -> None:
        state = getattr(self, "_state", None)
        if state is None:
            return
        state.closed = True
        if state.cooldown_timer is not None:
            state.cooldown_timer.stop_soon()
