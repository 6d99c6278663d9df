"""Cancellable one-shot and repeating timers on top of asyncio."""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass
from typing import Optional

import metrics

from .core import config
from .core.cancellation import CancelToken
from .core.handlers import Handler, run_handler
from .core.interval import Interval, IntervalLike, require_valid
from .core.logging import get_logger
from .core.priority import TaskPriority

__all__ = ["AsyncTimer"]

log = get_logger("timer")

_ids = itertools.count(1)


@dataclass(frozen=True, slots=True)
class _RunPlan:
    """Everything a background loop needs; never the owning timer."""

    name: str
    interval_ns: Optional[int]
    repeating: bool
    fires_immediately: bool
    priority: TaskPriority
    handler: Handler
    cancel_handler: Optional[Handler]


async def _await_turn(plan: _RunPlan, token: CancelToken) -> bool:
    for _ in range(plan.priority.yields_before_fire):
        await asyncio.sleep(0)
    return not token.cancelled


async def _fire(plan: _RunPlan) -> None:
    metrics.inc("timer_fires_total", timer=plan.name)
    await run_handler(plan.handler, component=plan.name, logger=log)


async def _run(plan: _RunPlan, token: CancelToken) -> None:
    fires = 0
    try:
        if not plan.repeating:
            if not await token.sleep(plan.interval_ns) and await _await_turn(plan, token):
                fires += 1
                await _fire(plan)
            return

        if not plan.fires_immediately and await token.sleep(plan.interval_ns):
            return
        while not token.cancelled:
            if not await _await_turn(plan, token):
                break
            fires += 1
            await _fire(plan)
            if token.cancelled:
                break
            if await token.sleep(plan.interval_ns):
                break
    finally:
        log.debug("%s loop ended after %d fire(s)", plan.name, fires)
        await run_handler(plan.cancel_handler, component=f"{plan.name}.cancel", logger=log)


class AsyncTimer:
    """Fire *handler* after *interval*, once or repeatedly.

    Parameters
    ----------
    interval:
        Delay before (and between) fires.  ``0`` fires without delay;
        negative values raise :class:`ValueError`.
    handler:
        Zero-argument callable, sync or async, invoked on every fire.
    priority:
        Scheduling hint, see :class:`~asynctimer.core.priority.TaskPriority`.
    repeating:
        Keep firing until stopped instead of firing once.
    fires_immediately:
        Repeating timers only: fire as soon as the timer starts rather than
        after the first full interval.
    cancel_handler:
        Invoked exactly once whenever a run ends, whether it was stopped,
        completed or torn down.
    name:
        Label used for logs, metrics and the background task name.
    """

    def __init__(
        self,
        interval: IntervalLike,
        handler: Handler,
        *,
        priority: Optional[TaskPriority] = None,
        repeating: bool = False,
        fires_immediately: bool = True,
        cancel_handler: Optional[Handler] = None,
        name: Optional[str] = None,
    ) -> None:
        self._interval = require_valid(interval)
        self._handler = handler
        self._cancel_handler = cancel_handler
        self._priority = TaskPriority(config.DEFAULT_PRIORITY if priority is None else priority)
        self._repeating = repeating
        self._fires_immediately = fires_immediately
        self._name = name or f"AsyncTimer-{next(_ids)}"
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task[None]] = None
        self._retiring: Optional[asyncio.Task[None]] = None
        self._token: Optional[CancelToken] = None

    def __repr__(self) -> str:
        state = "running" if self.is_running else "idle"
        return f"<AsyncTimer {self._name} interval={self._interval!r} {state}>"

    # ------------------------------------------------------------------
    @property
    def name(self) -> str:
        return self._name

    @property
    def interval(self) -> Interval:
        return self._interval

    @property
    def priority(self) -> TaskPriority:
        return self._priority

    @property
    def repeating(self) -> bool:
        return self._repeating

    @property
    def fires_immediately(self) -> bool:
        return self._fires_immediately

    @property
    def is_running(self) -> bool:
        """Whether a background loop is currently alive."""

        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    async def start(self) -> None:
        """Start the timer, stopping and joining any previous run first."""

        async with self._lock:
            self._detach()
            previous, self._retiring = self._retiring, None
            if previous is not None and previous is not asyncio.current_task():
                await asyncio.wait({previous})

            token = CancelToken()
            plan = _RunPlan(
                name=self._name,
                interval_ns=None if self._interval.is_infinite else self._interval.nanoseconds,
                repeating=self._repeating,
                fires_immediately=self._fires_immediately,
                priority=self._priority,
                handler=self._handler,
                cancel_handler=self._cancel_handler,
            )
            self._token = token
            self._task = asyncio.get_running_loop().create_task(
                _run(plan, token), name=f"{self._name}[{self._priority.name.lower()}]"
            )
            log.debug(
                "%s started interval=%.6fs repeating=%s",
                self._name,
                self._interval.seconds,
                self._repeating,
            )

    async def stop(self) -> None:
        """Request cancellation of the current run; no-op when idle.

        Never suspends, so handlers may stop their own timer safely.  The
        cancel-handler is called by the loop itself once it winds down.
        """

        if self._detach() is not None:
            log.debug("%s stopped", self._name)

    def stop_soon(self) -> None:
        """Schedule :meth:`stop` on the timer's event loop.

        Safe to call from finalizers and other threads.
        """

        task = self._task
        if task is None or task.done():
            return
        loop = task.get_loop()
        if not loop.is_closed():
            loop.call_soon_threadsafe(self._detach)

    async def restart(self) -> None:
        await self.stop()
        await self.start()

    async def set_interval(self, interval: IntervalLike) -> None:
        """Change the interval; a running timer restarts with it from now."""

        new_interval = require_valid(interval)
        if new_interval == self._interval:
            return
        self._interval = new_interval
        if self.is_running:
            await self.restart()

    async def wait(self) -> None:
        """Wait until the current (or just stopped) run has fully ended."""

        task = self._task or self._retiring
        if task is None or task is asyncio.current_task():
            return
        await asyncio.wait({task})

    async def aclose(self) -> None:
        """Stop the timer and wait for its cancel-handler to complete."""

        await self.stop()
        await self.wait()

    async def __aenter__(self) -> "AsyncTimer":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def __del__(self) -> None:
        task = getattr(self, "_task", None)
        if task is None or task.done():
            return
        loop = task.get_loop()
        if not loop.is_closed():
            loop.call_soon_threadsafe(task.cancel)

    # ------------------------------------------------------------------
    def _detach(self) -> Optional["asyncio.Task[None]"]:
        task = self._task
        if task is None:
            return None
        self._task = None
        if self._token is not None:
            self._token.cancel()
            self._token = None
        self._retiring = task
        return task
