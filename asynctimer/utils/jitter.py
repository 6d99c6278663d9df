"""Measure how evenly a timer or throttler fires."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

import numpy as np

from ..core.clock import now_mono_ns
from ..core.interval import Interval, IntervalLike

__all__ = ["FireRecorder", "JitterSummary"]


@dataclass(slots=True)
class JitterSummary:
    """Spacing statistics for a sequence of fires, in seconds."""

    fires: int
    mean_interval_s: float
    mean_abs_deviation_s: float
    max_abs_deviation_s: float


class FireRecorder:
    """Collect monotonic fire instants.

    The recorder is itself a valid handler, so it can be passed straight to
    :class:`~asynctimer.timer.AsyncTimer` or a throttler::

        recorder = FireRecorder()
        timer = AsyncTimer(0.1, recorder, repeating=True)
    """

    def __init__(self) -> None:
        self._stamps: List[int] = []

    def __call__(self) -> None:
        self.mark()

    def __len__(self) -> int:
        return len(self._stamps)

    def mark(self) -> None:
        self._stamps.append(now_mono_ns())

    def clear(self) -> None:
        self._stamps.clear()

    def offsets_s(self, origin_ns: int | None = None) -> np.ndarray:
        """Fire instants in seconds relative to *origin_ns* (default: first fire)."""

        stamps = np.asarray(self._stamps, dtype=np.int64)
        if stamps.size == 0:
            return np.empty(0, dtype=np.float64)
        origin = stamps[0] if origin_ns is None else origin_ns
        return (stamps - origin) / 1e9

    def deltas_s(self, limit: int | None = None) -> np.ndarray:
        """Seconds between consecutive fires, optionally for the first *limit* fires."""

        stamps = np.asarray(self._stamps[:limit] if limit else self._stamps, dtype=np.int64)
        if stamps.size < 2:
            return np.empty(0, dtype=np.float64)
        return np.diff(stamps) / 1e9

    def mean_abs_deviation(self, expected: IntervalLike, limit: int | None = None) -> float:
        """Mean absolute difference between fire spacing and *expected*.

        Returns ``inf`` when fewer than two fires were recorded.
        """

        deltas = self.deltas_s(limit)
        if deltas.size == 0:
            return float("inf")
        target = Interval.coerce(expected).seconds
        return float(np.mean(np.abs(deltas - target)))

    def summary(self, expected: IntervalLike, limit: int | None = None) -> JitterSummary:
        deltas = self.deltas_s(limit)
        if deltas.size == 0:
            return JitterSummary(len(self._stamps), float("nan"), float("inf"), float("inf"))
        target = Interval.coerce(expected).seconds
        deviation = np.abs(deltas - target)
        return JitterSummary(
            fires=len(self._stamps),
            mean_interval_s=float(np.mean(deltas)),
            mean_abs_deviation_s=float(np.mean(deviation)),
            max_abs_deviation_s=float(np.max(deviation)),
        )
