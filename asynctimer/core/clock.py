"""Clock utilities for window scheduling."""

import time


def now_mono_ns() -> int:
    """Monotonic clock for window deadlines (never compare across processes)."""

    return time.monotonic_ns()


def elapsed_ms(start_perf: float) -> float:
    """Milliseconds since a :func:`time.perf_counter` reading."""

    return (time.perf_counter() - start_perf) * 1000.0
