"""Duration value type shared by timers, debouncers and throttlers.

Intervals are stored with nanosecond resolution.  A negative raw value is
representable (so that callers can be told off about it) but reads back as
``0`` nanoseconds, which keeps arithmetic on :attr:`Interval.nanoseconds`
free of surprises.
"""

from __future__ import annotations

import functools
from datetime import timedelta
from typing import Union

__all__ = ["Interval", "IntervalLike", "require_valid"]

_NS_PER_US = 1_000
_NS_PER_MS = 1_000_000
_NS_PER_S = 1_000_000_000
_NS_PER_MIN = 60 * _NS_PER_S
_NS_PER_H = 60 * _NS_PER_MIN
_NS_PER_DAY = 24 * _NS_PER_H


@functools.total_ordering
class Interval:
    """Relative duration with nanosecond resolution."""

    __slots__ = ("_raw_ns",)

    ZERO: "Interval"
    INFINITE: "Interval"

    def __init__(self, nanoseconds: int = 0) -> None:
        self._raw_ns = int(nanoseconds)

    # ------------------------------------------------------------------
    @classmethod
    def from_nanoseconds(cls, value: int) -> "Interval":
        return cls(value)

    @classmethod
    def from_microseconds(cls, value: int) -> "Interval":
        return cls(int(value) * _NS_PER_US)

    @classmethod
    def from_milliseconds(cls, value: int) -> "Interval":
        return cls(int(value) * _NS_PER_MS)

    @classmethod
    def from_seconds(cls, value: float) -> "Interval":
        return cls(round(float(value) * _NS_PER_S))

    @classmethod
    def from_minutes(cls, value: int) -> "Interval":
        return cls(int(value) * _NS_PER_MIN)

    @classmethod
    def from_hours(cls, value: int) -> "Interval":
        return cls(int(value) * _NS_PER_H)

    @classmethod
    def from_days(cls, value: int) -> "Interval":
        return cls(int(value) * _NS_PER_DAY)

    @classmethod
    def coerce(cls, value: "IntervalLike") -> "Interval":
        """Return *value* as an :class:`Interval`.

        Plain numbers are read as seconds, mirroring :func:`asyncio.sleep`.
        """

        if isinstance(value, Interval):
            return value
        if isinstance(value, timedelta):
            # timedelta is exact to the microsecond; avoid float rounding.
            micros = (value.days * 86_400 + value.seconds) * 1_000_000 + value.microseconds
            return cls(micros * _NS_PER_US)
        if isinstance(value, bool):
            raise TypeError("bool is not a valid interval")
        if isinstance(value, (int, float)):
            return cls.from_seconds(value)
        raise TypeError(f"cannot interpret {type(value).__name__} as an interval")

    # ------------------------------------------------------------------
    @property
    def nanoseconds(self) -> int:
        """Duration in nanoseconds; negative durations read as ``0``."""

        return self._raw_ns if self._raw_ns > 0 else 0

    @property
    def seconds(self) -> float:
        return self.nanoseconds / _NS_PER_S

    @property
    def is_zero(self) -> bool:
        return self._raw_ns == 0

    @property
    def is_positive(self) -> bool:
        return self._raw_ns > 0

    @property
    def is_negative(self) -> bool:
        return self._raw_ns < 0

    @property
    def is_valid(self) -> bool:
        return not self.is_negative

    @property
    def is_infinite(self) -> bool:
        return self.nanoseconds >= _INFINITE_NS

    # ------------------------------------------------------------------
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Interval):
            return NotImplemented
        return self.nanoseconds == other.nanoseconds

    def __lt__(self, other: "Interval") -> bool:
        if not isinstance(other, Interval):
            return NotImplemented
        return self.nanoseconds < other.nanoseconds

    def __hash__(self) -> int:
        return hash(self.nanoseconds)

    def __repr__(self) -> str:
        if self.is_infinite:
            return "Interval.INFINITE"
        return f"Interval({self._raw_ns}ns)"


_INFINITE_NS = 2**64 - 1

Interval.ZERO = Interval(0)
Interval.INFINITE = Interval(_INFINITE_NS)

IntervalLike = Union[Interval, timedelta, int, float]


def require_valid(value: IntervalLike, name: str = "interval") -> Interval:
    """Coerce *value* and reject negative durations.

    A negative duration is a programming error, so this raises
    :class:`ValueError` instead of clamping.
    """

    interval = Interval.coerce(value)
    if not interval.is_valid:
        raise ValueError(f"{name} must be greater or equal to 0 (got {interval!r})")
    return interval
