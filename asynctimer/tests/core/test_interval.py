from datetime import timedelta

import pytest

from asynctimer.core.interval import Interval, require_valid


@pytest.mark.parametrize(
    ("interval", "expected_ns"),
    [
        (Interval.from_nanoseconds(7), 7),
        (Interval.from_microseconds(3), 3_000),
        (Interval.from_milliseconds(250), 250_000_000),
        (Interval.from_seconds(1.5), 1_500_000_000),
        (Interval.from_minutes(2), 120_000_000_000),
        (Interval.from_hours(1), 3_600_000_000_000),
        (Interval.from_days(1), 86_400_000_000_000),
    ],
)
def test_unit_conversion(interval: Interval, expected_ns: int) -> None:
    assert interval.nanoseconds == expected_ns


def test_negative_seconds_read_as_zero_but_are_invalid() -> None:
    interval = Interval.from_seconds(-2.0)
    assert interval.nanoseconds == 0
    assert interval.is_negative
    assert not interval.is_valid
    assert not interval.is_positive
    assert not interval.is_zero


def test_equality_uses_nanoseconds() -> None:
    assert Interval.from_milliseconds(1000) == Interval.from_seconds(1)
    assert Interval.from_seconds(0) == Interval.ZERO
    assert Interval.from_microseconds(1) < Interval.from_milliseconds(1)
    assert len({Interval.from_seconds(1), Interval.from_milliseconds(1000)}) == 1


def test_coerce_accepts_numbers_and_timedelta() -> None:
    assert Interval.coerce(0.25) == Interval.from_milliseconds(250)
    assert Interval.coerce(2) == Interval.from_seconds(2)
    assert Interval.coerce(timedelta(milliseconds=5)) == Interval.from_milliseconds(5)
    same = Interval.from_seconds(1)
    assert Interval.coerce(same) is same
    with pytest.raises(TypeError):
        Interval.coerce("1s")  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        Interval.coerce(True)


def test_infinite_and_zero_constants() -> None:
    assert Interval.INFINITE.is_infinite
    assert Interval.INFINITE.is_positive
    assert Interval.ZERO.is_zero
    assert not Interval.ZERO.is_positive
    assert Interval.ZERO.is_valid


def test_require_valid_rejects_negative_duration() -> None:
    assert require_valid(0) == Interval.ZERO
    with pytest.raises(ValueError, match="throttle_time"):
        require_valid(-0.5, "throttle_time")
    with pytest.raises(ValueError):
        require_valid(timedelta(seconds=-1))
