import asyncio
import gc

import pytest

from asynctimer import AsyncDebouncer, Interval


def test_burst_within_window_runs_last_handler_once() -> None:
    delivered: list[int] = []

    async def runner() -> None:
        debouncer = AsyncDebouncer(Interval.from_milliseconds(50))
        for seq in range(5):
            await debouncer.call(lambda seq=seq: delivered.append(seq))
            await asyncio.sleep(0.01)
        assert debouncer.is_waiting
        await asyncio.sleep(0.1)
        assert not debouncer.is_waiting

    asyncio.run(runner())
    assert delivered == [4]


def test_cancel_before_window_suppresses_handler(mocker) -> None:
    handler = mocker.Mock()

    async def runner() -> None:
        debouncer = AsyncDebouncer(0.05)
        await debouncer.call(handler)
        await debouncer.cancel()
        assert not debouncer.is_waiting
        await asyncio.sleep(0.1)

    asyncio.run(runner())
    handler.assert_not_called()


def test_zero_debounce_runs_every_call_immediately() -> None:
    delivered: list[int] = []

    async def runner() -> None:
        debouncer = AsyncDebouncer(0)
        for seq in range(3):
            await debouncer.call(lambda seq=seq: delivered.append(seq))
            assert delivered[-1] == seq
            assert not debouncer.is_waiting

    asyncio.run(runner())
    assert delivered == [0, 1, 2]


def test_override_applies_to_current_call(mocker) -> None:
    handler = mocker.Mock()

    async def runner() -> None:
        debouncer = AsyncDebouncer(1.0)
        await debouncer.call(handler, debounce_time=Interval.from_milliseconds(20))
        assert debouncer.debounce_time == Interval.from_milliseconds(20)
        await asyncio.sleep(0.08)

    asyncio.run(runner())
    handler.assert_called_once_with()


def test_override_to_zero_cancels_pending_and_runs_now() -> None:
    delivered: list[str] = []

    async def runner() -> None:
        debouncer = AsyncDebouncer(0.05)
        await debouncer.call(lambda: delivered.append("first"))
        await debouncer.call(lambda: delivered.append("second"), debounce_time=0)
        assert delivered == ["second"]
        await asyncio.sleep(0.08)

    asyncio.run(runner())
    assert delivered == ["second"]


def test_calls_spaced_beyond_window_each_fire() -> None:
    delivered: list[int] = []

    async def runner() -> None:
        debouncer = AsyncDebouncer(0.02)
        await debouncer.call(lambda: delivered.append(1))
        await asyncio.sleep(0.06)
        await debouncer.call(lambda: delivered.append(2))
        await asyncio.sleep(0.06)

    asyncio.run(runner())
    assert delivered == [1, 2]


def test_async_handler_may_call_debouncer_again() -> None:
    delivered: list[str] = []

    async def runner() -> None:
        debouncer = AsyncDebouncer(0.02)

        async def follow_up() -> None:
            delivered.append("follow-up")

        async def first() -> None:
            delivered.append("first")
            await debouncer.call(follow_up)

        await debouncer.call(first)
        await asyncio.sleep(0.1)
        assert not debouncer.is_waiting

    asyncio.run(runner())
    assert delivered == ["first", "follow-up"]


def test_negative_debounce_time_is_rejected() -> None:
    with pytest.raises(ValueError):
        AsyncDebouncer(-0.1)

    debouncer = AsyncDebouncer(0.1)
    with pytest.raises(ValueError):
        debouncer.set_debounce_time(Interval.from_seconds(-1))


def test_context_manager_discards_pending(mocker) -> None:
    handler = mocker.Mock()

    async def runner() -> None:
        async with AsyncDebouncer(0.03) as debouncer:
            await debouncer.call(handler)
        await asyncio.sleep(0.06)

    asyncio.run(runner())
    handler.assert_not_called()


def test_dropped_debouncer_never_fires_pending_handler() -> None:
    fired: list[str] = []

    async def runner() -> None:
        debouncer = AsyncDebouncer(0.03)
        await debouncer.call(lambda: fired.append("late"))
        assert debouncer.is_waiting
        del debouncer
        gc.collect()
        await asyncio.sleep(0.08)

    asyncio.run(runner())
    assert fired == []
