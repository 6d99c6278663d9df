import asyncio

import pytest

from asynctimer.core import config, handlers
from asynctimer.core.handlers import run_handler


def test_sync_and_async_handlers_run() -> None:
    calls: list[str] = []

    async def async_handler() -> None:
        await asyncio.sleep(0)
        calls.append("async")

    async def runner() -> None:
        assert await run_handler(lambda: calls.append("sync"), component="t")
        assert await run_handler(async_handler, component="t")
        assert await run_handler(None, component="t")

    asyncio.run(runner())
    assert calls == ["sync", "async"]


def test_failures_are_logged_and_counted(mocker, caplog) -> None:
    caplog.set_level("ERROR")
    inc = mocker.patch("asynctimer.core.handlers.metrics.inc")

    def broken() -> None:
        raise KeyError("missing")

    assert asyncio.run(run_handler(broken, component="job")) is False
    assert any("job handler failed" in record.message for record in caplog.records)
    inc.assert_called_once_with("handler_errors_total", component="job")


def test_slow_handler_warns(monkeypatch: pytest.MonkeyPatch, caplog) -> None:
    caplog.set_level("WARNING")
    monkeypatch.setattr(config, "SLOW_HANDLER_WARN_MS", 1.0)

    async def slow() -> None:
        await asyncio.sleep(0.01)

    asyncio.run(run_handler(slow, component="slow"))
    assert any("slow handler took" in record.message for record in caplog.records)


def test_perf_logging_records_duration(monkeypatch: pytest.MonkeyPatch, mocker) -> None:
    monkeypatch.setenv("PERF_LOGGING", "1")
    observe = mocker.patch.object(handlers.metrics, "observe")

    asyncio.run(run_handler(lambda: None, component="perf"))

    observe.assert_called_once()
    name, value = observe.call_args.args
    assert name == "timer_handler_ms"
    assert value >= 0
    assert observe.call_args.kwargs == {"component": "perf"}
