import asyncio
import logging

import pytest

from asynctimer import AsyncTimer, TaskPriority
from asynctimer.core.logging import LOGGER_PREFIX, configure_logging, get_logger


def test_get_logger_uses_package_namespace() -> None:
    assert get_logger("timer").name == "asynctimer.timer"
    assert get_logger("asynctimer.throttler").name == "asynctimer.throttler"


def test_get_logger_attaches_context_filter_once() -> None:
    first = get_logger("filters")
    second = get_logger("filters")
    assert first is second
    assert len(first.filters) == 1


def test_records_from_timer_task_carry_timer_context(caplog) -> None:
    caplog.set_level(logging.DEBUG, logger=LOGGER_PREFIX)
    log = get_logger("handlers.test")

    async def runner() -> None:
        log.debug("outside")
        timer = AsyncTimer(0, lambda: log.debug("inside"), name="poll", priority=TaskPriority.HIGH)
        await timer.start()
        await timer.aclose()

    asyncio.run(runner())
    by_message = {record.getMessage(): record for record in caplog.records}
    assert by_message["inside"].timer == "poll"
    assert by_message["inside"].priority == "high"
    assert by_message["outside"].timer == "-"
    assert by_message["outside"].priority == "-"


def test_records_outside_event_loop_use_placeholder(caplog) -> None:
    caplog.set_level(logging.INFO, logger=LOGGER_PREFIX)
    get_logger("sync").info("hello")
    assert caplog.records[-1].timer == "-"


def test_verbose_env_enables_debug(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ASYNCTIMER_LOG_VERBOSE", "1")
    package_logger = logging.getLogger(LOGGER_PREFIX)
    handlers = list(package_logger.handlers)
    try:
        configure_logging()
        configure_logging()
        assert package_logger.level == logging.DEBUG
        added = [h for h in package_logger.handlers if h not in handlers]
        assert len(added) == 1
        assert "timer=%(timer)s" in added[0].formatter._fmt
    finally:
        package_logger.handlers[:] = handlers
        package_logger.setLevel(logging.NOTSET)
