"""Pluggable metrics sink for timer, debouncer and throttler counters.

Nothing is recorded unless an application calls :func:`configure` with a
backend (Prometheus, StatsD, an in-memory test double, ...).  Without a
backend every update is echoed at DEBUG level on the ``metrics`` logger.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

log = logging.getLogger("metrics")

__all__ = ["MetricsBackend", "configure", "gauge", "inc", "observe"]


class MetricsBackend(Protocol):
    """Interface a metrics backend has to provide."""

    def inc(self, name: str, **labels: Any) -> None: ...

    def observe(self, name: str, value: float, **labels: Any) -> None: ...

    def gauge(self, name: str, value: float, **labels: Any) -> None: ...


_backend: MetricsBackend | None = None


def configure(backend: MetricsBackend | None) -> None:
    """Install *backend*; ``None`` restores the logging-only default."""

    global _backend
    _backend = backend


def _emit(kind: str, name: str, value: float | None, labels: dict[str, Any]) -> None:
    backend = _backend
    if backend is not None:
        try:
            if kind == "inc":
                backend.inc(name, **labels)
            elif kind == "observe":
                backend.observe(name, value, **labels)  # type: ignore[arg-type]
            else:
                backend.gauge(name, value, **labels)  # type: ignore[arg-type]
        except Exception:  # pragma: no cover - backend defined externally
            log.exception("metrics backend %s failed name=%s", kind, name)
        else:
            return
    if log.isEnabledFor(logging.DEBUG):
        if value is None:
            log.debug("metric %s %s labels=%s", kind, name, labels)
        else:
            log.debug("metric %s %s value=%s labels=%s", kind, name, value, labels)


def inc(name: str, **labels: Any) -> None:
    """Increment counter *name*."""

    _emit("inc", name, None, labels)


def observe(name: str, value: float, **labels: Any) -> None:
    """Record one sample for histogram *name*."""

    _emit("observe", name, value, labels)


def gauge(name: str, value: float, **labels: Any) -> None:
    """Set gauge *name* to *value*."""

    _emit("gauge", name, value, labels)
