"""Environment toggles that are re-read on every use."""

from __future__ import annotations

import os

_PERF_ENVS = ("PERF_LOGGING", "ASYNCTIMER_PERF")
_PERF_DISABLED_ENV = "ASYNCTIMER_PERF_DISABLED"


def is_perf_logging_enabled() -> bool:
    """Return whether per-fire timing diagnostics are requested."""

    if os.environ.get(_PERF_DISABLED_ENV, "").strip() == "1":
        return False
    for env in _PERF_ENVS:
        if os.environ.get(env, "").strip() == "1":
            return True
    return False


__all__ = ["is_perf_logging_enabled"]
