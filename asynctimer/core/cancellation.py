"""Cooperative cancellation for timer loops."""

from __future__ import annotations

import asyncio

__all__ = ["CancelToken"]


class CancelToken:
    """One-shot cancellation flag that also interrupts :meth:`sleep`.

    A token belongs to exactly one timer run.  Cancelling it never touches
    code that is currently executing; it only makes the next (or the
    pending) suspension point return early.
    """

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def sleep(self, duration_ns: int | None) -> bool:
        """Sleep for *duration_ns* nanoseconds; ``None`` sleeps until cancelled.

        Returns ``True`` when the token was cancelled before or during the
        sleep, ``False`` when the full duration elapsed.
        """

        if self._event.is_set():
            return True
        if duration_ns is not None and duration_ns <= 0:
            await asyncio.sleep(0)
            return self._event.is_set()
        timeout = None if duration_ns is None else duration_ns / 1_000_000_000
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            # The loop may have run other tasks between the timeout and now.
            return self._event.is_set()
        return True
