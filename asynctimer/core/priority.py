"""Scheduling hints for background timer loops."""

from __future__ import annotations

from enum import IntEnum

__all__ = ["TaskPriority"]


class TaskPriority(IntEnum):
    """Ordered scheduling hint; never affects correctness.

    asyncio runs ready callbacks in FIFO order, so the hint is applied by
    letting lower priorities step aside on the ready queue before they fire.
    """

    BACKGROUND = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3

    UTILITY = 1
    USER_INITIATED = 3

    @property
    def yields_before_fire(self) -> int:
        return max(0, TaskPriority.MEDIUM - self)

    @classmethod
    def parse(cls, raw: str) -> "TaskPriority":
        """Return the priority named by *raw* (case-insensitive) or its number."""

        text = raw.strip()
        if text.lstrip("-").isdigit():
            return cls(int(text))
        try:
            return cls[text.upper().replace("-", "_")]
        except KeyError:
            raise ValueError(f"unknown task priority {raw!r}") from None
