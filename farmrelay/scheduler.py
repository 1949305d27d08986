"""Fixed-size table of periodic jobs driven by a millisecond clock."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from farmrelay.datatypes import DebugLog

SCHEDULE_SLOTS = 16
_MASK32 = 0xFFFFFFFF


def _millis() -> int:
    return int(time.monotonic() * 1000) & _MASK32


@dataclass
class _ScheduleItem:
    interval: int
    start: int
    func: Callable[[], object]


class Scheduler:
    """Runs each job once its interval has passed since it last ran."""

    def __init__(
        self,
        clock: Callable[[], int] | None = None,
        log: DebugLog | None = None,
    ) -> None:
        self._clock = clock if clock is not None else _millis
        self._log = log
        self._items: list[_ScheduleItem] = []

    def __len__(self) -> int:
        return len(self._items)

    def schedule(self, func: Callable[[], object], interval: int) -> bool:
        """Add a job; return False if all slots are taken."""
        if len(self._items) >= SCHEDULE_SLOTS:
            if self._log is not None:
                self._log.dbg("Schedule is full!")
            return False
        self._items.append(_ScheduleItem(interval & _MASK32, self._clock() & _MASK32, func))
        return True

    def handle(self) -> None:
        """Run every job whose interval has elapsed."""
        for item in self._items:
            now = self._clock() & _MASK32
            if (now - item.start) & _MASK32 > item.interval:
                item.start = now
                item.func()