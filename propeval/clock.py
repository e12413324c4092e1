from __future__ import annotations

"""Clock capability: epoch milliseconds, injectable for tests."""

import time
from datetime import datetime
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int: ...


class SystemClock:
    def now(self) -> int:
        return int(time.time() * 1000)


class FixedClock:
    """Manually advanced clock."""

    def __init__(self, start_ms: int = 0) -> None:
        self.ms = int(start_ms)

    def now(self) -> int:
        return self.ms

    def advance(self, delta_ms: int) -> None:
        self.ms += int(delta_ms)


def current_year(clock: Clock) -> int:
    return datetime.fromtimestamp(clock.now() / 1000).year
