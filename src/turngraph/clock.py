from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol


class TimeProvider(Protocol):
    def now_ms(self) -> int: ...


class SystemTimeProvider:
    """Wall clock in epoch milliseconds."""

    def now_ms(self) -> int:
        return time.time_ns() // 1_000_000


@dataclass
class FixedTimeProvider:
    """Manually advanced clock, mostly for tests and deterministic replays."""

    current_ms: int = 0

    def now_ms(self) -> int:
        return self.current_ms

    def advance(self, ms: int) -> int:
        self.current_ms += ms
        return self.current_ms

