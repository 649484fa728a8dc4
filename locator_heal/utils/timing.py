# locator_heal/utils/timing.py
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional


# ---------------- Monotonic time helpers ----------------

def now_ms() -> int:
    """Monotonic time in milliseconds."""
    return time.monotonic_ns() // 1_000_000


# ---------------- Stopwatch ----------------

@dataclass
class Stopwatch:
    """Simple stopwatch usable as a context manager."""
    start_ms: Optional[int] = None

    def start(self) -> "Stopwatch":
        self.start_ms = now_ms()
        return self

    def elapsed_ms(self) -> int:
        if self.start_ms is None:
            return 0
        return max(0, now_ms() - self.start_ms)

    def __enter__(self) -> "Stopwatch":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        return None


# ---------------- Deadline ----------------

@dataclass(frozen=True)
class Deadline:
    """
    Absolute point on the monotonic clock.

    Checked only between strategy calls: an in-flight page query is never
    interrupted, the next strategy simply is not started.
    """
    at_ms: int

    @classmethod
    def after_ms(cls, timeout_ms: int) -> "Deadline":
        return cls(at_ms=now_ms() + max(0, timeout_ms))

    def remaining_ms(self) -> int:
        return max(0, self.at_ms - now_ms())

    def expired(self) -> bool:
        return now_ms() >= self.at_ms
