"""
Frame rate limiting and performance measurement.

Both classes take an injectable millisecond clock so tests can drive them
with a synthetic clock.
"""

from __future__ import annotations

import math
import time
from collections import deque
from typing import Callable, Deque, Optional

Clock = Callable[[], float]


def monotonic_ms() -> float:
    """Default clock: monotonic time in milliseconds."""
    return time.monotonic() * 1000.0


class RateLimiter:
    """
    Time gate admitting at most one frame per ``1000 / target_fps`` ms.

    Example:
        limiter = RateLimiter(target_fps=10)
        if limiter.should_admit():
            process(frame)
    """

    def __init__(self, target_fps: float, clock: Optional[Clock] = None):
        self._clock = clock or monotonic_ms
        self._target_interval = self._interval_for(target_fps)
        self._last_admit_ms: Optional[float] = None

    @staticmethod
    def _interval_for(target_fps: float) -> float:
        if target_fps <= 0:
            raise ValueError("target_fps must be positive")
        return 1000.0 / target_fps

    @property
    def target_interval(self) -> float:
        """Minimum spacing between admissions in ms."""
        return self._target_interval

    def should_admit(self) -> bool:
        """Return True and stamp the admission time if the interval has elapsed."""
        now = self._clock()
        if self._last_admit_ms is None or now - self._last_admit_ms >= self._target_interval:
            self._last_admit_ms = now
            return True
        return False

    def update_target_fps(self, target_fps: float) -> None:
        """Recompute the interval; the last admission time is kept."""
        self._target_interval = self._interval_for(target_fps)

    def reset(self) -> None:
        """Forget the last admission so the next call admits."""
        self._last_admit_ms = None


class PerformanceMonitor:
    """Rolling window of operation durations (ms)."""

    def __init__(self, max_samples: int = 30, clock: Optional[Clock] = None):
        self._clock = clock or monotonic_ms
        self._samples: Deque[float] = deque(maxlen=max_samples)

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    def start_measurement(self) -> float:
        return self._clock()

    def end_measurement(self, start: float) -> float:
        """Record the time elapsed since ``start`` and return it."""
        elapsed = self._clock() - start
        self.record(elapsed)
        return elapsed

    def record(self, duration_ms: float) -> None:
        # deque(maxlen) evicts the oldest sample
        self._samples.append(duration_ms)

    def average_processing_time(self) -> float:
        if not self._samples:
            return 0.0
        return sum(self._samples) / len(self._samples)

    def current_fps(self) -> int:
        """Throughput estimate from the average duration; not clamped."""
        average = self.average_processing_time()
        if average <= 0:
            return 0
        return int(math.floor(1000.0 / average + 0.5))

    def reset(self) -> None:
        self._samples.clear()
