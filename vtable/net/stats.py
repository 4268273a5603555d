"""
Latency Stats - Rolling window of request durations.

Only used to report aggregate client latency to the authority. No
control decision depends on these numbers.
"""

from __future__ import annotations
from collections import deque
import statistics


class LatencyStats:
    """Fixed-capacity window of millisecond samples."""

    def __init__(self, capacity: int = 10):
        self._samples: deque[float] = deque(maxlen=capacity)

    def add(self, duration_ms: float):
        self._samples.append(duration_ms)

    def __len__(self) -> int:
        return len(self._samples)

    def min(self) -> float | None:
        return min(self._samples) if self._samples else None

    def max(self) -> float | None:
        return max(self._samples) if self._samples else None

    def mean(self) -> float | None:
        return statistics.fmean(self._samples) if self._samples else None

    def median(self) -> float | None:
        return statistics.median(self._samples) if self._samples else None

    def summary(self) -> dict[str, float] | None:
        """Query parameters for the client_stats log call."""
        if not self._samples:
            return None
        return {
            "min_ms": self.min(),
            "max_ms": self.max(),
            "median_ms": self.median(),
        }
