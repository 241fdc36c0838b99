"""Bounded rolling window of recent samples feeding the beat search."""

from __future__ import annotations

from collections import deque
from typing import Optional

import numpy as np


class SampleBuffer:
    """Keep the last ``capacity`` (amplitude, timestamp) pairs.

    Args:
        capacity: Maximum number of samples retained (3 s at the nominal rate).
    """

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        self._amplitudes: deque[float] = deque(maxlen=capacity)
        self._timestamps: deque[float] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._amplitudes)

    def append(self, amplitude: float, timestamp: float) -> None:
        self._amplitudes.append(float(amplitude))
        self._timestamps.append(float(timestamp))

    def amplitudes(self) -> np.ndarray:
        return np.fromiter(self._amplitudes, dtype=np.float64, count=len(self._amplitudes))

    def timestamps(self) -> np.ndarray:
        return np.fromiter(self._timestamps, dtype=np.float64, count=len(self._timestamps))

    def tail(self, n: int) -> np.ndarray:
        """Most recent ``n`` amplitudes (fewer if the buffer is shorter)."""
        data = self.amplitudes()
        return data[-n:] if n > 0 else data[:0]

    @property
    def latest_timestamp(self) -> Optional[float]:
        return self._timestamps[-1] if self._timestamps else None

    def clear(self) -> None:
        self._amplitudes.clear()
        self._timestamps.clear()
