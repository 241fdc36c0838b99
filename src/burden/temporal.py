"""Sliding-window burden time series."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Sequence

from config.settings import BurdenConfig
from src.burden.calculator import calculate_burden
from src.ecg_system.schemas import BeatRecord, BurdenDataPoint

logger = logging.getLogger(__name__)


class TemporalBurdenAggregator:
    """Produce one burden point per tick over a fixed lookback window.

    Args:
        config: Window length and history retention.
    """

    def __init__(self, config: BurdenConfig | None = None) -> None:
        self.config = config or BurdenConfig()
        self._history: list[BurdenDataPoint] = []

    def sliding_burden(self, beats: Sequence[BeatRecord], current_time: float) -> BurdenDataPoint:
        """Burden over ``[current_time - window, current_time]``."""
        window_ms = self.config.window_ms
        start = current_time - window_ms
        in_window = [b for b in beats if start <= b.timestamp <= current_time]
        total = len(in_window)
        pvcs = sum(1 for b in in_window if b.is_pvc)
        average_hr = 60_000.0 * total / window_ms if total > 0 else 0.0

        stats = calculate_burden(total, pvcs, window_ms, average_hr)
        return BurdenDataPoint(
            timestamp=current_time,
            burden=stats.burden,
            window_size_minutes=self.config.window_minutes,
            confidence=stats.confidence,
            total_beats=stats.total_beats,
            pvc_count=stats.pvc_beats,
        )

    def add_point(self, point: BurdenDataPoint) -> None:
        self._history.append(point)
        self._history.sort(key=lambda p: p.timestamp)
        cutoff = self._history[-1].timestamp - self.config.history_ms
        self._history = [p for p in self._history if p.timestamp >= cutoff]

    def tick(
        self,
        beats: Sequence[BeatRecord],
        current_time: float,
        stamp: Optional[float] = None,
    ) -> BurdenDataPoint:
        """Compute and store one point; ``stamp`` overrides the point's timestamp."""
        point = self.sliding_burden(beats, current_time)
        if stamp is not None:
            point = replace(point, timestamp=stamp)
        self.add_point(point)
        logger.info(
            "Burden tick: %.2f%% (%d/%d beats, confidence %.2f)",
            point.burden, point.pvc_count, point.total_beats, point.confidence,
        )
        return point

    def history(self) -> list[BurdenDataPoint]:
        return list(self._history)

    def history_in_range(self, start: float, end: float) -> list[BurdenDataPoint]:
        return [p for p in self._history if start <= p.timestamp <= end]

    def latest(self) -> Optional[BurdenDataPoint]:
        return self._history[-1] if self._history else None

    def clear(self) -> None:
        self._history = []
