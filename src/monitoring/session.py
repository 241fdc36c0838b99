"""Monitoring session: one detector, beat ledger and burden aggregator per stream."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from config.settings import Settings
from src.burden.beat_history import BeatHistoryManager
from src.burden.calculator import calculate_burden, calculate_trend
from src.burden.temporal import TemporalBurdenAggregator
from src.detection.engine import PVCDetectionEngine
from src.ecg_system.schemas import (
    BeatRecord,
    BurdenDataPoint,
    BurdenStats,
    BurdenTrend,
    DetectionResult,
    TrainingStatus,
)

logger = logging.getLogger(__name__)


class MonitoringSession:
    """Wire the detection engine to the beat ledger and burden time series.

    Every public method takes the session lock, so a reset is atomic with
    respect to in-flight sample processing and a burden tick never sees a
    half-appended ledger.

    Args:
        settings: Application settings (defaults if omitted).
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self._lock = threading.RLock()
        self.beat_history = BeatHistoryManager(self.settings.burden.history_ms)
        self.aggregator = TemporalBurdenAggregator(self.settings.burden)
        self.engine = PVCDetectionEngine(
            self.settings.detector,
            self.settings.trainer,
            on_beat=self._on_beat,
        )
        self._last_result = DetectionResult()
        self._last_tick: Optional[float] = None
        self._current_burden: Optional[BurdenStats] = None

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def push_sample(self, amplitude: float, timestamp: float) -> DetectionResult:
        """Process one sample and advance the burden clock to its timestamp."""
        with self._lock:
            self._last_result = self.engine.process_sample(amplitude, timestamp)
            self._maybe_update_burden(timestamp)
            return self._last_result

    def update_burden(self, now: Optional[float] = None) -> Optional[BurdenDataPoint]:
        """Tick the burden series if the update interval has elapsed."""
        with self._lock:
            if now is None:
                now = self.engine.buffer.latest_timestamp
            if now is None:
                return None
            return self._maybe_update_burden(now)

    def reset(self) -> None:
        """Discard everything, including the learned model."""
        with self._lock:
            self.engine.reset()
            self.beat_history.clear()
            self.aggregator.clear()
            self._last_result = DetectionResult()
            self._last_tick = None
            self._current_burden = None
            logger.info("Monitoring session reset")

    def reset_counters(self) -> None:
        """Restart the display window; keep templates and RR history."""
        with self._lock:
            self.engine.reset_counters()
            self._last_result = self.engine.snapshot()

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def snapshot(self) -> DetectionResult:
        with self._lock:
            return self._last_result

    def training_status(self) -> TrainingStatus:
        with self._lock:
            return self.engine.training_status()

    def burden_history(self) -> list[BurdenDataPoint]:
        with self._lock:
            return self.aggregator.history()

    def current_burden(self) -> Optional[BurdenStats]:
        with self._lock:
            return self._current_burden

    def burden_trend(self) -> BurdenTrend:
        with self._lock:
            return calculate_trend(self.aggregator.history())

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _on_beat(self, record: BeatRecord) -> None:
        self.beat_history.add_record(record)

    def _maybe_update_burden(self, now: float) -> Optional[BurdenDataPoint]:
        cfg = self.settings.burden
        result = self._last_result
        if self.engine.is_learning or result.detected_beats < cfg.min_beats_for_update:
            return None
        if self._last_tick is not None and now - self._last_tick < cfg.update_interval_s * 1000.0:
            return None
        latest = self.beat_history.latest_beat()
        if latest is None:
            return None

        point = self.aggregator.tick(self.beat_history.all_beats(), latest.timestamp, stamp=now)
        self._current_burden = calculate_burden(
            result.detected_beats, result.pvc_count, result.time_span_ms, result.heart_rate,
        )
        self._last_tick = now
        logger.debug(
            "Session burden %.2f%% (%s)",
            self._current_burden.burden, self._current_burden.category.value,
        )
        return point
