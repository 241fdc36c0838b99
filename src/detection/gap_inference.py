"""Gap-based inference of PVCs the beat detector missed.

Runs alongside the per-beat classifier at a lower rate. When the most
recent RR interval is far longer than the trusted median, a single
unclassified ectopic beat is assumed to have fallen inside it.
"""

from __future__ import annotations

import logging
from typing import Optional

from src.detection.events import PVCEventLog
from src.detection.rr_history import RRHistoryTracker
from src.ecg_system.schemas import DetectionPathway, EventOrigin, PVCEvent

logger = logging.getLogger(__name__)


class GapInference:
    """Infer at most one PVC per anomalously long RR interval."""

    RUN_EVERY = 5
    MIN_BEATS = 6
    MEDIAN_LOOKBACK = 10
    MIN_TRUSTED = 5
    GAP_RATIO = 1.8
    BOUNDARY_TOLERANCE_MS = 200.0
    INFERRED_CONFIDENCE = 0.5

    def should_run(self, detected_beats: int, retained_beats: int) -> bool:
        return retained_beats >= self.MIN_BEATS and detected_beats % self.RUN_EVERY == 0

    def infer(self, rr: RRHistoryTracker, events: PVCEventLog) -> Optional[PVCEvent]:
        """Return a new inferred event for the latest interval, or ``None``."""
        median = rr.trusted_median(self.MEDIAN_LOOKBACK, self.MIN_TRUSTED)
        interval = rr.latest_interval
        if median is None or interval is None:
            return None
        if interval.duration <= median * self.GAP_RATIO:
            return None

        if events.has_event_near(interval.start, self.BOUNDARY_TOLERANCE_MS, EventOrigin.DIRECT):
            return None
        if events.has_event_near(interval.end, self.BOUNDARY_TOLERANCE_MS, EventOrigin.DIRECT):
            return None
        if events.has_event_between(interval.start, interval.end, EventOrigin.INFERRED):
            return None

        event = PVCEvent(
            timestamp=interval.start + interval.duration / 2,
            current_rr=interval.duration / 2,
            expected_rr=median,
            percentage_premature=0,
            qrs_width_ms=0.0,
            confidence=self.INFERRED_CONFIDENCE,
            morphology_score=0.0,
            pathway=DetectionPathway.GAP_DETECTED,
            amplitude=0.0,
            origin=EventOrigin.INFERRED,
        )
        logger.info(
            "Gap-inferred PVC at %.0f ms: RR %.0f ms vs median %.0f ms",
            event.timestamp, interval.duration, median,
        )
        return event
