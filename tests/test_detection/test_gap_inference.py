"""Unit tests for PVCEventLog and GapInference."""

import pytest

from src.detection.events import PVCEventLog
from src.detection.gap_inference import GapInference
from src.detection.rr_history import RRHistoryTracker
from src.ecg_system.schemas import DetectionPathway, EventOrigin, PVCEvent


def _event(ts: float, origin: EventOrigin = EventOrigin.DIRECT) -> PVCEvent:
    return PVCEvent(
        timestamp=ts, current_rr=500.0, expected_rr=800.0, percentage_premature=38,
        qrs_width_ms=120.0, confidence=0.9, morphology_score=0.2,
        pathway=DetectionPathway.HIGH_AMPLITUDE, amplitude=900.0, origin=origin,
    )


def _tracker(beat_times: list[float], trusted: list[float]) -> RRHistoryTracker:
    rr = RRHistoryTracker()
    for t in beat_times:
        rr.record_beat(t)
    rr.seed(trusted)
    return rr


class TestPVCEventLog:

    def test_sorted_insertion(self) -> None:
        log = PVCEventLog()
        for ts in (3000.0, 1000.0, 2000.0):
            log.add(_event(ts))
        assert log.timestamps() == [1000.0, 2000.0, 3000.0]

    def test_filter_by_origin(self) -> None:
        log = PVCEventLog()
        log.add(_event(1000.0))
        log.add(_event(1500.0, EventOrigin.INFERRED))
        assert log.timestamps(EventOrigin.DIRECT) == [1000.0]
        assert log.timestamps(EventOrigin.INFERRED) == [1500.0]
        assert len(log) == 2

    def test_near_is_exclusive(self) -> None:
        log = PVCEventLog()
        log.add(_event(1000.0))
        assert log.has_event_near(1199.0, 200.0)
        assert not log.has_event_near(1200.0, 200.0)
        assert not log.has_event_near(1100.0, 200.0, EventOrigin.INFERRED)

    def test_between_is_strict(self) -> None:
        log = PVCEventLog()
        log.add(_event(1000.0, EventOrigin.INFERRED))
        assert log.has_event_between(999.0, 1001.0)
        assert not log.has_event_between(1000.0, 2000.0)

    def test_prune(self) -> None:
        log = PVCEventLog()
        for ts in (1000.0, 2000.0, 3000.0):
            log.add(_event(ts))
        log.prune(2000.0)
        assert log.timestamps() == [2000.0, 3000.0]


class TestGapInference:

    def setup_method(self) -> None:
        self.gap = GapInference()
        self.log = PVCEventLog()

    def test_should_run_cadence(self) -> None:
        assert self.gap.should_run(5, 6)
        assert not self.gap.should_run(6, 6)
        assert not self.gap.should_run(5, 5)

    def test_infers_midpoint(self) -> None:
        rr = _tracker([0.0, 800.0, 2400.0], [800.0] * 10)
        event = self.gap.infer(rr, self.log)
        assert event is not None
        assert event.timestamp == pytest.approx(1600.0)
        assert event.current_rr == pytest.approx(800.0)
        assert event.expected_rr == 800.0
        assert event.pathway is DetectionPathway.GAP_DETECTED
        assert event.origin is EventOrigin.INFERRED
        assert event.confidence == 0.5

    def test_short_gap_ignored(self) -> None:
        rr = _tracker([0.0, 800.0, 2240.0], [800.0] * 10)  # 1440 = 1.8 × 800
        assert self.gap.infer(rr, self.log) is None

    def test_needs_trusted_median(self) -> None:
        rr = _tracker([0.0, 800.0, 2400.0], [800.0] * 4)
        assert self.gap.infer(rr, self.log) is None

    def test_direct_event_at_boundary_suppresses(self) -> None:
        rr = _tracker([0.0, 800.0, 2400.0], [800.0] * 10)
        self.log.add(_event(2350.0))
        assert self.gap.infer(rr, self.log) is None

    def test_idempotent(self) -> None:
        rr = _tracker([0.0, 800.0, 2400.0], [800.0] * 10)
        first = self.gap.infer(rr, self.log)
        assert first is not None
        self.log.add(first)
        assert self.gap.infer(rr, self.log) is None
        assert len(self.log.events(EventOrigin.INFERRED)) == 1
