"""Unit tests for RRHistoryTracker."""

import pytest

from src.detection.rr_history import (
    DEFAULT_EXPECTED_RR,
    MAX_TRUSTED,
    RRHistoryTracker,
    lower_median,
)


def _tracker_with_beats(times: list[float]) -> RRHistoryTracker:
    rr = RRHistoryTracker()
    for t in times:
        rr.record_beat(t)
    return rr


class TestLowerMedian:
    def test_odd(self) -> None:
        assert lower_median([3.0, 1.0, 2.0]) == 2.0

    def test_even_takes_upper_middle(self) -> None:
        assert lower_median([1.0, 2.0, 3.0, 4.0]) == 3.0


class TestRRHistoryTracker:

    def test_raw_intervals(self) -> None:
        rr = _tracker_with_beats([0.0, 800.0, 1500.0])
        assert [iv.duration for iv in rr.raw] == [800.0, 700.0]
        assert rr.current_rr == 700.0
        assert rr.previous_rr == 800.0
        assert rr.latest_interval.start == 800.0

    def test_first_beat_has_no_interval(self) -> None:
        rr = RRHistoryTracker()
        assert rr.record_beat(100.0) is None
        assert rr.current_rr is None
        assert rr.previous_rr is None

    def test_expected_rr_default(self) -> None:
        assert RRHistoryTracker().expected_rr() == DEFAULT_EXPECTED_RR

    def test_expected_rr_ignores_out_of_band(self) -> None:
        rr = RRHistoryTracker()
        rr.seed([450.0, 900.0, 1300.0, 1000.0, 950.0])
        # 450 and 1300 are outside (500, 1200)
        assert rr.expected_rr() == 950.0

    def test_expected_rr_band_is_exclusive(self) -> None:
        rr = RRHistoryTracker()
        rr.seed([500.0, 1200.0])
        assert rr.expected_rr() == DEFAULT_EXPECTED_RR

    def test_seed_caps_history(self) -> None:
        rr = RRHistoryTracker()
        rr.seed([800.0 + i for i in range(50)])
        assert len(rr.trusted) == MAX_TRUSTED
        assert rr.trusted[-1] == 849.0

    def test_update_excludes_intervals_touching_pvc(self) -> None:
        rr = _tracker_with_beats([0.0, 800.0, 1600.0, 2100.0, 3200.0, 4000.0])
        rr.seed([])
        rr.update_trusted([2100.0])
        # 1600→2100 and 2100→3200 touch the PVC
        assert rr.trusted == [800.0, 800.0, 800.0]

    def test_update_excludes_out_of_band(self) -> None:
        rr = _tracker_with_beats([0.0, 800.0, 2400.0, 2700.0])
        rr.seed([])
        rr.update_trusted([])
        # 1600 ≥ 1500 and 300 ≤ 400 are not trusted
        assert rr.trusted == [800.0]

    def test_update_caps_and_carries_over(self) -> None:
        rr = _tracker_with_beats([i * 700.0 for i in range(41)])
        rr.seed([900.0] * 30)
        rr.update_trusted([])
        assert len(rr.trusted) == MAX_TRUSTED
        assert all(v == 700.0 for v in rr.trusted)

    def test_update_without_admissions_keeps_history(self) -> None:
        rr = _tracker_with_beats([0.0, 300.0])
        rr.seed([800.0, 810.0])
        rr.update_trusted([])
        assert rr.trusted == [800.0, 810.0]

    def test_trusted_median_requires_minimum(self) -> None:
        rr = RRHistoryTracker()
        rr.seed([800.0] * 4)
        assert rr.trusted_median() is None
        rr.seed([800.0] * 5)
        assert rr.trusted_median() == 800.0

    def test_heart_rate(self) -> None:
        rr = RRHistoryTracker()
        rr.seed([800.0, 800.0])
        assert rr.heart_rate() == 0
        rr.seed([1000.0, 800.0, 800.0, 800.0, 800.0, 800.0])
        assert rr.heart_rate() == 75

    def test_heart_rate_implausible_is_zero(self) -> None:
        rr = RRHistoryTracker()
        rr.seed([250.0] * 5)  # 240 bpm
        assert rr.heart_rate() == 0
        rr.seed([1600.0] * 5)  # 37.5 bpm
        assert rr.heart_rate() == 0

    def test_prune_by_start(self) -> None:
        rr = _tracker_with_beats([0.0, 800.0, 1600.0, 2400.0])
        rr.prune(800.0)
        assert [iv.start for iv in rr.raw] == [800.0, 1600.0]

    def test_recent_mean(self) -> None:
        rr = RRHistoryTracker()
        assert rr.recent_mean() is None
        rr.seed([700.0, 900.0])
        assert rr.recent_mean() == pytest.approx(800.0)

    def test_clear(self) -> None:
        rr = _tracker_with_beats([0.0, 800.0])
        rr.seed([800.0])
        rr.clear()
        assert rr.current_rr is None
        assert rr.trusted == []
        assert rr.record_beat(5000.0) is None
