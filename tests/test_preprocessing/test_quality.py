"""Unit tests for SignalQualityAssessor."""

import numpy as np
import pytest

from src.preprocessing.quality import SignalQualityAssessor
from src.simulator.morphology import NORMAL_BEAT, render_beat

FS = 130


def _beats_window() -> np.ndarray:
    data = np.zeros(FS)
    render_beat(data, FS, 30, NORMAL_BEAT)
    render_beat(data, FS, 100, NORMAL_BEAT)
    return data


class TestSignalQualityAssessor:

    def setup_method(self) -> None:
        self.assessor = SignalQualityAssessor(FS)

    def test_short_window(self) -> None:
        assert self.assessor.assess(np.ones(50)) == (0.0, [])

    def test_flat_line_is_lead_off(self) -> None:
        quality, flags = self.assessor.assess(np.zeros(FS))
        assert quality == 0.0
        assert flags == ["lead_off"]

    def test_clean_beats_not_flagged(self) -> None:
        quality, flags = self.assessor.assess(_beats_window())
        assert flags == []
        assert 0.0 <= quality <= 1.0

    def test_railing_is_saturation(self) -> None:
        data = _beats_window()
        data[40:80] = 2000.0
        _, flags = self.assessor.assess(data)
        assert flags == ["saturation"]

    def test_quality_snr_proxy(self) -> None:
        rng = np.random.default_rng(0)
        offset = 100.0 + rng.normal(0, 1.0, FS)  # |mean|/σ ≈ 100
        assert self.assessor.compute_quality(offset) == pytest.approx(1.0)
        centred = rng.normal(0, 1.0, FS)
        assert self.assessor.compute_quality(centred) < 0.05

    def test_uses_latest_window(self, noisy_signal) -> None:
        data = np.concatenate([noisy_signal, np.zeros(FS)])
        _, flags = self.assessor.assess(data)
        assert flags == ["lead_off"]
