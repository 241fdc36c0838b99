"""Unit tests for SampleBuffer and StreamingBeatDetector."""

import numpy as np
import pytest

from config.settings import DetectorConfig
from src.detection.beat_detector import StreamingBeatDetector
from src.detection.sample_buffer import SampleBuffer
from src.simulator.morphology import BeatShape, render_beat

FS = 130


def _buffer_with_beats(peaks: list[int], n: int = 390, amplitude: float = 400.0) -> np.ndarray:
    data = np.zeros(n)
    for p in peaks:
        render_beat(data, FS, p, BeatShape(r_amplitude=amplitude))
    return data


def _times(n: int) -> np.ndarray:
    return np.arange(n) * 1000.0 / FS


class TestSampleBuffer:

    def test_bounded_capacity(self) -> None:
        buf = SampleBuffer(390)
        for i in range(1000):
            buf.append(float(i), i * 7.7)
        assert len(buf) == 390
        assert buf.amplitudes()[0] == 610.0
        assert buf.amplitudes()[-1] == 999.0

    def test_timestamps_track_amplitudes(self) -> None:
        buf = SampleBuffer(5)
        for i in range(8):
            buf.append(i * 10.0, i * 100.0)
        np.testing.assert_array_equal(buf.timestamps(), [300.0, 400.0, 500.0, 600.0, 700.0])
        assert buf.latest_timestamp == 700.0

    def test_tail(self) -> None:
        buf = SampleBuffer(10)
        for i in range(4):
            buf.append(float(i), float(i))
        np.testing.assert_array_equal(buf.tail(2), [2.0, 3.0])
        assert len(buf.tail(100)) == 4
        assert len(buf.tail(0)) == 0

    def test_clear(self) -> None:
        buf = SampleBuffer(10)
        buf.append(1.0, 1.0)
        buf.clear()
        assert len(buf) == 0
        assert buf.latest_timestamp is None


class TestStreamingBeatDetector:

    def setup_method(self) -> None:
        self.detector = StreamingBeatDetector(DetectorConfig())

    def test_short_buffer_returns_nothing(self) -> None:
        data = _buffer_with_beats([60], n=100)
        assert self.detector.detect(data, _times(100)) == []

    def test_min_distance(self) -> None:
        assert self.detector.min_distance == 39
        assert self.detector.refractory_ms == pytest.approx(300.0)

    def test_detects_upright_beats(self) -> None:
        data = _buffer_with_beats([65, 169, 273])
        peaks = self.detector.detect(data, _times(len(data)))
        assert [p.buffer_index for p in peaks] == [65, 169, 273]
        assert peaks[1].timestamp - peaks[0].timestamp == pytest.approx(800.0)
        assert peaks[0].amplitude == pytest.approx(400.0)

    def test_edge_peaks_ignored(self) -> None:
        data = _buffer_with_beats([20, 169, 370])
        peaks = self.detector.detect(data, _times(len(data)))
        assert [p.buffer_index for p in peaks] == [169]

    def test_detects_inverted_beats_with_absolute_amplitude(self) -> None:
        data = -_buffer_with_beats([65, 169, 273])
        peaks = self.detector.detect(data, _times(len(data)))
        assert len(peaks) == 3
        assert all(p.amplitude == pytest.approx(400.0) for p in peaks)

    def test_refractory_against_last_peak(self) -> None:
        data = _buffer_with_beats([65, 169, 273])
        times = _times(len(data))
        # Previous beat 200 ms before the first candidate suppresses it
        peaks = self.detector.detect(data, times, last_peak_time=times[65] - 200.0)
        assert [p.buffer_index for p in peaks] == [169, 273]

    def test_refractory_boundary_is_inclusive(self) -> None:
        data = _buffer_with_beats([65, 169, 273])
        times = _times(len(data))
        peaks = self.detector.detect(data, times, last_peak_time=times[65] - 300.0)
        assert peaks[0].buffer_index == 169

    def test_already_registered_peaks_not_repeated(self) -> None:
        data = _buffer_with_beats([65, 169, 273])
        times = _times(len(data))
        peaks = self.detector.detect(data, times, last_peak_time=times[273])
        assert peaks == []

    def test_plateau_is_not_a_peak(self) -> None:
        data = _buffer_with_beats([65, 273])
        data[165:172] = 400.0  # flat top, no strict maximum
        peaks = self.detector.detect(data, _times(len(data)))
        assert [p.buffer_index for p in peaks] == [65, 273]

    def test_qrs_width_tracks_duration(self) -> None:
        narrow = _buffer_with_beats([195])
        wide = np.zeros(390)
        render_beat(wide, FS, 195, BeatShape(r_amplitude=400.0, qrs_duration=0.14))
        w_narrow = self.detector.qrs_width(narrow, 195)
        w_wide = self.detector.qrs_width(wide, 195)
        assert 50.0 < w_narrow < 90.0
        assert w_wide > 120.0

    def test_qrs_width_zero_when_baseline_never_reached(self) -> None:
        # Very broad bump: no sample within ±100 ms returns near baseline
        idx = np.arange(390, dtype=np.float64)
        data = 400.0 * np.exp(-((idx - 195) ** 2) / (2 * 30.0 ** 2))
        assert self.detector.qrs_width(data, 195) == 0.0

    def test_local_baseline(self) -> None:
        data = np.zeros(390)
        data[155:175] = 10.0
        data[215:235] = 30.0
        assert self.detector.local_baseline(data, 195) == pytest.approx(20.0)

    def test_flat_signal_has_no_peaks(self) -> None:
        data = np.zeros(390)
        assert self.detector.detect(data, _times(390)) == []
