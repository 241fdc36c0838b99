"""Streaming R-peak detector for a single-lead ECG buffer.

Finds R-peaks in the rolling sample buffer using symmetric adaptive
amplitude thresholds (mean ± k·σ), accepting both upright and inverted
complexes, and measures each beat's QRS width against a local baseline.

Usage:
    detector = StreamingBeatDetector(DetectorConfig())
    peaks = detector.detect(amplitudes, timestamps, last_peak_time)
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from config.settings import DetectorConfig
from src.ecg_system.schemas import RPeak

logger = logging.getLogger(__name__)


class StreamingBeatDetector:
    """Detect beats and measure QRS width in a rolling sample buffer.

    Args:
        config: Detector configuration (sampling rate, thresholds, windows).
    """

    def __init__(self, config: DetectorConfig | None = None) -> None:
        self.config = config or DetectorConfig()
        self.fs = self.config.sampling_rate
        self.min_distance = int(np.floor(self.fs * self.config.refractory_s))
        self.refractory_ms = self.config.refractory_s * 1000.0

    def detect(
        self,
        data: np.ndarray,
        times: np.ndarray,
        last_peak_time: Optional[float] = None,
    ) -> list[RPeak]:
        """Find new R-peaks in the buffer.

        Args:
            data: Buffered amplitudes, oldest first.
            times: Matching timestamps in ms.
            last_peak_time: Timestamp of the previously registered beat, if any.

        Returns:
            Newly registered beats in time order. Peaks closer than the
            refractory period to the previous beat are skipped.
        """
        if len(data) < self.config.min_buffer_samples:
            return []

        upper, lower = self.thresholds(data)
        candidates = self._candidate_indices(data, upper, lower)

        peaks: list[RPeak] = []
        last = last_peak_time
        for i in candidates:
            positive = data[i] > upper
            if not self.is_valid_peak(data, i, positive):
                continue
            if last is not None and times[i] - last <= self.refractory_ms:
                continue
            amplitude = float(data[i]) if positive else float(abs(data[i]))
            peaks.append(RPeak(
                timestamp=float(times[i]),
                amplitude=amplitude,
                qrs_width_ms=self.qrs_width(data, i),
                buffer_index=int(i),
            ))
            last = float(times[i])
        return peaks

    # ------------------------------------------------------------------
    # Thresholds and candidates
    # ------------------------------------------------------------------

    def thresholds(self, data: np.ndarray) -> tuple[float, float]:
        mean = float(np.mean(data))
        std = float(np.std(data))
        k = self.config.threshold_sigma
        return mean + k * std, mean - k * std

    def _candidate_indices(
        self, data: np.ndarray, upper: float, lower: float,
    ) -> np.ndarray:
        """Strict local extrema beyond the thresholds, away from the buffer edges."""
        lo = self.min_distance
        hi = len(data) - self.min_distance
        if hi <= lo:
            return np.array([], dtype=int)
        idx = np.arange(lo, hi)
        centre = data[idx]
        prev = data[idx - 1]
        nxt = data[idx + 1]
        is_max = (centre > upper) & (centre > prev) & (centre > nxt)
        is_min = (centre < lower) & (centre < prev) & (centre < nxt)
        return idx[is_max | is_min]

    def is_valid_peak(self, data: np.ndarray, index: int, positive: bool) -> bool:
        """Allow at most ``max_peak_violations`` neighbours to reach the peak value."""
        w = self.config.peak_neighbourhood
        start = max(0, index - w)
        end = min(len(data), index + w)
        neighbours = np.delete(data[start:end], index - start)
        if positive:
            violations = int(np.sum(neighbours >= data[index]))
        else:
            violations = int(np.sum(neighbours <= data[index]))
        return violations <= self.config.max_peak_violations

    # ------------------------------------------------------------------
    # QRS width
    # ------------------------------------------------------------------

    def qrs_width(self, data: np.ndarray, peak_index: int) -> float:
        """QRS width in ms from where the signal returns near baseline on each side."""
        search = int(np.floor(self.fs * self.config.qrs_search_s))
        start = max(0, peak_index - search)
        end = min(len(data), peak_index + search)

        baseline = self.local_baseline(data, peak_index)
        threshold = abs(data[peak_index] - baseline) * self.config.qrs_threshold_ratio

        onset = peak_index
        for i in range(peak_index - 1, start - 1, -1):
            if abs(data[i] - baseline) < threshold:
                onset = i
                break

        offset = peak_index
        for i in range(peak_index + 1, end):
            if abs(data[i] - baseline) < threshold:
                offset = i
                break

        return (offset - onset) / self.fs * 1000.0

    def local_baseline(self, data: np.ndarray, peak_index: int) -> float:
        """Mean of two flanking windows offset one to two window widths from the peak."""
        w = self.config.baseline_window
        n = len(data)
        before = data[max(0, peak_index - 2 * w):max(0, peak_index - w)]
        after = data[min(n, peak_index + w):min(n, peak_index + 2 * w)]
        values = np.concatenate([before, after])
        return float(np.mean(values)) if len(values) > 0 else 0.0
