"""RR-interval bookkeeping: raw intervals and the trusted normal-to-normal history."""

from __future__ import annotations

from collections import deque
from typing import Iterable, Optional, Sequence

import numpy as np

from src.ecg_system.schemas import RRInterval

# Physiologic band for expected-RR estimation (exclusive bounds, ms)
EXPECTED_RR_BAND = (500.0, 1200.0)
# Intervals admissible to the trusted history (exclusive bounds, ms)
TRUSTED_RR_BAND = (400.0, 1500.0)
DEFAULT_EXPECTED_RR = 800.0
PVC_ENDPOINT_TOLERANCE_MS = 100.0

MAX_TRUSTED = 30
TRUSTED_CARRY_OVER = 15
EXPECTED_RR_LOOKBACK = 20


def lower_median(values: Sequence[float]) -> float:
    """Element at ``n // 2`` of the sorted values (upper-middle for even n)."""
    ordered = sorted(values)
    return float(ordered[len(ordered) // 2])


def _in_band(value: float, band: tuple[float, float]) -> bool:
    return band[0] < value < band[1]


class RRHistoryTracker:
    """Track raw RR intervals and a bounded history of trusted ones.

    Raw intervals are every interval between consecutive retained beats.
    Trusted values are normal-to-normal intervals only; they drive the
    expected-RR estimate, the gap-inference median and the heart rate.
    """

    def __init__(self) -> None:
        self.raw: deque[RRInterval] = deque()
        self.trusted: list[float] = []
        self._last_beat: Optional[float] = None

    def record_beat(self, timestamp: float) -> Optional[RRInterval]:
        """Register a new beat and return the interval it closes, if any."""
        interval = None
        if self._last_beat is not None:
            interval = RRInterval(start=self._last_beat, end=timestamp)
            self.raw.append(interval)
        self._last_beat = timestamp
        return interval

    def seed(self, durations: Iterable[float]) -> None:
        """Replace the trusted history with the learning-phase intervals."""
        self.trusted = [float(d) for d in durations][-MAX_TRUSTED:]

    def update_trusted(self, pvc_timestamps: Sequence[float]) -> None:
        """Re-admit every retained normal-to-normal interval.

        The last ``TRUSTED_CARRY_OVER`` trusted values are kept for stability,
        the admitted intervals are appended and the result is capped at
        ``MAX_TRUSTED``.
        """
        pvc = np.asarray(pvc_timestamps, dtype=np.float64)

        def near_pvc(t: float) -> bool:
            return pvc.size > 0 and bool(np.any(np.abs(pvc - t) < PVC_ENDPOINT_TOLERANCE_MS))

        admitted = [
            iv.duration for iv in self.raw
            if _in_band(iv.duration, TRUSTED_RR_BAND)
            and not near_pvc(iv.start)
            and not near_pvc(iv.end)
        ]
        if admitted:
            self.trusted = (self.trusted[-TRUSTED_CARRY_OVER:] + admitted)[-MAX_TRUSTED:]

    # ------------------------------------------------------------------
    # Estimates
    # ------------------------------------------------------------------

    @property
    def current_rr(self) -> Optional[float]:
        return self.raw[-1].duration if self.raw else None

    @property
    def previous_rr(self) -> Optional[float]:
        return self.raw[-2].duration if len(self.raw) >= 2 else None

    @property
    def latest_interval(self) -> Optional[RRInterval]:
        return self.raw[-1] if self.raw else None

    def expected_rr(self) -> float:
        """Median of recent in-band trusted RR values, 800 ms if none qualify."""
        candidates = [
            rr for rr in self.trusted[-EXPECTED_RR_LOOKBACK:]
            if _in_band(rr, EXPECTED_RR_BAND)
        ]
        if not candidates:
            return DEFAULT_EXPECTED_RR
        return lower_median(candidates)

    def trusted_median(self, lookback: int = 10, min_count: int = 5) -> Optional[float]:
        """Median of the last ``lookback`` in-band trusted values, if enough qualify."""
        candidates = [
            rr for rr in self.trusted[-lookback:]
            if _in_band(rr, EXPECTED_RR_BAND)
        ]
        if len(candidates) < min_count:
            return None
        return lower_median(candidates)

    def recent_mean(self, lookback: int = 10) -> Optional[float]:
        recent = self.trusted[-lookback:]
        return float(np.mean(recent)) if recent else None

    def heart_rate(self) -> int:
        """Beats per minute from the last five trusted intervals; 0 if implausible."""
        if len(self.trusted) < 3:
            return 0
        avg = float(np.mean(self.trusted[-5:]))
        if avg <= 0:
            return 0
        bpm = int(round(60000.0 / avg))
        return bpm if 40 <= bpm <= 200 else 0

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def prune(self, cutoff: float) -> None:
        """Drop raw intervals that start before ``cutoff``."""
        while self.raw and self.raw[0].start < cutoff:
            self.raw.popleft()

    def clear(self) -> None:
        self.raw.clear()
        self.trusted = []
        self._last_beat = None
