"""Signal quality assessment for the live single-lead stream."""

from __future__ import annotations

import numpy as np


class SignalQualityAssessor:
    """Instantaneous quality over the most recent second of signal.

    The score is a clipped signal-to-noise proxy, |mean| / σ scaled by 1/10
    and capped at 1. Flat (lead-off) and railing (saturated) windows are
    flagged separately.

    Args:
        window_samples: Number of most recent samples assessed (one second).
    """

    SNR_SCALE = 10.0

    def __init__(self, window_samples: int = 130) -> None:
        self.window_samples = window_samples

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def assess(self, recent: np.ndarray) -> tuple[float, list[str]]:
        """Return (quality 0–1, quality flags) for the latest samples."""
        if len(recent) < self.window_samples:
            return 0.0, []
        window = recent[-self.window_samples:]
        flags: list[str] = []
        if self.detect_lead_off(window):
            flags.append("lead_off")
        elif self.detect_saturation(window):
            flags.append("saturation")
        return self.compute_quality(window), flags

    def compute_quality(self, window: np.ndarray) -> float:
        std = float(np.std(window))
        if std < 1e-12:
            return 0.0
        snr = abs(float(np.mean(window))) / std
        return float(min(1.0, snr / self.SNR_SCALE))

    def detect_lead_off(self, window: np.ndarray) -> bool:
        """Detect lead-off condition (flat line / near-zero variance)."""
        return float(np.var(window)) < 1e-6

    def detect_saturation(self, window: np.ndarray) -> bool:
        """Detect signal saturation (railing at extremes)."""
        # Saturation: >20% of samples at the same min or max value, where that
        # value lies away from the median (a flat baseline is not a rail)
        n = len(window)
        max_val = float(np.max(window))
        min_val = float(np.min(window))
        median = float(np.median(window))
        margin = 0.1 * (max_val - min_val)
        at_max = np.sum(np.abs(window - max_val) < 1e-6) / n
        at_min = np.sum(np.abs(window - min_val) < 1e-6) / n
        railed_high = float(at_max) > 0.2 and max_val - median > margin
        railed_low = float(at_min) > 0.2 and median - min_val > margin
        return railed_high or railed_low
