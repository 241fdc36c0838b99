"""Beat waveform helpers: window extraction, normalisation and correlation."""

from __future__ import annotations

from typing import Sequence

import numpy as np


def extract_window(data: np.ndarray, peak_index: int, half_width: int) -> np.ndarray:
    """Slice ``[peak - half_width, peak + half_width)`` clipped to the buffer."""
    start = max(0, peak_index - half_width)
    end = min(len(data), peak_index + half_width)
    return np.asarray(data[start:end], dtype=np.float64)


def normalize_beat(window: np.ndarray) -> np.ndarray:
    """Scale a window to unit peak absolute amplitude.

    An all-zero window is returned unchanged.
    """
    if len(window) == 0:
        return window
    max_amp = float(np.max(np.abs(window)))
    if max_amp == 0.0:
        return window
    return window / max_amp


def pearson_correlation(a: np.ndarray, b: np.ndarray, min_length: int = 10) -> float:
    """Pearson correlation over the overlapping prefix of two waveforms.

    Returns 0.0 when the overlap is shorter than ``min_length`` or either
    waveform is flat.
    """
    n = min(len(a), len(b))
    if n < min_length:
        return 0.0
    x = np.asarray(a[:n], dtype=np.float64)
    y = np.asarray(b[:n], dtype=np.float64)
    dx = x - x.mean()
    dy = y - y.mean()
    denominator = float(np.sqrt(np.sum(dx * dx) * np.sum(dy * dy)))
    if denominator == 0.0:
        return 0.0
    return float(np.sum(dx * dy) / denominator)


def ragged_mean(waveforms: Sequence[np.ndarray]) -> np.ndarray:
    """Per-index mean of waveforms of unequal length.

    Indices beyond a waveform's end are omitted from that column's mean.
    """
    if not waveforms:
        return np.zeros(0)
    max_len = max(len(w) for w in waveforms)
    total = np.zeros(max_len)
    count = np.zeros(max_len)
    for w in waveforms:
        total[: len(w)] += w
        count[: len(w)] += 1
    return np.divide(total, count, out=np.zeros(max_len), where=count > 0)
