"""PVC burden statistics, clinical categories and trend estimation."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from src.ecg_system.schemas import (
    BurdenCategory,
    BurdenDataPoint,
    BurdenStats,
    BurdenTrend,
    TrendDirection,
)

LOW_BURDEN_LIMIT = 1.0
HIGH_BURDEN_LIMIT = 10.0
INSUFFICIENT_CONFIDENCE = 0.4
TREND_POINTS = 10
STABLE_SLOPE = 0.1


def calculate_burden(
    detected_beats: int,
    pvc_count: int,
    time_span_ms: float = 0.0,
    heart_rate: float = 0.0,
) -> BurdenStats:
    """Burden statistics for a count of detected beats and PVCs.

    Args:
        detected_beats: Beats actually detected in the span.
        pvc_count: PVCs among them.
        time_span_ms: Duration of the span.
        heart_rate: Average heart rate over the span (bpm), 0 if unknown.
    """
    total = max(0, int(detected_beats))
    pvcs = max(0, int(pvc_count))
    burden = pvcs / total * 100.0 if total > 0 else 0.0
    minutes = time_span_ms / 60_000.0
    return BurdenStats(
        total_beats=total,
        normal_beats=max(0, total - pvcs),
        pvc_beats=pvcs,
        burden=round(burden, 2),
        category=categorize_burden(burden),
        confidence=burden_confidence(total, minutes, heart_rate),
        time_window_minutes=minutes,
        average_heart_rate=heart_rate,
    )


def burden_confidence(total_beats: int, window_minutes: float, heart_rate: float) -> float:
    """Weighted sum of duration, beat count, heart-rate and detection-ratio signals, capped at 1."""
    confidence = 0.0

    # Window duration
    if window_minutes >= 30:
        confidence += 0.4
    elif window_minutes >= 10:
        confidence += 0.3
    elif window_minutes >= 5:
        confidence += 0.2
    elif window_minutes >= 1:
        confidence += 0.1

    # Beat count
    if total_beats >= 3000:
        confidence += 0.3
    elif total_beats >= 1000:
        confidence += 0.2
    elif total_beats >= 300:
        confidence += 0.1

    # Heart-rate plausibility
    if 50 <= heart_rate <= 120:
        confidence += 0.2
    elif heart_rate > 0:
        confidence += 0.1

    # Detected vs. expected beats
    if heart_rate > 0 and window_minutes > 0:
        ratio = total_beats / (heart_rate * window_minutes)
        if 0.8 <= ratio <= 1.2:
            confidence += 0.1

    return float(min(1.0, max(0.0, confidence)))


def categorize_burden(burden: float) -> BurdenCategory:
    if burden < LOW_BURDEN_LIMIT:
        return BurdenCategory.LOW
    if burden < HIGH_BURDEN_LIMIT:
        return BurdenCategory.MODERATE
    return BurdenCategory.HIGH


def confidence_indicator(confidence: float) -> str:
    if confidence >= 0.8:
        return "●●●"
    if confidence >= 0.6:
        return "●●○"
    if confidence >= 0.4:
        return "●○○"
    return "○○○"


def format_burden(burden: float, confidence: float = 1.0) -> str:
    """e.g. ``"3.25% ●●○"``."""
    return f"{burden:.2f}% {confidence_indicator(confidence)}"


def clinical_interpretation(burden: float, confidence: float) -> str:
    if confidence < INSUFFICIENT_CONFIDENCE:
        return "Insufficient data for reliable burden assessment"
    category = categorize_burden(burden)
    if category is BurdenCategory.LOW:
        return "Minimal PVC activity" if burden < 0.1 else "Low PVC burden - typically benign"
    if category is BurdenCategory.MODERATE:
        return "Moderate PVC burden - monitor for symptoms"
    return "High PVC burden - consider cardiology evaluation"


def calculate_trend(history: Sequence[BurdenDataPoint]) -> BurdenTrend:
    """Least-squares slope of burden against point index over the last ten points."""
    if len(history) < 3:
        return BurdenTrend(TrendDirection.STABLE, 0.0, 0.0)

    recent = history[-TREND_POINTS:]
    n = len(recent)
    x = np.arange(n, dtype=np.float64)
    y = np.array([p.burden for p in recent], dtype=np.float64)
    denominator = n * np.sum(x * x) - np.sum(x) ** 2
    slope = float((n * np.sum(x * y) - np.sum(x) * np.sum(y)) / denominator)

    if abs(slope) < STABLE_SLOPE:
        direction = TrendDirection.STABLE
    elif slope > 0:
        direction = TrendDirection.INCREASING
    else:
        direction = TrendDirection.DECREASING
    return BurdenTrend(direction, slope, min(1.0, n / TREND_POINTS))
