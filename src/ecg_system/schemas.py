"""Data classes for the PVC monitoring engine input, state and output."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import numpy as np


# ============== Enumerations ==============


class DetectionPathway(Enum):
    """Decision pathway that produced a PVC event."""

    MORPHOLOGY_ONLY = "morphology-only"
    HIGH_AMPLITUDE = "high-amplitude"
    WIDE_QRS = "wide-qrs"
    PREMATURE_MORPH = "premature-morph"
    GAP_DETECTED = "gap-detected"


class EventOrigin(Enum):
    """Whether a PVC event was classified from a detected beat or inferred from a gap."""

    DIRECT = "direct"
    INFERRED = "inferred"


class BurdenCategory(Enum):
    """Clinical burden category (<1% low, 1-10% moderate, >=10% high)."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class TrendDirection(Enum):
    STABLE = "stable"
    INCREASING = "increasing"
    DECREASING = "decreasing"


# ============== Input Data Classes ==============


@dataclass
class ECGRecording:
    """Recorded single-lead stream for replay through the engine."""

    amplitudes: np.ndarray  # µV
    timestamps_ms: np.ndarray
    sampling_rate: float
    subject_id: str = "unknown"
    annotations: dict[str, np.ndarray] = field(default_factory=dict)

    @property
    def num_samples(self) -> int:
        return len(self.amplitudes)

    @property
    def duration_sec(self) -> float:
        if self.num_samples < 2:
            return 0.0
        return float(self.timestamps_ms[-1] - self.timestamps_ms[0]) / 1000.0


# ============== Detection Data Classes ==============


@dataclass(frozen=True)
class RPeak:
    """Single detected beat (R-peak)."""

    timestamp: float  # ms
    amplitude: float  # µV, absolute value for inverted peaks
    qrs_width_ms: float
    buffer_index: int  # index into the sample buffer at detection time


@dataclass(frozen=True)
class RRInterval:
    """Interval between two consecutive detected beats."""

    start: float  # ms, timestamp of the earlier beat
    end: float  # ms, timestamp of the later beat

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass
class PVCEvent:
    """A premature ventricular contraction, classified or inferred."""

    timestamp: float
    current_rr: float
    expected_rr: float
    percentage_premature: int
    qrs_width_ms: float
    confidence: float
    morphology_score: float
    pathway: DetectionPathway
    amplitude: float
    origin: EventOrigin = EventOrigin.DIRECT

    @property
    def is_inferred(self) -> bool:
        return self.origin is EventOrigin.INFERRED

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "current_rr": round(self.current_rr, 2),
            "expected_rr": round(self.expected_rr, 2),
            "percentage_premature": self.percentage_premature,
            "qrs_width_ms": round(self.qrs_width_ms, 2),
            "confidence": round(self.confidence, 4),
            "morphology_score": round(self.morphology_score, 4),
            "pathway": self.pathway.value,
            "amplitude": round(self.amplitude, 2),
            "inferred": self.is_inferred,
        }


@dataclass
class BeatClassification:
    """Outcome of classifying one post-training beat."""

    is_pvc: bool
    current_rr: float
    expected_rr: float
    percentage_premature: int
    confidence: float
    morphology_score: float
    pathway: Optional[DetectionPathway] = None


@dataclass
class DetectionResult:
    """Snapshot returned to the host after every sample."""

    pvc_count: int = 0
    total_beats: int = 0
    detected_beats: int = 0
    heart_rate: int = 0
    is_pvc: bool = False
    pvc_events: list[PVCEvent] = field(default_factory=list)
    beats: list[RPeak] = field(default_factory=list)
    time_span_ms: float = 0.0
    signal_quality: float = 0.0
    quality_flags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pvc_count": self.pvc_count,
            "total_beats": self.total_beats,
            "detected_beats": self.detected_beats,
            "heart_rate": self.heart_rate,
            "pvc_events": [e.to_dict() for e in self.pvc_events],
            "time_span_ms": self.time_span_ms,
            "signal_quality": round(self.signal_quality, 4),
            "quality_flags": list(self.quality_flags),
        }


# ============== Training Data Classes ==============


@dataclass
class TrainingBeat:
    """Beat collected during the learning phase."""

    data: np.ndarray  # copy of the sample buffer at detection time
    index: int  # peak index into ``data``
    amplitude: float
    qrs_width_ms: float
    normalized: Optional[np.ndarray] = None


@dataclass
class MorphologyCluster:
    """Group of training beats with mutually similar waveforms."""

    beats: list[TrainingBeat]
    centroid: np.ndarray
    avg_correlation: float
    is_normal: bool = False

    @property
    def size(self) -> int:
        return len(self.beats)


@dataclass
class TrainingResult:
    """Outcome of morphology training."""

    normal_templates: list[np.ndarray]
    clusters_found: int
    normal_cluster_size: int
    confidence: float
    quality_score: float
    dominance_ratio: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "templates": len(self.normal_templates),
            "clusters_found": self.clusters_found,
            "normal_cluster_size": self.normal_cluster_size,
            "confidence": round(self.confidence, 4),
            "quality_score": round(self.quality_score, 4),
            "dominance_ratio": round(self.dominance_ratio, 4),
        }


@dataclass
class TrainingStatus:
    """Learning progress readout for the presentation layer."""

    is_learning: bool
    progress: int
    total: int
    training_result: Optional[TrainingResult] = None


# ============== Burden Data Classes ==============


@dataclass(frozen=True)
class BeatRecord:
    """Durable per-beat ledger entry used for burden aggregation."""

    timestamp: float
    is_pvc: bool
    confidence: float = 1.0


@dataclass
class BurdenStats:
    """PVC burden over a span of beats."""

    total_beats: int
    normal_beats: int
    pvc_beats: int
    burden: float  # percentage, 2 decimals
    category: BurdenCategory
    confidence: float
    time_window_minutes: float
    average_heart_rate: float


@dataclass(frozen=True)
class BurdenDataPoint:
    """One sample of the sliding-window burden time series."""

    timestamp: float
    burden: float
    window_size_minutes: float
    confidence: float
    total_beats: int
    pvc_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "burden": self.burden,
            "window_size_minutes": self.window_size_minutes,
            "confidence": round(self.confidence, 4),
            "total_beats": self.total_beats,
            "pvc_count": self.pvc_count,
        }


@dataclass
class BurdenTrend:
    """Least-squares trend over recent burden points."""

    direction: TrendDirection
    slope: float
    confidence: float
