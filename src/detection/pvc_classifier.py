"""Multi-pathway PVC classifier with a bounded normal-template store."""

from __future__ import annotations

import logging
import math
from collections import deque
from typing import Iterable, Optional

import numpy as np

from src.detection.morphology import normalize_beat, pearson_correlation
from src.ecg_system.schemas import BeatClassification, DetectionPathway

logger = logging.getLogger(__name__)

MAX_TEMPLATES = 12
COMPARED_TEMPLATES = 10


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class NormalTemplateStore:
    """FIFO set of unit-peak normal-beat waveforms."""

    def __init__(self, capacity: int = MAX_TEMPLATES) -> None:
        self._templates: deque[np.ndarray] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._templates)

    def replace(self, templates: Iterable[np.ndarray]) -> None:
        self._templates.clear()
        for t in templates:
            self._templates.append(np.asarray(t, dtype=np.float64))

    def add(self, template: np.ndarray) -> None:
        self._templates.append(np.asarray(template, dtype=np.float64))

    def recent(self, n: int = COMPARED_TEMPLATES) -> list[np.ndarray]:
        return list(self._templates)[-n:]

    def clear(self) -> None:
        self._templates.clear()


class PVCClassifier:
    """Decide PVC vs. normal for each post-training beat.

    The morphology-only pathway is checked first and short-circuits. The
    remaining pathways are evaluated in fixed priority order and the first
    match wins:

    1. high-amplitude  (confidence 0.9)
    2. wide-qrs        (confidence 0.8)
    3. premature-morph (confidence 0.7)
    4. compensatory pause, reported as premature-morph (0.6, or 0.75 with
       mildly abnormal morphology)
    """

    MORPHOLOGY_ONLY_SCORE = 0.7
    MORPHOLOGY_ONLY_MAX_CONFIDENCE = 0.9

    HIGH_AMPLITUDE = 600.0
    VERY_HIGH_AMPLITUDE = 800.0
    WIDE_QRS_MS = 120.0

    PREMATURE = 0.80
    VERY_PREMATURE = 0.70
    MODERATELY_PREMATURE = 0.85
    COMPENSATORY_PAUSE = 1.25

    ABNORMAL_MORPHOLOGY = 0.12
    MODERATE_ABNORMAL_MORPHOLOGY = 0.08

    # Template admission gates
    TEMPLATE_MAX_DISSIMILARITY = 0.1
    TEMPLATE_MAX_AMPLITUDE = 500.0
    TEMPLATE_MAX_QRS_MS = 90.0

    def __init__(self, templates: NormalTemplateStore | None = None) -> None:
        self.templates = templates or NormalTemplateStore()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def morphology_dissimilarity(self, window: np.ndarray) -> float:
        """1 - best correlation against the most recent templates (0 without templates)."""
        if len(self.templates) == 0 or len(window) == 0:
            return 0.0
        beat = normalize_beat(window)
        if not np.any(beat):
            return 0.0
        best = 0.0
        for template in self.templates.recent():
            best = max(best, pearson_correlation(beat, template))
        return max(0.0, 1.0 - best)

    def classify(
        self,
        current_rr: float,
        next_rr: float,
        expected_rr: float,
        amplitude: float,
        qrs_width_ms: float,
        morphology_score: float,
    ) -> BeatClassification:
        """Apply the decision procedure to one beat's measurements."""
        premature_pct = round_half_up((1.0 - current_rr / expected_rr) * 100.0)

        def verdict(pathway: Optional[DetectionPathway], confidence: float) -> BeatClassification:
            return BeatClassification(
                is_pvc=pathway is not None,
                current_rr=current_rr,
                expected_rr=expected_rr,
                percentage_premature=premature_pct,
                confidence=confidence,
                morphology_score=morphology_score,
                pathway=pathway,
            )

        if morphology_score > self.MORPHOLOGY_ONLY_SCORE:
            return verdict(
                DetectionPathway.MORPHOLOGY_ONLY,
                min(self.MORPHOLOGY_ONLY_MAX_CONFIDENCE, morphology_score),
            )

        is_premature = current_rr < expected_rr * self.PREMATURE
        is_very_premature = current_rr < expected_rr * self.VERY_PREMATURE
        is_moderately_premature = current_rr < expected_rr * self.MODERATELY_PREMATURE
        has_pause = next_rr > expected_rr * self.COMPENSATORY_PAUSE

        if amplitude > self.VERY_HIGH_AMPLITUDE or (amplitude > self.HIGH_AMPLITUDE and is_premature):
            return verdict(DetectionPathway.HIGH_AMPLITUDE, 0.9)
        if qrs_width_ms > self.WIDE_QRS_MS and is_premature:
            return verdict(DetectionPathway.WIDE_QRS, 0.8)
        if is_very_premature and morphology_score > self.ABNORMAL_MORPHOLOGY:
            return verdict(DetectionPathway.PREMATURE_MORPH, 0.7)
        if has_pause and is_moderately_premature:
            confidence = 0.75 if morphology_score > self.MODERATE_ABNORMAL_MORPHOLOGY else 0.6
            return verdict(DetectionPathway.PREMATURE_MORPH, confidence)
        return verdict(None, 0.0)

    def maybe_store_template(
        self,
        window: np.ndarray,
        result: BeatClassification,
        recent_mean_rr: Optional[float],
        amplitude: float,
        qrs_width_ms: float,
    ) -> bool:
        """Admit a clearly normal beat's waveform as a new template."""
        if result.is_pvc or recent_mean_rr is None:
            return False
        if result.current_rr < recent_mean_rr * self.MODERATELY_PREMATURE:
            return False
        if result.morphology_score >= self.TEMPLATE_MAX_DISSIMILARITY:
            return False
        if amplitude >= self.TEMPLATE_MAX_AMPLITUDE or qrs_width_ms >= self.TEMPLATE_MAX_QRS_MS:
            return False
        normalized = normalize_beat(window)
        if len(normalized) == 0 or not np.any(normalized):
            return False
        self.templates.add(normalized)
        logger.debug("Stored normal template (%d held)", len(self.templates))
        return True
