"""Personalised normal-beat template training from an unlabeled beat batch.

The learning batch is normalised, clustered greedily by waveform
correlation, and the largest cluster is taken as the subject's normal
morphology. Its centroid and most representative members become the
initial template set.
"""

from __future__ import annotations

import logging
from dataclasses import replace

import numpy as np

from config.settings import TrainerConfig
from src.detection.morphology import (
    extract_window,
    normalize_beat,
    pearson_correlation,
    ragged_mean,
)
from src.ecg_system.schemas import MorphologyCluster, TrainingBeat, TrainingResult

logger = logging.getLogger(__name__)


class MorphologyTrainer:
    """Derive normal-beat templates from the learning-phase beats.

    Args:
        config: Trainer configuration (window, thresholds, template count).
    """

    def __init__(self, config: TrainerConfig | None = None) -> None:
        self.config = config or TrainerConfig()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def train(self, beats: list[TrainingBeat]) -> TrainingResult:
        """Find the dominant morphology and build templates from it."""
        logger.debug("Training on %d learning beats", len(beats))
        normalized = self.normalize_beats(beats)
        clusters = self.cluster(normalized)

        dominant = self.find_dominant_cluster(clusters)
        if dominant is None:
            logger.warning("No morphology cluster reached %d beats", self.config.min_cluster_size)
            return TrainingResult(
                normal_templates=[],
                clusters_found=len(clusters),
                normal_cluster_size=0,
                confidence=0.0,
                quality_score=0.0,
            )

        dominance = self.dominance_ratio(dominant, clusters)
        templates = self.generate_templates(dominant)
        confidence = min(1.0, dominance * dominant.avg_correlation * 1.2)
        result = TrainingResult(
            normal_templates=templates,
            clusters_found=len(clusters),
            normal_cluster_size=dominant.size,
            confidence=float(max(0.0, confidence)),
            quality_score=self.quality_score(dominant),
            dominance_ratio=dominance,
        )
        logger.info(
            "Morphology training: %d clusters, dominant=%d beats, %d templates, "
            "confidence=%.3f, quality=%.3f",
            result.clusters_found, result.normal_cluster_size, len(templates),
            result.confidence, result.quality_score,
        )
        return result

    def normalize_beats(self, beats: list[TrainingBeat]) -> list[TrainingBeat]:
        """Copies of the beats carrying a unit-peak window; short windows are dropped."""
        kept: list[TrainingBeat] = []
        for beat in beats:
            window = extract_window(beat.data, beat.index, self.config.beat_window)
            normalized = normalize_beat(window)
            if len(normalized) > self.config.min_window_samples:
                kept.append(replace(beat, normalized=normalized))
        return kept

    def cluster(self, beats: list[TrainingBeat]) -> list[MorphologyCluster]:
        """Greedy single-pass clustering in arrival order, largest cluster first."""
        clusters: list[MorphologyCluster] = []
        assigned: set[int] = set()

        for i, seed in enumerate(beats):
            if i in assigned:
                continue
            members = [seed]
            assigned.add(i)
            for j in range(i + 1, len(beats)):
                if j in assigned:
                    continue
                if self._correlation(seed.normalized, beats[j].normalized) > self.config.correlation_threshold:
                    members.append(beats[j])
                    assigned.add(j)

            if len(members) >= self.config.min_cluster_size:
                clusters.append(MorphologyCluster(
                    beats=members,
                    centroid=ragged_mean([b.normalized for b in members]),
                    avg_correlation=self.intra_cluster_correlation(members),
                ))

        # Stable sort keeps arrival order among equal-size clusters.
        return sorted(clusters, key=lambda c: c.size, reverse=True)

    def find_dominant_cluster(
        self, clusters: list[MorphologyCluster],
    ) -> MorphologyCluster | None:
        """The largest cluster is taken as normal, even when it is not dominant."""
        if not clusters:
            return None
        largest = clusters[0]
        ratio = self.dominance_ratio(largest, clusters)
        if ratio < self.config.dominance_warning_ratio:
            logger.warning(
                "Largest morphology cluster holds only %.1f%% of clustered beats",
                ratio * 100,
            )
        largest.is_normal = True
        return largest

    def generate_templates(self, cluster: MorphologyCluster) -> list[np.ndarray]:
        """Centroid first, then the members closest to it."""
        templates = [cluster.centroid.copy()]
        ranked = sorted(
            cluster.beats,
            key=lambda b: self._correlation(b.normalized, cluster.centroid),
            reverse=True,
        )
        for beat in ranked[: self.config.representative_templates]:
            templates.append(beat.normalized.copy())
        return templates

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    @staticmethod
    def dominance_ratio(
        dominant: MorphologyCluster, clusters: list[MorphologyCluster],
    ) -> float:
        total = sum(c.size for c in clusters)
        return dominant.size / total if total > 0 else 0.0

    def intra_cluster_correlation(self, beats: list[TrainingBeat]) -> float:
        if len(beats) < 2:
            return 1.0
        total = 0.0
        comparisons = 0
        for i in range(len(beats)):
            for j in range(i + 1, len(beats)):
                total += self._correlation(beats[i].normalized, beats[j].normalized)
                comparisons += 1
        return total / comparisons

    @staticmethod
    def quality_score(cluster: MorphologyCluster) -> float:
        """Average of size adequacy, cohesion and QRS-width consistency."""
        size_score = min(1.0, cluster.size / 20)
        widths = np.array([b.qrs_width_ms for b in cluster.beats], dtype=np.float64)
        qrs_consistency = max(0.0, 1.0 - float(np.var(widths)) / 100.0)
        return float((size_score + cluster.avg_correlation + qrs_consistency) / 3)

    def _correlation(self, a: np.ndarray, b: np.ndarray) -> float:
        return pearson_correlation(a, b, self.config.min_correlation_samples)
