"""Real-time PVC detection engine.

Consumes one (amplitude, timestamp) sample at a time. The engine starts in
the Learning state, collecting a fixed batch of beats for morphology
training, then moves once to the Detecting state where every new beat is
classified and RR bookkeeping, template updates and gap inference run.

Usage:
    engine = PVCDetectionEngine()
    for amplitude, t_ms in stream:
        snapshot = engine.process_sample(amplitude, t_ms)
"""

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Union

import numpy as np

from config.settings import DetectorConfig, TrainerConfig
from src.detection.beat_detector import StreamingBeatDetector
from src.detection.events import PVCEventLog
from src.detection.gap_inference import GapInference
from src.detection.morphology import extract_window
from src.detection.morphology_trainer import MorphologyTrainer
from src.detection.pvc_classifier import NormalTemplateStore, PVCClassifier
from src.detection.rr_history import RRHistoryTracker
from src.detection.sample_buffer import SampleBuffer
from src.ecg_system.exceptions import InvalidSampleError
from src.ecg_system.schemas import (
    BeatClassification,
    BeatRecord,
    DetectionResult,
    EventOrigin,
    PVCEvent,
    RPeak,
    TrainingBeat,
    TrainingResult,
    TrainingStatus,
)
from src.preprocessing.quality import SignalQualityAssessor

logger = logging.getLogger(__name__)

BeatListener = Callable[[BeatRecord], None]


class EngineMode(Enum):
    LEARNING = "learning"
    DETECTING = "detecting"


@dataclass
class LearningState:
    """Accumulates training beats until the batch is full."""

    beats: list[TrainingBeat] = field(default_factory=list)
    mode: EngineMode = field(default=EngineMode.LEARNING, init=False)


@dataclass
class DetectingState:
    """Owns the trained model: training outcome and the template-backed classifier."""

    training_result: TrainingResult
    classifier: PVCClassifier
    morphology_enabled: bool = True
    mode: EngineMode = field(default=EngineMode.DETECTING, init=False)


EngineState = Union[LearningState, DetectingState]


class PVCDetectionEngine:
    """Beat detection, morphology training and PVC classification for one stream.

    Args:
        config: Detector configuration.
        trainer_config: Morphology trainer configuration.
        on_beat: Optional callback receiving a :class:`BeatRecord` for every
            post-training beat and every inferred PVC.
    """

    def __init__(
        self,
        config: DetectorConfig | None = None,
        trainer_config: TrainerConfig | None = None,
        on_beat: Optional[BeatListener] = None,
    ) -> None:
        self.config = config or DetectorConfig()
        self.config.validate()
        self.trainer_config = trainer_config or TrainerConfig()
        self.on_beat = on_beat

        self.detector = StreamingBeatDetector(self.config)
        self.trainer = MorphologyTrainer(self.trainer_config)
        self.gap_inference = GapInference()
        self.quality = SignalQualityAssessor(self.config.min_buffer_samples)

        self.buffer = SampleBuffer(self.config.buffer_capacity)
        self.rr = RRHistoryTracker()
        self.events = PVCEventLog()
        self._beats: deque[RPeak] = deque()
        self._state: EngineState = LearningState()
        self._samples_seen = 0
        self._pvc_count = 0
        self._detected_beats = 0
        self._start_time: Optional[float] = None
        self._last_timestamp: Optional[float] = None
        self._pvc_this_sample = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def mode(self) -> EngineMode:
        return self._state.mode

    @property
    def is_learning(self) -> bool:
        return self._state.mode is EngineMode.LEARNING

    @property
    def templates(self) -> list[np.ndarray]:
        if isinstance(self._state, DetectingState):
            return self._state.classifier.templates.recent(len(self._state.classifier.templates))
        return []

    @property
    def morphology_enabled(self) -> bool:
        return isinstance(self._state, DetectingState) and self._state.morphology_enabled

    def process_sample(self, amplitude: float, timestamp: float) -> DetectionResult:
        """Buffer one sample, run a detection pass every stride, return the snapshot."""
        self._validate_sample(amplitude, timestamp)
        if self._start_time is None:
            self._start_time = timestamp
        self._last_timestamp = timestamp
        self._pvc_this_sample = False

        self.buffer.append(amplitude, timestamp)
        self._samples_seen += 1
        if self._samples_seen % self.config.detection_stride == 0:
            self._detect_beats()

        return self.snapshot()

    def snapshot(self) -> DetectionResult:
        """Current detection readout; counts are zero while learning."""
        quality, flags = self.quality.assess(self.buffer.tail(self.config.min_buffer_samples))
        time_span = 0.0
        if self._start_time is not None and self._last_timestamp is not None:
            time_span = self._last_timestamp - self._start_time

        if self.is_learning:
            return DetectionResult(
                time_span_ms=time_span,
                signal_quality=quality,
                quality_flags=flags,
            )
        return DetectionResult(
            pvc_count=self._pvc_count,
            total_beats=self._detected_beats,
            detected_beats=self._detected_beats,
            heart_rate=self.rr.heart_rate(),
            is_pvc=self._pvc_this_sample,
            pvc_events=self.events.events(),
            beats=list(self._beats),
            time_span_ms=time_span,
            signal_quality=quality,
            quality_flags=flags,
        )

    def training_status(self) -> TrainingStatus:
        if isinstance(self._state, LearningState):
            return TrainingStatus(
                is_learning=True,
                progress=len(self._state.beats),
                total=self.config.max_learning_beats,
            )
        return TrainingStatus(
            is_learning=False,
            progress=self.config.max_learning_beats,
            total=self.config.max_learning_beats,
            training_result=self._state.training_result,
        )

    def reset(self) -> None:
        """Discard all state and re-enter Learning."""
        self.buffer.clear()
        self.rr.clear()
        self.events.clear()
        self._beats.clear()
        self._state = LearningState()
        self._samples_seen = 0
        self._pvc_count = 0
        self._detected_beats = 0
        self._start_time = None
        self._last_timestamp = None
        self._pvc_this_sample = False
        logger.info("Detection engine reset, learning mode enabled")

    def reset_counters(self) -> None:
        """Clear detection counts and time span; keep templates and RR history."""
        self._pvc_count = 0
        self._detected_beats = 0
        self.events.clear()
        self._start_time = self._last_timestamp
        logger.info("Detection counters reset, training data preserved")

    # ------------------------------------------------------------------
    # Detection pass
    # ------------------------------------------------------------------

    def _validate_sample(self, amplitude: float, timestamp: float) -> None:
        if not math.isfinite(amplitude) or not math.isfinite(timestamp):
            raise InvalidSampleError(amplitude, timestamp, "non-finite value")
        if self._last_timestamp is not None and timestamp < self._last_timestamp:
            raise InvalidSampleError(
                amplitude, timestamp,
                f"timestamp precedes previous sample at {self._last_timestamp}",
            )

    def _detect_beats(self) -> None:
        data = self.buffer.amplitudes()
        times = self.buffer.timestamps()
        last_peak = self._beats[-1].timestamp if self._beats else None
        for peak in self.detector.detect(data, times, last_peak):
            self._process_peak(peak, data)

    def _process_peak(self, peak: RPeak, data: np.ndarray) -> None:
        self._beats.append(peak)
        self.rr.record_beat(peak.timestamp)
        self._prune(peak.timestamp - self.config.retention_ms)

        if isinstance(self._state, LearningState):
            self._learn(self._state, peak, data)
            return

        self._detected_beats += 1
        self._classify(self._state, peak, data)

        if self.gap_inference.should_run(self._detected_beats, len(self._beats)):
            inferred = self.gap_inference.infer(self.rr, self.events)
            if inferred is not None:
                self.events.add(inferred)
                self._pvc_count += 1
                self._emit(BeatRecord(inferred.timestamp, True, inferred.confidence))

    def _prune(self, cutoff: float) -> None:
        while self._beats and self._beats[0].timestamp < cutoff:
            self._beats.popleft()
        self.rr.prune(cutoff)
        self.events.prune(cutoff)

    # ------------------------------------------------------------------
    # Learning
    # ------------------------------------------------------------------

    def _learn(self, state: LearningState, peak: RPeak, data: np.ndarray) -> None:
        state.beats.append(TrainingBeat(
            data=data.copy(),
            index=peak.buffer_index,
            amplitude=peak.amplitude,
            qrs_width_ms=peak.qrs_width_ms,
        ))
        logger.debug("Learning beat %d/%d", len(state.beats), self.config.max_learning_beats)
        if len(state.beats) >= self.config.max_learning_beats:
            self._finalize_learning(state)

    def _finalize_learning(self, state: LearningState) -> None:
        result = self.trainer.train(state.beats)
        store = NormalTemplateStore()
        morphology_enabled = bool(
            result.normal_templates
            and result.confidence >= self.trainer_config.min_confidence
        )
        if not morphology_enabled:
            logger.warning(
                "Training confidence %.2f below %.2f, using template-free detection",
                result.confidence, self.trainer_config.min_confidence,
            )
        else:
            store.replace(result.normal_templates)

        self.rr.seed(iv.duration for iv in self.rr.raw)
        self._state = DetectingState(
            training_result=result,
            classifier=PVCClassifier(store),
            morphology_enabled=morphology_enabled,
        )
        self._start_time = self.buffer.latest_timestamp
        logger.info(
            "Learning complete: %d templates, %d trusted RR intervals, PVC detection enabled",
            len(store), len(self.rr.trusted),
        )

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def _classify(self, state: DetectingState, peak: RPeak, data: np.ndarray) -> None:
        current_rr = self.rr.current_rr
        if len(self._beats) < self.config.min_beats_to_classify or current_rr is None:
            self._emit(BeatRecord(peak.timestamp, False, 0.0))
            return

        classifier = state.classifier
        next_rr = self.rr.previous_rr if self.rr.previous_rr is not None else current_rr
        expected_rr = self.rr.expected_rr()
        window = extract_window(data, peak.buffer_index, self.trainer_config.beat_window)
        score = classifier.morphology_dissimilarity(window)
        result = classifier.classify(
            current_rr=current_rr,
            next_rr=next_rr,
            expected_rr=expected_rr,
            amplitude=peak.amplitude,
            qrs_width_ms=peak.qrs_width_ms,
            morphology_score=score,
        )
        logger.debug(
            "Beat at %.0f ms: RR=%.0f expected=%.0f dissimilarity=%.3f",
            peak.timestamp, current_rr, expected_rr, score,
        )

        if result.is_pvc:
            self._record_pvc(peak, result)
        elif state.morphology_enabled:
            classifier.maybe_store_template(
                window, result, self.rr.recent_mean(10), peak.amplitude, peak.qrs_width_ms,
            )

        # After classification, so the PVC just recorded is excluded.
        self.rr.update_trusted(self.events.timestamps(EventOrigin.DIRECT))
        self._emit(BeatRecord(peak.timestamp, result.is_pvc, result.confidence))

    def _record_pvc(self, peak: RPeak, result: BeatClassification) -> None:
        self._pvc_count += 1
        self._pvc_this_sample = True
        self.events.add(PVCEvent(
            timestamp=peak.timestamp,
            current_rr=result.current_rr,
            expected_rr=result.expected_rr,
            percentage_premature=result.percentage_premature,
            qrs_width_ms=peak.qrs_width_ms,
            confidence=result.confidence,
            morphology_score=result.morphology_score,
            pathway=result.pathway,
            amplitude=peak.amplitude,
        ))
        logger.info(
            "PVC detected via %s: QRS %.1f ms, amplitude %.0f, confidence %.2f",
            result.pathway.value, peak.qrs_width_ms, peak.amplitude, result.confidence,
        )

    def _emit(self, record: BeatRecord) -> None:
        if self.on_beat is not None:
            self.on_beat(record)
