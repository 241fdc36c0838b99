"""Configuration management for the PVC monitoring engine."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from src.ecg_system.exceptions import ConfigurationError


@dataclass
class DetectorConfig:
    """Configuration for sample buffering, beat detection and classification."""

    sampling_rate: int = 130
    buffer_seconds: float = 3.0
    detection_stride: int = 10
    threshold_sigma: float = 1.4
    refractory_s: float = 0.3
    peak_neighbourhood: int = 5
    max_peak_violations: int = 1
    qrs_search_s: float = 0.1
    qrs_threshold_ratio: float = 0.15
    baseline_window: int = 20
    retention_ms: float = 120_000.0
    min_beats_to_classify: int = 8
    max_learning_beats: int = 40

    @property
    def buffer_capacity(self) -> int:
        return int(round(self.sampling_rate * self.buffer_seconds))

    @property
    def min_buffer_samples(self) -> int:
        """One second of signal is needed before a detection pass runs."""
        return int(self.sampling_rate)

    def validate(self) -> None:
        if self.sampling_rate <= 0:
            raise ConfigurationError(f"sampling_rate must be positive, got {self.sampling_rate}")
        if self.buffer_capacity < self.min_buffer_samples:
            raise ConfigurationError(
                f"buffer of {self.buffer_seconds}s is shorter than one second of signal"
            )
        if self.detection_stride <= 0:
            raise ConfigurationError("detection_stride must be positive")
        if self.max_learning_beats <= 0:
            raise ConfigurationError("max_learning_beats must be positive")


@dataclass
class TrainerConfig:
    """Configuration for morphology training on the learning batch."""

    beat_window: int = 60
    min_window_samples: int = 20
    min_correlation_samples: int = 10
    correlation_threshold: float = 0.7
    min_cluster_size: int = 3
    dominance_warning_ratio: float = 0.4
    representative_templates: int = 5
    min_confidence: float = 0.5


@dataclass
class BurdenConfig:
    """Configuration for temporal burden aggregation."""

    window_minutes: float = 5.0
    history_hours: float = 2.0
    update_interval_s: float = 30.0
    min_beats_for_update: int = 10

    @property
    def window_ms(self) -> float:
        return self.window_minutes * 60_000.0

    @property
    def history_ms(self) -> float:
        return self.history_hours * 3_600_000.0


@dataclass
class StreamConfig:
    """Configuration for the transport → processing hand-off queue."""

    queue_size: int = 1024


@dataclass
class Settings:
    """Top-level application settings."""

    detector: DetectorConfig = field(default_factory=DetectorConfig)
    trainer: TrainerConfig = field(default_factory=TrainerConfig)
    burden: BurdenConfig = field(default_factory=BurdenConfig)
    stream: StreamConfig = field(default_factory=StreamConfig)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        settings = cls(log_level=os.getenv("PVC_LOG_LEVEL", "INFO"))
        if os.getenv("PVC_SAMPLING_RATE"):
            settings.detector.sampling_rate = int(os.environ["PVC_SAMPLING_RATE"])
        if os.getenv("PVC_LEARNING_BEATS"):
            settings.detector.max_learning_beats = int(os.environ["PVC_LEARNING_BEATS"])
        if os.getenv("PVC_BURDEN_WINDOW_MINUTES"):
            settings.burden.window_minutes = float(os.environ["PVC_BURDEN_WINDOW_MINUTES"])
        settings.detector.validate()
        return settings

    @classmethod
    def from_yaml(cls, path: str) -> Settings:
        """Load settings from YAML config file."""
        config_path = Path(path)
        if not config_path.exists():
            return cls()
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        settings = cls()
        try:
            if "detector" in data:
                settings.detector = DetectorConfig(**data["detector"])
            if "trainer" in data:
                settings.trainer = TrainerConfig(**data["trainer"])
            if "burden" in data:
                settings.burden = BurdenConfig(**data["burden"])
            if "stream" in data:
                settings.stream = StreamConfig(**data["stream"])
        except TypeError as exc:
            raise ConfigurationError(f"Invalid settings in '{path}': {exc}") from exc
        if "log_level" in data:
            settings.log_level = data["log_level"]
        settings.detector.validate()
        return settings
