"""ECG simulator facade: beat schedules rendered into single-lead µV streams."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from src.ecg_system.schemas import ECGRecording
from src.simulator.conditions import CONDITION_REGISTRY, Condition
from src.simulator.morphology import NORMAL_BEAT, PVC_BEAT, BeatShape, jitter_shape, render_beat
from src.simulator.noise import NOISE_PRESETS, NoiseConfig, apply_noise_pipeline

# Sampling rate of the Polar H10 ECG stream
FS_ECG = 130.0
LEAD_IN_S = 0.5
TAIL_S = 1.5


class BeatKind(Enum):
    NORMAL = "normal"
    PVC = "pvc"
    DROPPED = "dropped"  # beat occurs but is not rendered


@dataclass(frozen=True)
class BeatSpec:
    """One scheduled beat.

    Attributes:
        rr_ms: interval from the previous scheduled beat (ignored for the first).
        kind: normal, ectopic, or missing from the signal.
        shape: waveform override; defaults depend on ``kind``.
    """

    rr_ms: float
    kind: BeatKind = BeatKind.NORMAL
    shape: Optional[BeatShape] = None


def normal_beats(n: int, rr_ms: float = 800.0) -> list[BeatSpec]:
    return [BeatSpec(rr_ms) for _ in range(n)]


class ECGSimulator:
    """Facade for generating synthetic single-lead ECG streams.

    Beats are placed on integer sample positions, so with ``fs=130`` any RR
    that is a multiple of 100 ms is reproduced exactly by the detector.

    Args:
        fs: sampling frequency in Hz (default 130).
        seed: random seed for reproducibility. ``None`` for non-deterministic.
    """

    def __init__(self, fs: float = FS_ECG, seed: int | None = None) -> None:
        self.fs = fs
        self._rng = np.random.default_rng(seed)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def schedule(
        self,
        condition: Condition,
        n_beats: int,
        hr: float | None = None,
    ) -> list[BeatSpec]:
        """Beat schedule for *condition* at *hr* (random within range if omitted)."""
        cfg = CONDITION_REGISTRY[condition]
        if hr is None:
            hr = self._rng.uniform(*cfg.hr_range)
        base_rr = 60_000.0 / hr

        specs: list[BeatSpec] = []
        after_pvc = False
        for i in range(1, n_beats + 1):
            rr = base_rr
            if cfg.rr_irregularity > 0:
                rr += self._rng.normal(0, cfg.rr_irregularity * base_rr)
            if cfg.pvc_every and i % cfg.pvc_every == 0:
                specs.append(BeatSpec(base_rr * cfg.coupling_ratio, BeatKind.PVC))
                after_pvc = True
                continue
            if after_pvc:
                rr = base_rr * cfg.compensatory_ratio
                after_pvc = False
            kind = BeatKind.DROPPED if cfg.drop_every and i % cfg.drop_every == 0 else BeatKind.NORMAL
            specs.append(BeatSpec(rr, kind))
        return specs

    def render(
        self,
        beats: Sequence[BeatSpec],
        noise_level: str = "clean",
        noise_config: NoiseConfig | None = None,
        shape_spread: float = 0.0,
        subject_id: str = "SIM",
    ) -> ECGRecording:
        """Render a beat schedule into a recording.

        Returns:
            :class:`ECGRecording` with annotations ``beat_ms`` (rendered beats),
            ``pvc_ms`` and ``dropped_ms``.
        """
        beat_times = self._beat_times(beats)
        duration_ms = (beat_times[-1] if len(beat_times) else 0.0) + TAIL_S * 1000.0
        n_samples = int(round(duration_ms * self.fs / 1000.0)) + 1
        timestamps = np.arange(n_samples, dtype=np.float64) * 1000.0 / self.fs
        signal = np.zeros(n_samples, dtype=np.float64)

        rendered: list[float] = []
        pvcs: list[float] = []
        dropped: list[float] = []
        for spec, t_ms in zip(beats, beat_times):
            r_index = int(round(t_ms * self.fs / 1000.0))
            t_ms = float(timestamps[r_index])
            if spec.kind is BeatKind.DROPPED:
                dropped.append(t_ms)
                continue
            shape = spec.shape or (PVC_BEAT if spec.kind is BeatKind.PVC else NORMAL_BEAT)
            render_beat(signal, self.fs, r_index, jitter_shape(shape, self._rng, shape_spread))
            rendered.append(t_ms)
            if spec.kind is BeatKind.PVC:
                pvcs.append(t_ms)

        nc = noise_config or NOISE_PRESETS.get(noise_level, NOISE_PRESETS["clean"])
        signal = apply_noise_pipeline(signal, timestamps / 1000.0, self.fs, self._rng, nc)

        return ECGRecording(
            amplitudes=signal,
            timestamps_ms=timestamps,
            sampling_rate=self.fs,
            subject_id=subject_id,
            annotations={
                "beat_ms": np.asarray(rendered),
                "pvc_ms": np.asarray(pvcs),
                "dropped_ms": np.asarray(dropped),
            },
        )

    def generate(
        self,
        condition: Condition,
        n_beats: int,
        hr: float | None = None,
        noise_level: str = "clean",
    ) -> ECGRecording:
        """Schedule and render *n_beats* of *condition*."""
        return self.render(
            self.schedule(condition, n_beats, hr),
            noise_level=noise_level,
            subject_id=f"SIM-{condition.value}",
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _beat_times(beats: Sequence[BeatSpec]) -> np.ndarray:
        times: list[float] = []
        t = LEAD_IN_S * 1000.0
        for i, spec in enumerate(beats):
            if i > 0:
                t += spec.rr_ms
            times.append(t)
        return np.asarray(times, dtype=np.float64)
