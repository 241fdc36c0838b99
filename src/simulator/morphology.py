"""Single-lead beat morphology built from Gaussian basis waves (µV)."""

from __future__ import annotations

from dataclasses import dataclass, replace

import numpy as np

# R-wave σ = QRS / 4.4; its 15%-of-peak width is then ~0.89 × QRS.
QRS_SIGMA_DIVISOR = 4.4


@dataclass(frozen=True)
class BeatShape:
    """Waveform parameters for one beat.

    Attributes:
        r_amplitude: R-peak height above baseline (µV).
        qrs_duration: QRS duration in seconds.
        t_ratio: T-wave height as a fraction of ``r_amplitude``.
        t_offset: T-wave centre after the R peak (seconds).
        t_width: T-wave Gaussian σ (seconds).
        t_inverted: whether the T wave points away from the R wave.
    """

    r_amplitude: float = 400.0
    qrs_duration: float = 0.08
    t_ratio: float = 0.15
    t_offset: float = 0.25
    t_width: float = 0.04
    t_inverted: bool = False


NORMAL_BEAT = BeatShape()
PVC_BEAT = BeatShape(r_amplitude=900.0, qrs_duration=0.14, t_ratio=0.1)


def jitter_shape(shape: BeatShape, rng: np.random.Generator, spread: float = 0.05) -> BeatShape:
    """Randomise amplitude and QRS duration by up to ``spread`` (fraction)."""
    if spread <= 0.0:
        return shape
    return replace(
        shape,
        r_amplitude=shape.r_amplitude * rng.uniform(1.0 - spread, 1.0 + spread),
        qrs_duration=shape.qrs_duration * rng.uniform(1.0 - spread, 1.0 + spread),
    )


def gaussian_wave(
    signal_len: int,
    center: float,
    sigma: float,
    amplitude: float,
) -> np.ndarray:
    """Gaussian bump sampled at integer indices (``center``/``sigma`` in samples)."""
    idx = np.arange(signal_len, dtype=np.float64)
    return amplitude * np.exp(-((idx - center) ** 2) / (2.0 * sigma ** 2))


def render_beat(signal: np.ndarray, fs: float, r_index: int, shape: BeatShape) -> None:
    """Add one beat in place with its R peak exactly at ``r_index``."""
    n = len(signal)
    r_sigma = shape.qrs_duration / QRS_SIGMA_DIVISOR * fs
    signal += gaussian_wave(n, r_index, r_sigma, shape.r_amplitude)

    t_amp = shape.r_amplitude * shape.t_ratio
    if shape.t_inverted:
        t_amp = -t_amp
    if t_amp != 0.0:
        t_center = r_index + shape.t_offset * fs
        signal += gaussian_wave(n, t_center, shape.t_width * fs, t_amp)
