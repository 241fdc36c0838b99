"""Composable noise pipeline for single-lead ECG corruption (µV)."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass
class NoiseConfig:
    """Configuration for the noise pipeline.

    Attributes:
        baseline_wander_amp: amplitude of baseline wander (µV).
        gaussian_std: standard deviation of additive Gaussian noise (µV).
        motion_probability: probability of motion artifacts.
        powerline_probability: probability of 50/60 Hz interference.
    """

    baseline_wander_amp: float = 20.0
    gaussian_std: float = 10.0
    motion_probability: float = 0.10
    powerline_probability: float = 0.10


NOISE_PRESETS: dict[str, NoiseConfig] = {
    "clean": NoiseConfig(
        baseline_wander_amp=0.0,
        gaussian_std=0.0,
        motion_probability=0.0,
        powerline_probability=0.0,
    ),
    "low": NoiseConfig(
        baseline_wander_amp=10.0,
        gaussian_std=5.0,
        motion_probability=0.0,
        powerline_probability=0.05,
    ),
    "medium": NoiseConfig(
        baseline_wander_amp=20.0,
        gaussian_std=10.0,
        motion_probability=0.10,
        powerline_probability=0.10,
    ),
    "high": NoiseConfig(
        baseline_wander_amp=40.0,
        gaussian_std=25.0,
        motion_probability=0.30,
        powerline_probability=0.20,
    ),
}


def add_baseline_wander(
    signal: np.ndarray,
    time: np.ndarray,
    rng: np.random.Generator,
    config: NoiseConfig,
) -> np.ndarray:
    """Add low-frequency baseline wander (respiration, movement)."""
    if config.baseline_wander_amp == 0.0:
        return signal
    freq = rng.uniform(0.1, 0.5)
    amp = config.baseline_wander_amp
    wander = amp * np.sin(2 * np.pi * freq * time + rng.uniform(0, 2 * np.pi))
    wander += 0.5 * amp * np.sin(2 * np.pi * freq * 0.3 * time + rng.uniform(0, 2 * np.pi))
    return signal + wander


def add_gaussian_noise(
    signal: np.ndarray,
    rng: np.random.Generator,
    config: NoiseConfig,
) -> np.ndarray:
    """Add white Gaussian noise."""
    if config.gaussian_std == 0.0:
        return signal
    return signal + rng.normal(0, config.gaussian_std, len(signal))


def add_motion_artifact(
    signal: np.ndarray,
    fs: float,
    rng: np.random.Generator,
    config: NoiseConfig,
) -> np.ndarray:
    """Add brief slow motion bumps (wider than any QRS)."""
    if rng.random() >= config.motion_probability or len(signal) < 4 * fs:
        return signal

    result = signal.copy()
    n_bumps = rng.integers(1, 3)
    for _ in range(n_bumps):
        width = int(rng.uniform(0.4, 0.8) * fs)
        loc = rng.integers(0, len(signal) - width)
        amp = rng.uniform(50.0, 150.0) * rng.choice([-1, 1])
        bump = amp * np.exp(-((np.arange(width) - width / 2) ** 2) / (width / 6) ** 2)
        result[loc:loc + width] += bump
    return result


def add_powerline_interference(
    signal: np.ndarray,
    time: np.ndarray,
    rng: np.random.Generator,
    config: NoiseConfig,
) -> np.ndarray:
    """Add mains interference (aliased at low sampling rates)."""
    if rng.random() >= config.powerline_probability:
        return signal
    freq = rng.choice([50, 60])
    amp = rng.uniform(2.0, 8.0)
    return signal + amp * np.sin(2 * np.pi * freq * time + rng.uniform(0, 2 * np.pi))


def apply_noise_pipeline(
    signal: np.ndarray,
    time: np.ndarray,
    fs: float,
    rng: np.random.Generator,
    config: NoiseConfig,
) -> np.ndarray:
    """Apply the full noise pipeline in order (``time`` in seconds)."""
    out = add_baseline_wander(signal, time, rng, config)
    out = add_gaussian_noise(out, rng, config)
    out = add_motion_artifact(out, fs, rng, config)
    out = add_powerline_interference(out, time, rng, config)
    return out
