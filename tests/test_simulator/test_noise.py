"""Tests for the noise pipeline."""

import numpy as np
import pytest

from src.simulator.noise import (
    NOISE_PRESETS,
    NoiseConfig,
    add_baseline_wander,
    add_gaussian_noise,
    add_motion_artifact,
    apply_noise_pipeline,
)

FS = 130.0


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def clean_signal():
    return np.zeros(1300, dtype=np.float64)


@pytest.fixture
def time_array():
    return np.arange(1300) / FS


class TestNoisePresets:
    def test_all_presets_exist(self):
        assert set(NOISE_PRESETS.keys()) == {"clean", "low", "medium", "high"}

    def test_clean_preset_is_noop(self, rng, clean_signal, time_array):
        out = apply_noise_pipeline(clean_signal, time_array, FS, rng, NOISE_PRESETS["clean"])
        np.testing.assert_array_equal(out, clean_signal)

    def test_presets_increase(self):
        stds = [NOISE_PRESETS[k].gaussian_std for k in ("clean", "low", "medium", "high")]
        assert stds == sorted(stds)


class TestComponents:
    def test_gaussian_std(self, rng, clean_signal):
        out = add_gaussian_noise(clean_signal, rng, NoiseConfig(gaussian_std=10.0))
        assert np.std(out) == pytest.approx(10.0, rel=0.1)

    def test_baseline_wander_bounded(self, rng, clean_signal, time_array):
        out = add_baseline_wander(clean_signal, time_array, rng, NoiseConfig(baseline_wander_amp=20.0))
        assert np.max(np.abs(out)) <= 30.0 + 1e-9
        assert np.std(out) > 0

    def test_motion_artifact_probability_one(self, rng, clean_signal):
        out = add_motion_artifact(clean_signal, FS, rng, NoiseConfig(motion_probability=1.0))
        assert np.max(np.abs(out)) > 0

    def test_input_not_mutated(self, rng, clean_signal, time_array):
        apply_noise_pipeline(clean_signal, time_array, FS, rng, NOISE_PRESETS["high"])
        assert not np.any(clean_signal)
