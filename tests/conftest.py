"""Shared pytest fixtures for PVC monitor tests."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import h5py
import numpy as np
import pytest

from src.ecg_system.schemas import DetectionResult, ECGRecording
from src.simulator.ecg_simulator import BeatKind, BeatSpec, ECGSimulator, normal_beats

FS = 130.0


def _stream(target, recording: ECGRecording) -> DetectionResult:
    """Feed every sample to an engine (``process_sample``) or session (``push_sample``)."""
    push = getattr(target, "push_sample", None) or target.process_sample
    result = DetectionResult()
    for amplitude, timestamp in zip(recording.amplitudes, recording.timestamps_ms):
        result = push(float(amplitude), float(timestamp))
    return result


@pytest.fixture
def run_stream() -> Callable[..., DetectionResult]:
    return _stream


@pytest.fixture
def simulator() -> ECGSimulator:
    return ECGSimulator(fs=FS, seed=42)


@pytest.fixture
def normal_recording(simulator: ECGSimulator) -> ECGRecording:
    """60 clean beats at RR 800 ms, amplitude 400 µV."""
    return simulator.render(normal_beats(60, 800.0))


@pytest.fixture
def pvc_recording(simulator: ECGSimulator) -> ECGRecording:
    """45 normal beats, one premature high-amplitude PVC, compensatory pause, 5 normal beats."""
    beats = (
        normal_beats(45, 800.0)
        + [BeatSpec(500.0, BeatKind.PVC), BeatSpec(1100.0)]
        + normal_beats(5, 800.0)
    )
    return simulator.render(beats)


@pytest.fixture
def gap_recording(simulator: ECGSimulator) -> ECGRecording:
    """49 normal beats, one missing beat, then normal beats.

    The beat after the gap is the 10th post-training beat, so gap inference
    runs on the 1600 ms interval.
    """
    beats = (
        normal_beats(49, 800.0)
        + [BeatSpec(800.0, BeatKind.DROPPED)]
        + normal_beats(6, 800.0)
    )
    return simulator.render(beats)


@pytest.fixture
def noisy_signal() -> np.ndarray:
    """Three seconds of white noise around zero."""
    rng = np.random.default_rng(99)
    return rng.normal(0, 20.0, int(3 * FS))


@pytest.fixture
def sample_hdf5_path(tmp_path: Path, normal_recording: ECGRecording) -> str:
    """Hand-built recording file in the loader's layout."""
    filepath = str(tmp_path / "subject_rec.h5")
    with h5py.File(filepath, "w") as f:
        meta = f.create_group("metadata")
        meta.create_dataset("subject_id", data=np.bytes_("SUBJ01"))
        meta.create_dataset("sampling_rate", data=FS)
        ecg = f.create_group("ecg")
        ecg.create_dataset("amplitude_uv", data=normal_recording.amplitudes)
        ecg.create_dataset("timestamp_ms", data=normal_recording.timestamps_ms)
        ann = f.create_group("annotations")
        ann.create_dataset("beat_ms", data=normal_recording.annotations["beat_ms"])
    return filepath


@pytest.fixture
def empty_hdf5_path(tmp_path: Path) -> str:
    """HDF5 file without an ``ecg`` group."""
    filepath = str(tmp_path / "empty.h5")
    with h5py.File(filepath, "w") as f:
        f.create_group("metadata")
    return filepath
