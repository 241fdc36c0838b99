"""Tests for the HDF5 writer: output must be readable by the recording loader."""

from pathlib import Path

import h5py
import numpy as np
import pytest

from src.data.recording_loader import RecordingLoader
from src.simulator.conditions import Condition
from src.simulator.ecg_simulator import ECGSimulator
from src.simulator.hdf5_writer import HDF5RecordingWriter


@pytest.fixture
def recording():
    return ECGSimulator(seed=42).generate(Condition.BIGEMINY, 20, hr=72.0, noise_level="low")


@pytest.fixture
def hdf5_path(tmp_path: Path, recording):
    path = str(tmp_path / "nested" / "rec.h5")
    HDF5RecordingWriter().write_file(path, recording)
    return path


class TestHDF5Structure:
    def test_groups(self, hdf5_path):
        with h5py.File(hdf5_path, "r") as f:
            assert "metadata" in f
            assert "ecg/amplitude_uv" in f
            assert "ecg/timestamp_ms" in f
            assert "annotations/pvc_ms" in f

    def test_metadata(self, hdf5_path):
        with h5py.File(hdf5_path, "r") as f:
            assert float(f["metadata/sampling_rate"][()]) == 130.0
            sid = f["metadata/subject_id"][()]
            if isinstance(sid, bytes):
                sid = sid.decode()
            assert sid == "SIM-VB"


class TestLoaderCompatibility:
    def test_loader_reads_writer_output(self, hdf5_path, recording):
        loaded = RecordingLoader().load(hdf5_path)
        np.testing.assert_array_equal(loaded.amplitudes, recording.amplitudes)
        np.testing.assert_array_equal(loaded.timestamps_ms, recording.timestamps_ms)
        assert loaded.subject_id == "SIM-VB"
        assert len(loaded.annotations["pvc_ms"]) == 10
