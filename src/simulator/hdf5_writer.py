"""HDF5 writer producing files readable by :mod:`src.data.recording_loader`."""

from __future__ import annotations

import time
from pathlib import Path

import h5py
import numpy as np

from src.ecg_system.schemas import ECGRecording


class HDF5RecordingWriter:
    """Write :class:`ECGRecording` objects to single-lead HDF5 files.

    Layout::

        /metadata/subject_id, /metadata/sampling_rate, /metadata/created_epoch
        /ecg/amplitude_uv        float64 [n]
        /ecg/timestamp_ms        float64 [n]
        /annotations/<name>      float64 [k]   (optional)
    """

    def write_file(self, filepath: str, recording: ECGRecording) -> None:
        """Write a complete HDF5 file.

        Args:
            filepath: output path (should end in ``.h5``).
            recording: recording to store.
        """
        Path(filepath).parent.mkdir(parents=True, exist_ok=True)
        with h5py.File(filepath, "w") as hf:
            meta = hf.create_group("metadata")
            meta.create_dataset("subject_id", data=np.bytes_(recording.subject_id))
            meta.create_dataset("sampling_rate", data=float(recording.sampling_rate))
            meta.create_dataset("created_epoch", data=time.time())

            ecg = hf.create_group("ecg")
            ecg.create_dataset("amplitude_uv", data=recording.amplitudes, compression="gzip")
            ecg.create_dataset("timestamp_ms", data=recording.timestamps_ms, compression="gzip")

            if recording.annotations:
                ann = hf.create_group("annotations")
                for name, values in recording.annotations.items():
                    ann.create_dataset(name, data=np.asarray(values, dtype=np.float64))
