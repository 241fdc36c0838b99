"""Single-lead recording loader for HDF5 and CSV files."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import h5py
import numpy as np

from src.ecg_system.exceptions import RecordingLoadError
from src.ecg_system.schemas import ECGRecording


class RecordingLoader:
    """
    Load recorded ECG streams for replay.

    HDF5 structure (as written by the simulator):
        recording.h5
        ├── metadata/ (subject_id, sampling_rate)
        ├── ecg/
        │   ├── amplitude_uv
        │   └── timestamp_ms
        └── annotations/ (optional, beat_ms / pvc_ms / dropped_ms)

    CSV: either ``timestamp_ms,amplitude_uv`` rows or a single amplitude
    column, in which case timestamps are synthesised from the sampling rate.
    Lines starting with ``#`` and a non-numeric header row are skipped.
    """

    SUFFIXES = {".h5", ".hdf5", ".csv"}

    def __init__(self, default_sampling_rate: float = 130.0) -> None:
        self.default_sampling_rate = default_sampling_rate

    def load(self, filepath: str, sampling_rate: Optional[float] = None) -> ECGRecording:
        """Load a recording, dispatching on the file suffix."""
        path = Path(filepath)
        if not path.exists():
            raise RecordingLoadError(f"File not found: {filepath}")
        if path.suffix not in self.SUFFIXES:
            raise RecordingLoadError(f"Unsupported recording format: {path.suffix}")
        if path.suffix == ".csv":
            recording = self.load_csv(path, sampling_rate)
        else:
            recording = self.load_hdf5(path)
        self._check(recording, filepath)
        return recording

    def load_hdf5(self, path: Path) -> ECGRecording:
        try:
            hf = h5py.File(path, "r")
        except OSError as exc:
            raise RecordingLoadError(f"Cannot open HDF5 file '{path}': {exc}") from exc

        with hf:
            if "ecg" not in hf or "amplitude_uv" not in hf["ecg"]:
                raise RecordingLoadError(f"HDF5 file '{path}' missing 'ecg/amplitude_uv'")
            amplitudes = np.asarray(hf["ecg/amplitude_uv"][()], dtype=np.float64)

            fs = self.default_sampling_rate
            subject_id = path.stem
            if "metadata" in hf:
                meta = hf["metadata"]
                if "sampling_rate" in meta:
                    fs = float(meta["sampling_rate"][()])
                if "subject_id" in meta:
                    raw = meta["subject_id"][()]
                    subject_id = raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)

            if "timestamp_ms" in hf["ecg"]:
                timestamps = np.asarray(hf["ecg/timestamp_ms"][()], dtype=np.float64)
            else:
                timestamps = self._synthesise_timestamps(len(amplitudes), fs)

            annotations: dict[str, np.ndarray] = {}
            if "annotations" in hf:
                for name, ds in hf["annotations"].items():
                    annotations[name] = np.asarray(ds[()], dtype=np.float64)

        return ECGRecording(
            amplitudes=amplitudes,
            timestamps_ms=timestamps,
            sampling_rate=fs,
            subject_id=subject_id,
            annotations=annotations,
        )

    def load_csv(self, path: Path, sampling_rate: Optional[float] = None) -> ECGRecording:
        fs = sampling_rate or self.default_sampling_rate
        try:
            table = np.genfromtxt(path, delimiter=",", comments="#", dtype=np.float64)
        except ValueError as exc:
            raise RecordingLoadError(f"Cannot parse CSV file '{path}': {exc}") from exc

        table = np.atleast_1d(table)
        if table.ndim == 1:
            # Single column, or a single two-column row
            if table.size == 2 and self._looks_like_row(path):
                table = table.reshape(1, 2)
            else:
                amplitudes = table[~np.isnan(table)]
                return ECGRecording(
                    amplitudes=amplitudes,
                    timestamps_ms=self._synthesise_timestamps(len(amplitudes), fs),
                    sampling_rate=fs,
                    subject_id=path.stem,
                )

        if table.shape[1] < 2:
            raise RecordingLoadError(f"CSV file '{path}' needs one or two columns")
        rows = table[~np.isnan(table[:, :2]).any(axis=1)]
        return ECGRecording(
            amplitudes=rows[:, 1].copy(),
            timestamps_ms=rows[:, 0].copy(),
            sampling_rate=fs,
            subject_id=path.stem,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _looks_like_row(path: Path) -> bool:
        with open(path) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#"):
                    return "," in line
        return False

    @staticmethod
    def _synthesise_timestamps(n: int, fs: float) -> np.ndarray:
        return np.arange(n, dtype=np.float64) * 1000.0 / fs

    @staticmethod
    def _check(recording: ECGRecording, filepath: str) -> None:
        if recording.num_samples == 0:
            raise RecordingLoadError(f"Recording '{filepath}' contains no samples")
        if len(recording.timestamps_ms) != recording.num_samples:
            raise RecordingLoadError(
                f"Recording '{filepath}' has {recording.num_samples} samples "
                f"but {len(recording.timestamps_ms)} timestamps"
            )
        if not np.all(np.isfinite(recording.amplitudes)):
            raise RecordingLoadError(f"Recording '{filepath}' contains non-finite amplitudes")
        if np.any(np.diff(recording.timestamps_ms) < 0):
            raise RecordingLoadError(f"Recording '{filepath}' timestamps are not monotonic")
