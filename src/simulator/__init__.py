"""ECG Simulator: synthetic single-lead streams with scheduled PVCs."""

from src.simulator.conditions import Condition, ConditionConfig, CONDITION_REGISTRY
from src.simulator.morphology import BeatShape, NORMAL_BEAT, PVC_BEAT
from src.simulator.noise import NoiseConfig, NOISE_PRESETS
from src.simulator.ecg_simulator import BeatKind, BeatSpec, ECGSimulator, normal_beats
from src.simulator.hdf5_writer import HDF5RecordingWriter

__all__ = [
    "Condition",
    "ConditionConfig",
    "CONDITION_REGISTRY",
    "BeatShape",
    "NORMAL_BEAT",
    "PVC_BEAT",
    "NoiseConfig",
    "NOISE_PRESETS",
    "BeatKind",
    "BeatSpec",
    "ECGSimulator",
    "normal_beats",
    "HDF5RecordingWriter",
]
