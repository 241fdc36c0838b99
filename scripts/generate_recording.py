#!/usr/bin/env python3
"""CLI for the ECG simulator: write a synthetic single-lead recording to HDF5.

Usage examples:
    python scripts/generate_recording.py 600 --seed 42
    python scripts/generate_recording.py 900 --condition TRIGEMINY --hr 70
    python scripts/generate_recording.py 400 --condition DROPPED_BEATS --noise-level low -o data/samples/drop.h5
"""

from __future__ import annotations

import argparse
import os
import sys

# Ensure project root on sys.path
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from src.simulator.conditions import Condition
from src.simulator.ecg_simulator import FS_ECG, ECGSimulator
from src.simulator.hdf5_writer import HDF5RecordingWriter
from src.simulator.noise import NOISE_PRESETS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic single-lead ECG recording in HDF5 format.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "num_beats", type=int, nargs="?", default=600,
        help="Number of scheduled beats (default 600).",
    )
    parser.add_argument(
        "--condition", type=str, default="ISOLATED_PVC",
        choices=[c.name for c in Condition],
        help="Rhythm pattern (default ISOLATED_PVC).",
    )
    parser.add_argument("--hr", type=float, default=None, help="Sinus rate in BPM.")
    parser.add_argument(
        "--noise-level", type=str, default="low", choices=list(NOISE_PRESETS),
        help="Noise preset (default low).",
    )
    parser.add_argument("--fs", type=float, default=FS_ECG, help="Sampling rate in Hz.")
    parser.add_argument("--seed", type=int, default=None, help="Random seed.")
    parser.add_argument(
        "-o", "--output", type=str, default="data/samples/recording.h5",
        help="Output HDF5 path.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    condition = Condition[args.condition]

    sim = ECGSimulator(fs=args.fs, seed=args.seed)
    recording = sim.generate(condition, args.num_beats, hr=args.hr, noise_level=args.noise_level)
    HDF5RecordingWriter().write_file(args.output, recording)

    n_pvc = len(recording.annotations.get("pvc_ms", []))
    n_beats = len(recording.annotations.get("beat_ms", []))
    print(
        f"Wrote {args.output}: {recording.duration_sec:.1f}s, "
        f"{n_beats} beats ({n_pvc} PVC), condition={condition.name}"
    )


if __name__ == "__main__":
    main()
