#!/usr/bin/env python3
"""Replay a recording through a monitoring session → JSON report.

Usage:
    python scripts/run_monitor.py <recording.h5|recording.csv>
    python scripts/run_monitor.py data/samples/recording.h5 --config config/settings.yaml -v
    python scripts/run_monitor.py ecg.csv --fs 130 --threaded
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

# Allow imports from project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from config.settings import Settings
from src.burden.calculator import clinical_interpretation, format_burden
from src.data.recording_loader import RecordingLoader
from src.ecg_system.exceptions import ECGSystemError
from src.ecg_system.schemas import ECGRecording
from src.monitoring.session import MonitoringSession
from src.monitoring.worker import StreamWorker


def replay(session: MonitoringSession, recording: ECGRecording) -> None:
    for amplitude, timestamp in zip(recording.amplitudes, recording.timestamps_ms):
        session.push_sample(float(amplitude), float(timestamp))


def replay_threaded(session: MonitoringSession, recording: ECGRecording, queue_size: int) -> None:
    worker = StreamWorker(session, queue_size=queue_size)
    worker.start()
    for amplitude, timestamp in zip(recording.amplitudes, recording.timestamps_ms):
        worker.submit(float(amplitude), float(timestamp))
    worker.stop()


def build_report(session: MonitoringSession, recording: ECGRecording) -> dict:
    snapshot = session.snapshot()
    status = session.training_status()
    current = session.current_burden()
    trend = session.burden_trend()

    report: dict = {
        "recording": {
            "subject_id": recording.subject_id,
            "samples": recording.num_samples,
            "duration_sec": round(recording.duration_sec, 2),
            "sampling_rate": recording.sampling_rate,
        },
        "training": {
            "is_learning": status.is_learning,
            "progress": status.progress,
            "total": status.total,
            "result": status.training_result.to_dict() if status.training_result else None,
        },
        "detection": snapshot.to_dict(),
        "burden_history": [p.to_dict() for p in session.burden_history()],
        "trend": {
            "direction": trend.direction.value,
            "slope": round(trend.slope, 4),
            "confidence": round(trend.confidence, 2),
        },
    }
    if current is not None:
        report["burden"] = {
            "display": format_burden(current.burden, current.confidence),
            "burden": current.burden,
            "category": current.category.value,
            "confidence": round(current.confidence, 2),
            "interpretation": clinical_interpretation(current.burden, current.confidence),
        }

    annotated = recording.annotations.get("pvc_ms")
    if annotated is not None:
        report["annotations"] = {
            "pvc_count": int(len(annotated)),
            "beat_count": int(len(recording.annotations.get("beat_ms", []))),
        }
    return report


def main() -> None:
    parser = argparse.ArgumentParser(description="Replay an ECG recording through the PVC monitor")
    parser.add_argument("recording", help="Path to HDF5 or CSV recording")
    parser.add_argument("--config", default=None, help="YAML settings file")
    parser.add_argument("--fs", type=float, default=None, help="Sampling rate for single-column CSV")
    parser.add_argument("--threaded", action="store_true", help="Feed samples through the stream worker")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    settings = Settings.from_yaml(args.config) if args.config else Settings.from_env()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        loader = RecordingLoader(default_sampling_rate=settings.detector.sampling_rate)
        recording = loader.load(args.recording, sampling_rate=args.fs)
        session = MonitoringSession(settings)
        if args.threaded:
            replay_threaded(session, recording, settings.stream.queue_size)
        else:
            replay(session, recording)
        session.update_burden()
    except ECGSystemError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(build_report(session, recording), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
