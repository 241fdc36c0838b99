"""Custom exception hierarchy for the PVC monitoring engine.

Data-quality conditions (too few beats, failed training, implausible heart
rate) are reported in-band through confidence and status fields; only
host-boundary contract violations raise.
"""


class ECGSystemError(Exception):
    """Base exception for all ECG system errors."""


class ConfigurationError(ECGSystemError):
    """Raised when settings are inconsistent or out of range."""


class InvalidSampleError(ECGSystemError):
    """Raised when the transport delivers a sample the engine cannot accept."""

    def __init__(self, amplitude: float, timestamp: float, detail: str) -> None:
        self.amplitude = amplitude
        self.timestamp = timestamp
        self.detail = detail
        super().__init__(f"Rejected sample ({amplitude}, {timestamp}): {detail}")


class RecordingLoadError(ECGSystemError):
    """Raised when a recorded ECG stream cannot be loaded."""


class WorkerError(ECGSystemError):
    """Raised when the stream worker is used outside its lifecycle."""
