"""Durable time-ordered ledger of classified beats for burden aggregation."""

from __future__ import annotations

import bisect
from typing import Optional

from src.ecg_system.schemas import BeatRecord

TWO_HOURS_MS = 2 * 60 * 60 * 1000.0


class BeatHistoryManager:
    """Keep beat records for the last ``max_age_ms`` relative to the newest record.

    Records are kept sorted by timestamp; a late record (such as a PVC
    inferred inside an earlier gap) is inserted in order.
    """

    def __init__(self, max_age_ms: float = TWO_HOURS_MS) -> None:
        self.max_age_ms = max_age_ms
        self._beats: list[BeatRecord] = []
        self._keys: list[float] = []

    def add_beat(self, timestamp: float, is_pvc: bool, confidence: float = 1.0) -> None:
        self.add_record(BeatRecord(timestamp=timestamp, is_pvc=is_pvc, confidence=confidence))

    def add_record(self, record: BeatRecord) -> None:
        pos = bisect.bisect_right(self._keys, record.timestamp)
        self._keys.insert(pos, record.timestamp)
        self._beats.insert(pos, record)

        cutoff = self._keys[-1] - self.max_age_ms
        drop = bisect.bisect_left(self._keys, cutoff)
        if drop:
            del self._keys[:drop]
            del self._beats[:drop]

    def beats_in_range(self, start: float, end: float) -> list[BeatRecord]:
        """Records with ``start <= timestamp <= end``."""
        lo = bisect.bisect_left(self._keys, start)
        hi = bisect.bisect_right(self._keys, end)
        return self._beats[lo:hi]

    def all_beats(self) -> list[BeatRecord]:
        return list(self._beats)

    def latest_beat(self) -> Optional[BeatRecord]:
        return self._beats[-1] if self._beats else None

    def total_beats(self) -> int:
        return len(self._beats)

    def pvc_count(self) -> int:
        return sum(1 for b in self._beats if b.is_pvc)

    def clear(self) -> None:
        self._beats.clear()
        self._keys.clear()
