"""Time-ordered log of direct and inferred PVC events."""

from __future__ import annotations

import bisect
from typing import Optional

from src.ecg_system.schemas import EventOrigin, PVCEvent


class PVCEventLog:
    """Single collection of PVC events tagged by origin, kept sorted by timestamp."""

    def __init__(self) -> None:
        self._events: list[PVCEvent] = []
        self._keys: list[float] = []

    def __len__(self) -> int:
        return len(self._events)

    def add(self, event: PVCEvent) -> None:
        pos = bisect.bisect_right(self._keys, event.timestamp)
        self._keys.insert(pos, event.timestamp)
        self._events.insert(pos, event)

    def events(self, origin: Optional[EventOrigin] = None) -> list[PVCEvent]:
        if origin is None:
            return list(self._events)
        return [e for e in self._events if e.origin is origin]

    def timestamps(self, origin: Optional[EventOrigin] = None) -> list[float]:
        return [e.timestamp for e in self.events(origin)]

    def has_event_near(
        self, timestamp: float, tolerance_ms: float, origin: Optional[EventOrigin] = None,
    ) -> bool:
        lo = bisect.bisect_right(self._keys, timestamp - tolerance_ms)
        hi = bisect.bisect_left(self._keys, timestamp + tolerance_ms)
        return any(
            origin is None or self._events[i].origin is origin
            for i in range(lo, hi)
        )

    def has_event_between(
        self, start: float, end: float, origin: Optional[EventOrigin] = None,
    ) -> bool:
        """Whether an event lies strictly inside ``(start, end)``."""
        lo = bisect.bisect_right(self._keys, start)
        hi = bisect.bisect_left(self._keys, end)
        return any(
            origin is None or self._events[i].origin is origin
            for i in range(lo, hi)
        )

    def prune(self, cutoff: float) -> None:
        """Drop events older than ``cutoff``."""
        pos = bisect.bisect_left(self._keys, cutoff)
        del self._keys[:pos]
        del self._events[:pos]

    def clear(self) -> None:
        self._events.clear()
        self._keys.clear()
