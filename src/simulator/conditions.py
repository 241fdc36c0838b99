"""Rhythm patterns with ectopic and missed-beat configurations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Condition(Enum):
    """Rhythm patterns the simulator can produce."""

    NORMAL_SINUS = "N"
    ISOLATED_PVC = "V"
    BIGEMINY = "VB"
    TRIGEMINY = "VT3"
    DROPPED_BEATS = "DROP"


@dataclass(frozen=True)
class ConditionConfig:
    """Beat schedule configuration for a rhythm pattern.

    Attributes:
        hr_range: (min, max) underlying sinus rate in BPM.
        pvc_every: every n-th beat is a PVC (0 for none).
        coupling_ratio: PVC coupling interval as a fraction of the sinus RR.
        compensatory_ratio: RR after a PVC as a fraction of the sinus RR.
        drop_every: every n-th beat is not rendered (0 for none).
        rr_irregularity: std-dev of RR jitter as a fraction of the sinus RR.
    """

    hr_range: tuple[float, float]
    pvc_every: int = 0
    coupling_ratio: float = 0.6
    compensatory_ratio: float = 1.4
    drop_every: int = 0
    rr_irregularity: float = 0.0


CONDITION_REGISTRY: dict[Condition, ConditionConfig] = {
    Condition.NORMAL_SINUS: ConditionConfig(hr_range=(60.0, 100.0), rr_irregularity=0.02),
    Condition.ISOLATED_PVC: ConditionConfig(hr_range=(60.0, 100.0), pvc_every=20, rr_irregularity=0.02),
    Condition.BIGEMINY: ConditionConfig(hr_range=(60.0, 90.0), pvc_every=2),
    Condition.TRIGEMINY: ConditionConfig(hr_range=(60.0, 90.0), pvc_every=3),
    Condition.DROPPED_BEATS: ConditionConfig(hr_range=(60.0, 90.0), drop_every=15),
}
