from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from ..attendance.model import CheckEvent
from ..common.datetime_utils import minutes_between
from ..core.enums import AnomalyKind


@dataclass(frozen=True)
class WorkInterval:
    """A check-in immediately followed by a check-out of the same caregiver.

    Computation artifact only, never stored.
    """

    caregiver_name: str
    start: datetime
    end: datetime
    check_in: CheckEvent | None = field(default=None, compare=False)
    check_out: CheckEvent | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError("WorkInterval end must not precede start")

    @property
    def minutes(self) -> float:
        return minutes_between(self.start, self.end)


@dataclass(frozen=True)
class IntervalAnomaly:
    """An event left unpaired; shown to families, never billed."""

    caregiver_name: str
    kind: AnomalyKind
    event: CheckEvent

    def to_dict(self) -> dict:
        return {
            "caregiver_name": self.caregiver_name,
            "kind": self.kind.value,
            "action": self.event.action.value,
            "timestamp": self.event.accepted_at.isoformat(),
            "event_id": self.event.event_id,
        }


@dataclass(frozen=True)
class ReconstructionResult:
    intervals: list[WorkInterval]
    anomalies: list[IntervalAnomaly]
