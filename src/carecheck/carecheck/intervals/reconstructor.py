from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Optional

from ..attendance.model import CheckEvent
from ..common.logging_utils import mask_name
from ..core.enums import AnomalyKind, CheckAction
from .model import IntervalAnomaly, ReconstructionResult, WorkInterval

logger = logging.getLogger(__name__)


class _Presence(Enum):
    OUT = "out"
    IN = "in"


class _CaregiverTrack:
    """Two-state machine for one caregiver: OUT --check-in--> IN --check-out--> OUT."""

    def __init__(self, caregiver_name: str):
        self.caregiver_name = caregiver_name
        self.state = _Presence.OUT
        self.pending: Optional[CheckEvent] = None
        self.intervals: list[WorkInterval] = []
        self.anomalies: list[IntervalAnomaly] = []

    def _flag(self, kind: AnomalyKind, event: CheckEvent) -> None:
        self.anomalies.append(IntervalAnomaly(caregiver_name=self.caregiver_name, kind=kind, event=event))

    def feed(self, event: CheckEvent) -> None:
        if event.action == CheckAction.CHECK_IN:
            if self.state == _Presence.IN and self.pending is not None:
                self._flag(AnomalyKind.DUPLICATE_CHECK_IN, self.pending)
            self.pending = event
            self.state = _Presence.IN
            return

        if self.state == _Presence.OUT or self.pending is None:
            self._flag(AnomalyKind.ORPHANED_CHECK_OUT, event)
            return

        self.intervals.append(
            WorkInterval(
                caregiver_name=self.caregiver_name,
                start=self.pending.accepted_at,
                end=event.accepted_at,
                check_in=self.pending,
                check_out=event,
            )
        )
        self.pending = None
        self.state = _Presence.OUT

    def close(self) -> None:
        if self.state == _Presence.IN and self.pending is not None:
            self._flag(AnomalyKind.OPEN_CHECK_IN, self.pending)


class IntervalReconstructor:
    """Pairs accepted events into work intervals, per caregiver.

    Ambiguous sequences under-bill: anything that is not a check-in directly
    followed by a check-out of the same caregiver yields an anomaly instead
    of an interval.
    """

    def reconstruct(self, events: Iterable[CheckEvent]) -> ReconstructionResult:
        ordered = sorted(events, key=lambda e: e.accepted_at)

        tracks: dict[str, _CaregiverTrack] = {}
        for event in ordered:
            name = event.caregiver_name.strip()
            track = tracks.get(name)
            if track is None:
                track = tracks[name] = _CaregiverTrack(name)
            track.feed(event)

        intervals: list[WorkInterval] = []
        anomalies: list[IntervalAnomaly] = []
        for track in tracks.values():
            track.close()
            intervals.extend(track.intervals)
            anomalies.extend(track.anomalies)

        intervals.sort(key=lambda i: (i.start, i.caregiver_name))
        anomalies.sort(key=lambda a: (a.event.accepted_at, a.caregiver_name))

        for anomaly in anomalies:
            logger.debug("Unpaired %s for %s", anomaly.kind.value, mask_name(anomaly.caregiver_name))
        return ReconstructionResult(intervals=intervals, anomalies=anomalies)
