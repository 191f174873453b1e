from __future__ import annotations

from datetime import datetime, timedelta, timezone

from src.carecheck.carecheck.attendance.model import CheckEvent, VerificationFlags
from src.carecheck.carecheck.core.enums import AnomalyKind, CheckAction, VerificationMethod
from src.carecheck.carecheck.intervals.reconstructor import IntervalReconstructor

T0 = datetime(2025, 6, 2, 7, 0, tzinfo=timezone.utc)
_FLAGS = VerificationFlags(secret_validated=True, has_geolocation=False, geolocation_required=False, has_photo=False)


def _ev(name: str, action: CheckAction, minutes: int, event_id: int = 0) -> CheckEvent:
    at = T0 + timedelta(minutes=minutes)
    return CheckEvent(
        beneficiary_id=1,
        caregiver_name=name,
        action=action,
        tap_timestamp=at,
        accepted_at=at,
        method=VerificationMethod.NFC,
        flags=_FLAGS,
        event_id=event_id,
    )


IN, OUT = CheckAction.CHECK_IN, CheckAction.CHECK_OUT


def test_check_in_then_check_out_forms_one_interval():
    result = IntervalReconstructor().reconstruct([_ev("Alice", IN, 0), _ev("Alice", OUT, 120)])

    assert len(result.intervals) == 1
    assert result.intervals[0].minutes == 120
    assert result.anomalies == []


def test_events_are_paired_by_accepted_time_not_input_order():
    result = IntervalReconstructor().reconstruct([_ev("Alice", OUT, 60), _ev("Alice", IN, 0)])

    assert [i.minutes for i in result.intervals] == [60]


def test_caregivers_are_tracked_independently():
    events = [
        _ev("Alice", IN, 0),
        _ev("Bob", IN, 10),
        _ev("Alice", OUT, 60),
        _ev("Bob", OUT, 100),
    ]

    result = IntervalReconstructor().reconstruct(events)

    by_name = {i.caregiver_name: i.minutes for i in result.intervals}
    assert by_name == {"Alice": 60, "Bob": 90}


def test_trailing_check_in_is_open():
    result = IntervalReconstructor().reconstruct([_ev("Alice", IN, 0, event_id=7)])

    assert result.intervals == []
    assert [(a.kind, a.event.event_id) for a in result.anomalies] == [(AnomalyKind.OPEN_CHECK_IN, 7)]


def test_second_check_in_flags_the_first_and_keeps_the_second():
    events = [_ev("Alice", IN, 0, event_id=1), _ev("Alice", IN, 30, event_id=2), _ev("Alice", OUT, 90, event_id=3)]

    result = IntervalReconstructor().reconstruct(events)

    assert [i.minutes for i in result.intervals] == [60]
    assert [(a.kind, a.event.event_id) for a in result.anomalies] == [(AnomalyKind.DUPLICATE_CHECK_IN, 1)]


def test_check_out_without_check_in_is_orphaned():
    events = [_ev("Alice", OUT, 0, event_id=1), _ev("Alice", IN, 10), _ev("Alice", OUT, 20), _ev("Alice", OUT, 30, event_id=4)]

    result = IntervalReconstructor().reconstruct(events)

    assert [i.minutes for i in result.intervals] == [10]
    assert [(a.kind, a.event.event_id) for a in result.anomalies] == [
        (AnomalyKind.ORPHANED_CHECK_OUT, 1),
        (AnomalyKind.ORPHANED_CHECK_OUT, 4),
    ]


def test_no_events_gives_nothing():
    result = IntervalReconstructor().reconstruct([])

    assert result.intervals == []
    assert result.anomalies == []
