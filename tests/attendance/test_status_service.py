from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from src.carecheck.carecheck.attendance.model import CheckEvent, VerificationFlags
from src.carecheck.carecheck.attendance.service import AttendanceStatusService
from src.carecheck.carecheck.beneficiaries.model import Beneficiary
from src.carecheck.carecheck.core.enums import CheckAction, VerificationMethod
from src.carecheck.carecheck.core.exceptions import NotFoundError

NOW = datetime(2025, 6, 2, 12, 0, tzinfo=timezone.utc)
BENEFICIARY = Beneficiary(beneficiary_id=1, name="Jeanne", country="FR", timezone="Europe/Paris", qr_code="B1", tap_secret="S")


class InMemoryBeneficiaries:
    def find_by_public_code(self, code: str) -> Optional[Beneficiary]:
        return BENEFICIARY if code == "B1" else None

    def get_by_id(self, beneficiary_id: int) -> Optional[Beneficiary]:
        return BENEFICIARY if beneficiary_id == 1 else None


class InMemoryEvents:
    def __init__(self, events):
        self._events = list(events)

    def append_with_token(self, event, *, challenge_token):
        raise NotImplementedError

    def list_events(self, *, beneficiary_id: int, start: datetime, end: datetime):
        return [e for e in self._events if e.beneficiary_id == beneficiary_id and start <= e.accepted_at < end]


def _ev(name, action, minutes_ago):
    at = NOW - timedelta(minutes=minutes_ago)
    return CheckEvent(
        beneficiary_id=1,
        caregiver_name=name,
        action=action,
        tap_timestamp=at,
        accepted_at=at,
        method=VerificationMethod.NFC,
        flags=VerificationFlags(True, False, False, False),
    )


def test_open_check_ins_are_present():
    events = [
        _ev("Alice", CheckAction.CHECK_IN, 180),
        _ev("Alice", CheckAction.CHECK_OUT, 120),
        _ev("Bob", CheckAction.CHECK_IN, 30),
    ]
    service = AttendanceStatusService(InMemoryBeneficiaries(), InMemoryEvents(events), now_fn=lambda: NOW)

    status = service.current_status(1)

    assert status.is_checked_in is True
    assert [p.caregiver_name for p in status.present] == ["Bob"]
    assert status.last_event.caregiver_name == "Bob"
    assert status.to_dict()["present"][0]["since"] == (NOW - timedelta(minutes=30)).isoformat()


def test_check_ins_older_than_the_lookback_are_ignored():
    events = [_ev("Alice", CheckAction.CHECK_IN, 60 * 30)]
    service = AttendanceStatusService(InMemoryBeneficiaries(), InMemoryEvents(events), now_fn=lambda: NOW)

    status = service.current_status(1)

    assert status.is_checked_in is False
    assert status.last_event is None


def test_unknown_beneficiary():
    service = AttendanceStatusService(InMemoryBeneficiaries(), InMemoryEvents([]), now_fn=lambda: NOW)

    with pytest.raises(NotFoundError):
        service.current_status(2)
