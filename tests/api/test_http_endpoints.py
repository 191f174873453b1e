from __future__ import annotations

import threading
from datetime import date, datetime, timedelta, timezone
from typing import Optional

import pytest

from src.carecheck.carecheck.beneficiaries.model import Beneficiary
from src.carecheck.carecheck.challenges.model import ChallengeToken
from src.carecheck.carecheck.container import wire_services
from src.carecheck.carecheck.main import create_app
from src.carecheck.carecheck.rates.model import RateHistoryEntry

# Sunday 2025-06-08 09:00 in Paris.
START = datetime(2025, 6, 8, 7, 0, tzinfo=timezone.utc)


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class InMemoryBeneficiaries:
    def __init__(self, *items: Beneficiary):
        self._items = list(items)

    def find_by_public_code(self, code: str) -> Optional[Beneficiary]:
        return next((b for b in self._items if b.qr_code == code), None)

    def get_by_id(self, beneficiary_id: int) -> Optional[Beneficiary]:
        return next((b for b in self._items if b.beneficiary_id == beneficiary_id), None)


class InMemoryStore:
    def __init__(self):
        self._lock = threading.Lock()
        self.tokens: dict[str, Optional[datetime]] = {}
        self.events = []

    def register(self, token: ChallengeToken) -> None:
        with self._lock:
            self.tokens[token.token] = None

    def is_consumed(self, token: str) -> bool:
        return self.tokens.get(token) is not None

    def append_with_token(self, event, *, challenge_token: str):
        with self._lock:
            if self.tokens.get(challenge_token) is not None:
                return None
            self.tokens[challenge_token] = event.accepted_at
            self.events.append(event)
            return len(self.events)

    def list_events(self, *, beneficiary_id: int, start: datetime, end: datetime):
        return [e for e in self.events if e.beneficiary_id == beneficiary_id and start <= e.accepted_at < end]


class InMemoryRates:
    def list_rate_history(self, beneficiary_id: int):
        return [RateHistoryEntry(beneficiary_id=1, rate=15.0, effective_date=date(2025, 1, 1))]


class NoRecipients:
    def list_for_beneficiary(self, beneficiary_id: int):
        return []


@pytest.fixture
def clock():
    return Clock(START)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def client(monkeypatch, clock, store):
    monkeypatch.setenv("APP_ENV", "testing")
    beneficiaries = InMemoryBeneficiaries(
        Beneficiary(beneficiary_id=1, name="Jeanne", country="FR", timezone="Europe/Paris", qr_code="B1", tap_secret="S")
    )
    container = wire_services(
        conn=None,
        beneficiaries_repo=beneficiaries,
        tokens_repo=store,
        events_repo=store,
        rates_repo=InMemoryRates(),
        recipients_repo=NoRecipients(),
        now_fn=clock,
    )
    app = create_app(container)
    return app.test_client()


def _challenge(client, clock, **overrides):
    payload = {"qr_code": "B1", "secret": "S", "method": "qr", "timestamp": clock.now.isoformat()}
    payload.update(overrides)
    return client.post("/api/nfc/challenge", json=payload)


def _checkin(client, clock, token, action, **overrides):
    payload = {
        "beneficiary_qr_code": "B1",
        "secret": "S",
        "challenge_token": token,
        "tap_timestamp": clock.now.isoformat(),
        "verification_method": "qr",
        "caregiver_name": "Alice",
        "action": action,
        "latitude": 48.85,
        "longitude": 2.35,
    }
    payload.update(overrides)
    return client.post("/api/checkin", json=payload)


def test_sunday_visit_end_to_end(client, clock):
    res = _challenge(client, clock)
    assert res.status_code == 200
    token = res.get_json()["challengeToken"]

    res = _checkin(client, clock, token, "check-in")
    assert res.status_code == 200
    assert res.get_json()["checkIn"]["action"] == "check-in"

    status = client.get("/api/beneficiaries/1/status").get_json()
    assert status["is_checked_in"] is True

    clock.now = START + timedelta(hours=2)
    token = _challenge(client, clock).get_json()["challengeToken"]
    assert _checkin(client, clock, token, "check-out").status_code == 200

    res = client.get("/api/beneficiaries/1/summary?month=2025-06")
    assert res.status_code == 200
    body = res.get_json()
    assert body["totals"]["totalAmount"] == 60.0
    assert body["caregivers"][0]["premium100Hours"] == 2.0
    assert body["openIntervals"] == []


def test_replayed_token_is_rejected(client, clock):
    token = _challenge(client, clock).get_json()["challengeToken"]
    assert _checkin(client, clock, token, "check-in").status_code == 200

    res = _checkin(client, clock, token, "check-in")

    assert res.status_code == 400
    assert res.get_json() == {
        "success": False,
        "error": "already_used",
        "message": "This tap has already been used. Please tap the card again.",
    }


def test_qr_checkin_without_location(client, clock, store):
    token = _challenge(client, clock).get_json()["challengeToken"]

    res = _checkin(client, clock, token, "check-in", latitude=None, longitude=None)

    assert res.status_code == 400
    assert res.get_json()["error"] == "missing_location"
    assert store.events == []


def test_challenge_errors_map_to_status_codes(client, clock):
    assert _challenge(client, clock, secret="nope").status_code == 403
    assert _challenge(client, clock, qr_code="B9").status_code == 404
    res = _challenge(client, clock, timestamp=(clock.now - timedelta(minutes=2)).isoformat())
    assert res.status_code == 400
    assert res.get_json()["error"] == "invalid_timestamp"
    assert _challenge(client, clock, timestamp="yesterday").get_json()["error"] == "validation_error"


def test_non_json_body_is_a_validation_error(client):
    res = client.post("/api/checkin", data="hello", content_type="text/plain")

    assert res.status_code == 400
    assert res.get_json()["error"] == "validation_error"


def test_summary_rejects_bad_month(client):
    res = client.get("/api/beneficiaries/1/summary?month=June")

    assert res.status_code == 400
    assert res.get_json()["error"] == "validation_error"


def test_summary_unknown_beneficiary(client):
    assert client.get("/api/beneficiaries/2/summary?month=2025-06").status_code == 404


def test_qr_png(client):
    res = client.get("/api/beneficiaries/1/qr.png")

    assert res.status_code == 200
    assert res.mimetype == "image/png"
    assert res.data.startswith(b"\x89PNG")


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}


def test_training_visit_is_not_billed(client, clock):
    token = _challenge(client, clock).get_json()["challengeToken"]
    res = _checkin(client, clock, token, "check-in", is_training=True)
    assert res.status_code == 200
    assert res.get_json()["checkIn"]["is_training"] is True

    clock.now = START + timedelta(hours=2)
    token = _challenge(client, clock).get_json()["challengeToken"]
    assert _checkin(client, clock, token, "check-out").status_code == 200

    body = client.get("/api/beneficiaries/1/summary?month=2025-06").get_json()
    assert body["totals"]["totalAmount"] == 0.0
    assert body["caregivers"][0]["trainingHours"] == 2.0


def test_invalid_training_flag(client, clock, store):
    token = _challenge(client, clock).get_json()["challengeToken"]

    res = _checkin(client, clock, token, "check-in", is_training="maybe")

    assert res.status_code == 400
    assert res.get_json()["error"] == "validation_error"
    assert store.events == []


def test_overlong_challenge_token_is_a_validation_error(client, clock, store):
    res = _checkin(client, clock, "a" * 65, "check-in")

    assert res.status_code == 400
    assert res.get_json()["error"] == "validation_error"
    assert store.events == []


def test_summary_defaults_to_beneficiary_local_month(client, clock):
    clock.now = datetime(2025, 6, 30, 22, 30, tzinfo=timezone.utc)

    res = client.get("/api/beneficiaries/1/summary")

    assert res.status_code == 200
    assert res.get_json()["month"] == "2025-07"
