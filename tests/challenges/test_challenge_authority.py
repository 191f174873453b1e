from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from src.carecheck.carecheck.beneficiaries.model import Beneficiary
from src.carecheck.carecheck.challenges.model import ChallengeToken
from src.carecheck.carecheck.challenges.service import ChallengeAuthority
from src.carecheck.carecheck.core.enums import VerificationMethod
from src.carecheck.carecheck.core.exceptions import (
    ForbiddenError,
    InvalidTimestampError,
    NotFoundError,
    ValidationError,
)

NOW = datetime(2025, 6, 2, 8, 0, 0, tzinfo=timezone.utc)


class InMemoryBeneficiaries:
    def __init__(self, *items: Beneficiary):
        self._by_code = {b.qr_code: b for b in items}

    def find_by_public_code(self, code: str) -> Optional[Beneficiary]:
        return self._by_code.get(code)

    def get_by_id(self, beneficiary_id: int) -> Optional[Beneficiary]:
        return next((b for b in self._by_code.values() if b.beneficiary_id == beneficiary_id), None)


class InMemoryTokens:
    def __init__(self):
        self.registered: list[ChallengeToken] = []

    def register(self, token: ChallengeToken) -> None:
        self.registered.append(token)

    def is_consumed(self, token: str) -> bool:
        return False


def _authority():
    beneficiaries = InMemoryBeneficiaries(
        Beneficiary(beneficiary_id=1, name="Jeanne", country="FR", timezone="Europe/Paris", qr_code="B1", tap_secret="S")
    )
    tokens = InMemoryTokens()
    return ChallengeAuthority(beneficiaries, tokens, now_fn=lambda: NOW), tokens


def test_issue_challenge_returns_ten_minute_token():
    authority, tokens = _authority()

    issued = authority.issue_challenge(code="B1", presented_secret="S", method="nfc", client_timestamp=NOW)

    assert issued.beneficiary_id == 1
    assert issued.beneficiary_name == "Jeanne"
    assert issued.method == VerificationMethod.NFC
    assert issued.expires_at == NOW + timedelta(minutes=10)
    assert len(tokens.registered) == 1
    assert tokens.registered[0].token == issued.token
    assert tokens.registered[0].consumed is False


def test_tokens_are_unique_per_issue():
    authority, tokens = _authority()

    first = authority.issue_challenge(code="B1", presented_secret="S", method="qr", client_timestamp=NOW)
    second = authority.issue_challenge(code="B1", presented_secret="S", method="qr", client_timestamp=NOW)

    assert first.token != second.token


@pytest.mark.parametrize("offset", [timedelta(seconds=30), timedelta(seconds=-30), timedelta(0)])
def test_client_clock_within_skew_is_accepted(offset):
    authority, _ = _authority()

    issued = authority.issue_challenge(code="B1", presented_secret="S", method=None, client_timestamp=NOW + offset)

    assert issued.method == VerificationMethod.NFC


@pytest.mark.parametrize("offset", [timedelta(seconds=31), timedelta(seconds=-31), timedelta(hours=1)])
def test_client_clock_outside_skew_is_rejected_without_side_effects(offset):
    authority, tokens = _authority()

    with pytest.raises(InvalidTimestampError):
        authority.issue_challenge(code="B1", presented_secret="S", method="nfc", client_timestamp=NOW + offset)
    assert tokens.registered == []


def test_unknown_code_is_not_found():
    authority, tokens = _authority()

    with pytest.raises(NotFoundError):
        authority.issue_challenge(code="NOPE", presented_secret="S", method="nfc", client_timestamp=NOW)
    assert tokens.registered == []


def test_wrong_secret_is_forbidden():
    authority, tokens = _authority()

    with pytest.raises(ForbiddenError):
        authority.issue_challenge(code="B1", presented_secret="wrong", method="nfc", client_timestamp=NOW)
    assert tokens.registered == []


def test_missing_fields_are_validation_errors():
    authority, _ = _authority()

    with pytest.raises(ValidationError):
        authority.issue_challenge(code="", presented_secret="S", method="nfc", client_timestamp=NOW)
    with pytest.raises(ValidationError):
        authority.issue_challenge(code="B1", presented_secret="S", method="nfc", client_timestamp=None)
    with pytest.raises(ValidationError):
        authority.issue_challenge(code="B1", presented_secret="S", method="bluetooth", client_timestamp=NOW)
