from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional

from ..beneficiaries.repository import BeneficiaryRepository
from ..challenges.repository import ChallengeTokenRepository
from ..common.datetime_utils import NowFn, ensure_utc, utc_now
from ..common.logging_utils import mask_coordinates, mask_name
from ..common.security import constant_time_equals
from ..common.validators import optional_coordinate, optional_flag, require_enum, require_max_length, require_non_empty
from ..core.constants import CHALLENGE_TOKEN_MAX_LENGTH, STATUS_LOOKBACK_HOURS, TAP_MAX_AGE_MINUTES
from ..core.enums import AnomalyKind, CheckAction, VerificationMethod
from ..core.exceptions import (
    AlreadyUsedError,
    ExpiredError,
    ForbiddenError,
    InvalidTimestampError,
    MissingLocationError,
    NotFoundError,
    ValidationError,
)
from ..intervals.reconstructor import IntervalReconstructor
from ..notifications.service import CheckNotificationService
from .model import CheckEvent, VerificationFlags
from .repository import CheckEventRepository

logger = logging.getLogger(__name__)


class EventValidator:
    """Accepts or rejects a tap-driven check-in/check-out.

    Checks run in a fixed order and the first failure wins: beneficiary,
    secret, token replay, tap freshness, location policy. Token consumption
    and the event insert are one store operation, so a token backs at most
    one accepted event.
    """

    def __init__(
        self,
        beneficiaries: BeneficiaryRepository,
        tokens: ChallengeTokenRepository,
        events: CheckEventRepository,
        *,
        notifier: Optional[CheckNotificationService] = None,
        now_fn: NowFn = utc_now,
        max_tap_age_minutes: int = TAP_MAX_AGE_MINUTES,
    ):
        self._beneficiaries = beneficiaries
        self._tokens = tokens
        self._events = events
        self._notifier = notifier
        self._now_fn = now_fn
        self._max_tap_age = timedelta(minutes=int(max_tap_age_minutes))

    def submit_event(
        self,
        *,
        beneficiary_code: str,
        presented_secret: str,
        challenge_token: str,
        tap_timestamp: Optional[datetime],
        method: Optional[str | VerificationMethod],
        caregiver_name: str,
        action: Optional[str | CheckAction],
        latitude: object = None,
        longitude: object = None,
        photo_url: Optional[str] = None,
        is_training: object = False,
    ) -> CheckEvent:
        beneficiary_code = require_non_empty(beneficiary_code, "beneficiary_qr_code")
        presented_secret = require_non_empty(presented_secret, "secret")
        challenge_token = require_max_length(
            require_non_empty(challenge_token, "challenge_token"),
            "challenge_token",
            limit=CHALLENGE_TOKEN_MAX_LENGTH,
        )
        caregiver_name = require_non_empty(caregiver_name, "caregiver_name")
        if tap_timestamp is None:
            raise ValidationError("tap_timestamp is required")
        if action is None:
            raise ValidationError("action is required")
        check_action = require_enum(action, CheckAction, "action")
        verification = VerificationMethod.NFC if method is None else require_enum(method, VerificationMethod, "verification_method")
        lat = optional_coordinate(latitude, "latitude", limit=90.0)
        lon = optional_coordinate(longitude, "longitude", limit=180.0)
        photo_url = photo_url.strip() if photo_url and photo_url.strip() else None
        training = optional_flag(is_training, "is_training")

        beneficiary = self._beneficiaries.find_by_public_code(beneficiary_code)
        if not beneficiary:
            raise NotFoundError("Invalid beneficiary code")

        if not constant_time_equals(presented_secret, beneficiary.tap_secret):
            logger.warning("Check event refused for beneficiary %s: secret mismatch", beneficiary.beneficiary_id)
            raise ForbiddenError("Invalid credentials. Please tap the card again.")

        if self._tokens.is_consumed(challenge_token):
            logger.info("Replayed challenge token for beneficiary %s", beneficiary.beneficiary_id)
            raise AlreadyUsedError("This tap has already been used. Please tap the card again.")

        now = ensure_utc(self._now_fn())
        tapped_at = ensure_utc(tap_timestamp)
        age = now - tapped_at
        if age > self._max_tap_age:
            raise ExpiredError("Tap expired. Please tap the card again.")
        if age < timedelta(0):
            raise InvalidTimestampError("Invalid tap timestamp")

        has_location = lat is not None and lon is not None
        location_required = verification == VerificationMethod.QR
        if location_required and not has_location:
            raise MissingLocationError("Location is required when using the QR code. Please enable location services.")

        event = CheckEvent(
            beneficiary_id=beneficiary.beneficiary_id,
            caregiver_name=caregiver_name,
            action=check_action,
            tap_timestamp=tapped_at,
            accepted_at=now,
            method=verification,
            flags=VerificationFlags(
                secret_validated=True,
                has_geolocation=has_location,
                geolocation_required=location_required,
                has_photo=photo_url is not None,
            ),
            challenge_token=challenge_token,
            latitude=lat,
            longitude=lon,
            photo_url=photo_url,
            is_training=training,
        )

        event_id = self._events.append_with_token(event, challenge_token=challenge_token)
        if event_id is None:
            # Lost the race against a concurrent submission with the same token.
            logger.info("Concurrent replay of challenge token for beneficiary %s", beneficiary.beneficiary_id)
            raise AlreadyUsedError("This tap has already been used. Please tap the card again.")

        event = replace(event, event_id=event_id)
        logger.info(
            "Accepted %s #%s for beneficiary %s by %s via %s (%s)",
            check_action.value,
            event_id,
            beneficiary.beneficiary_id,
            mask_name(caregiver_name),
            verification.value,
            mask_coordinates(lat, lon),
        )

        if self._notifier:
            self._notifier.notify(beneficiary, event)
        return event


@dataclass(frozen=True)
class PresentCaregiver:
    caregiver_name: str
    since: datetime


@dataclass(frozen=True)
class CurrentStatus:
    beneficiary_id: int
    present: list[PresentCaregiver]
    last_event: Optional[CheckEvent]

    @property
    def is_checked_in(self) -> bool:
        return bool(self.present)

    def to_dict(self) -> dict:
        return {
            "beneficiary_id": self.beneficiary_id,
            "is_checked_in": self.is_checked_in,
            "present": [{"caregiver_name": p.caregiver_name, "since": p.since.isoformat()} for p in self.present],
            "last_event": self.last_event.to_dict() if self.last_event else None,
        }


class AttendanceStatusService:
    """Who is with the beneficiary right now (open check-ins of the last day)."""

    def __init__(
        self,
        beneficiaries: BeneficiaryRepository,
        events: CheckEventRepository,
        *,
        reconstructor: Optional[IntervalReconstructor] = None,
        now_fn: NowFn = utc_now,
        lookback_hours: int = STATUS_LOOKBACK_HOURS,
    ):
        self._beneficiaries = beneficiaries
        self._events = events
        self._reconstructor = reconstructor or IntervalReconstructor()
        self._now_fn = now_fn
        self._lookback = timedelta(hours=int(lookback_hours))

    def current_status(self, beneficiary_id: int) -> CurrentStatus:
        beneficiary = self._beneficiaries.get_by_id(beneficiary_id)
        if not beneficiary:
            raise NotFoundError("Beneficiary not found")

        now = ensure_utc(self._now_fn())
        events = self._events.list_events(
            beneficiary_id=beneficiary.beneficiary_id,
            start=now - self._lookback,
            end=now + timedelta(seconds=1),
        )
        result = self._reconstructor.reconstruct(events)
        present = [
            PresentCaregiver(caregiver_name=a.caregiver_name, since=a.event.accepted_at)
            for a in result.anomalies
            if a.kind == AnomalyKind.OPEN_CHECK_IN
        ]
        present.sort(key=lambda p: p.since)
        last_event = max(events, key=lambda e: e.accepted_at) if events else None
        return CurrentStatus(beneficiary_id=beneficiary.beneficiary_id, present=present, last_event=last_event)
