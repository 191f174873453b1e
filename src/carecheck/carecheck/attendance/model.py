from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import CheckAction, VerificationMethod


@dataclass(frozen=True)
class VerificationFlags:
    """How an accepted event was verified, kept with the event for audit."""

    secret_validated: bool
    has_geolocation: bool
    geolocation_required: bool
    has_photo: bool

    def to_dict(self) -> dict:
        return {
            "secret_validated": self.secret_validated,
            "has_geolocation": self.has_geolocation,
            "geolocation_required": self.geolocation_required,
            "has_photo": self.has_photo,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "VerificationFlags":
        return cls(
            secret_validated=bool(data.get("secret_validated")),
            has_geolocation=bool(data.get("has_geolocation")),
            geolocation_required=bool(data.get("geolocation_required")),
            has_photo=bool(data.get("has_photo")),
        )


@dataclass(frozen=True)
class CheckEvent:
    """Domain entity: an accepted check-in or check-out.

    Only EventValidator creates these; they are never updated or deleted.
    ``accepted_at`` (server time) orders events for billing. A check-in with
    ``is_training`` opens a training visit: reported, never billed.
    """

    beneficiary_id: int
    caregiver_name: str
    action: CheckAction
    tap_timestamp: datetime
    accepted_at: datetime
    method: VerificationMethod
    flags: VerificationFlags
    challenge_token: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    photo_url: Optional[str] = None
    is_training: bool = False
    event_id: Optional[int] = field(default=None, compare=False)

    def to_dict(self) -> dict:
        return {
            "id": self.event_id,
            "beneficiary_id": self.beneficiary_id,
            "caregiver_name": self.caregiver_name,
            "action": self.action.value,
            "tap_timestamp": self.tap_timestamp.isoformat(),
            "timestamp": self.accepted_at.isoformat(),
            "verification_method": self.method.value,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "photo_url": self.photo_url,
            "is_training": self.is_training,
            "verification_flags": self.flags.to_dict(),
        }
