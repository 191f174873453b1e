from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import VerificationMethod


@dataclass(frozen=True)
class ChallengeToken:
    """Single-use credential proving a tap happened recently.

    ``consumed_at`` only ever goes from None to a timestamp.
    """

    token: str
    beneficiary_id: int
    issued_at: datetime
    expires_at: datetime
    consumed_at: Optional[datetime] = None

    @property
    def consumed(self) -> bool:
        return self.consumed_at is not None


@dataclass(frozen=True)
class IssuedChallenge:
    """What the tapping device receives back."""

    token: str
    expires_at: datetime
    beneficiary_id: int
    beneficiary_name: str
    method: VerificationMethod

    def to_dict(self) -> dict:
        return {
            "challengeToken": self.token,
            "expiresAt": self.expires_at.isoformat(),
            "beneficiaryId": self.beneficiary_id,
            "beneficiaryName": self.beneficiary_name,
            "method": self.method.value,
        }
