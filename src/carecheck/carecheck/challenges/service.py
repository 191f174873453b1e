from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from ..beneficiaries.repository import BeneficiaryRepository
from ..common.datetime_utils import NowFn, ensure_utc, utc_now
from ..common.logging_utils import mask_secret
from ..common.security import constant_time_equals, new_challenge_token
from ..common.validators import require_enum, require_non_empty
from ..core.constants import CHALLENGE_CLOCK_SKEW_SECONDS, CHALLENGE_TTL_MINUTES
from ..core.enums import VerificationMethod
from ..core.exceptions import ForbiddenError, InvalidTimestampError, NotFoundError, ValidationError
from .model import ChallengeToken, IssuedChallenge
from .repository import ChallengeTokenRepository

logger = logging.getLogger(__name__)


class ChallengeAuthority:
    """Issues single-use challenge tokens for NFC taps and QR scans."""

    def __init__(
        self,
        beneficiaries: BeneficiaryRepository,
        tokens: ChallengeTokenRepository,
        *,
        now_fn: NowFn = utc_now,
        ttl_minutes: int = CHALLENGE_TTL_MINUTES,
        clock_skew_seconds: int = CHALLENGE_CLOCK_SKEW_SECONDS,
    ):
        self._beneficiaries = beneficiaries
        self._tokens = tokens
        self._now_fn = now_fn
        self._ttl = timedelta(minutes=int(ttl_minutes))
        self._skew = timedelta(seconds=int(clock_skew_seconds))

    def issue_challenge(
        self,
        *,
        code: str,
        presented_secret: str,
        method: Optional[str | VerificationMethod],
        client_timestamp: Optional[datetime],
    ) -> IssuedChallenge:
        code = require_non_empty(code, "qr_code")
        presented_secret = require_non_empty(presented_secret, "secret")
        if client_timestamp is None:
            raise ValidationError("timestamp is required")
        verification = VerificationMethod.NFC if method is None else require_enum(method, VerificationMethod, "method")

        now = ensure_utc(self._now_fn())
        if abs(now - ensure_utc(client_timestamp)) > self._skew:
            logger.info("Challenge refused for %s: client clock outside %s", code, self._skew)
            raise InvalidTimestampError("Invalid or expired timestamp")

        beneficiary = self._beneficiaries.find_by_public_code(code)
        if not beneficiary:
            raise NotFoundError("Invalid QR code")

        if not constant_time_equals(presented_secret, beneficiary.tap_secret):
            logger.warning(
                "Challenge refused for beneficiary %s: secret mismatch (%s)",
                beneficiary.beneficiary_id,
                mask_secret(presented_secret),
            )
            raise ForbiddenError("Invalid secret")

        challenge = ChallengeToken(
            token=new_challenge_token(now),
            beneficiary_id=beneficiary.beneficiary_id,
            issued_at=now,
            expires_at=now + self._ttl,
        )
        self._tokens.register(challenge)
        logger.info("Issued %s challenge for beneficiary %s", verification.value, beneficiary.beneficiary_id)

        return IssuedChallenge(
            token=challenge.token,
            expires_at=challenge.expires_at,
            beneficiary_id=beneficiary.beneficiary_id,
            beneficiary_name=beneficiary.name,
            method=verification,
        )
