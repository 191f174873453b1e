from __future__ import annotations

import hmac
import secrets
from datetime import datetime

from ..core.constants import CHALLENGE_TOKEN_BYTES


def constant_time_equals(presented: str | None, expected: str | None) -> bool:
    """Compare secrets without leaking the mismatch position through timing."""
    if presented is None or expected is None:
        return False
    return hmac.compare_digest(presented.encode("utf-8"), expected.encode("utf-8"))


def new_challenge_token(issued_at: datetime) -> str:
    """128 random bits plus the issuance time in milliseconds."""
    return f"{secrets.token_hex(CHALLENGE_TOKEN_BYTES)}-{int(issued_at.timestamp() * 1000)}"
