from __future__ import annotations

from enum import Enum


class CheckAction(str, Enum):
    """Action recorded by a tap."""

    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"


class VerificationMethod(str, Enum):
    """How the tap proved physical presence."""

    NFC = "nfc"
    QR = "qr"


class DayKind(str, Enum):
    """Calendar classification of a beneficiary-local date."""

    ORDINARY = "ordinary"
    SUNDAY = "sunday"
    HOLIDAY = "holiday"


class AnomalyKind(str, Enum):
    """Events that could not be paired into a billable interval."""

    OPEN_CHECK_IN = "open_check_in"
    DUPLICATE_CHECK_IN = "duplicate_check_in"
    ORPHANED_CHECK_OUT = "orphaned_check_out"
