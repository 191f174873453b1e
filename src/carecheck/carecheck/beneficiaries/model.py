from __future__ import annotations

from dataclasses import dataclass

from ..core.constants import DEFAULT_CURRENCY, DEFAULT_FALLBACK_RATE


@dataclass(frozen=True)
class Beneficiary:
    """Domain entity: the person receiving care.

    One billing timezone and one active tap secret per beneficiary. Rotating
    ``tap_secret`` makes every outstanding challenge fail the secret check.
    """

    beneficiary_id: int
    name: str
    country: str
    timezone: str
    qr_code: str
    tap_secret: str
    currency: str = DEFAULT_CURRENCY
    regular_rate: float = DEFAULT_FALLBACK_RATE
    copay_percentage: float = 0.0
