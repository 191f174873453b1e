from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.constants import EVENING_MULTIPLIER, SUNDAY_HOLIDAY_MULTIPLIER


@dataclass(frozen=True)
class RateHistoryEntry:
    """Hourly rates effective from ``effective_date`` (inclusive, local date)."""

    beneficiary_id: int
    rate: float
    effective_date: date
    conventioned_rate: Optional[float] = None
    allowance_monthly_hours: Optional[float] = None


@dataclass(frozen=True)
class ResolvedRate:
    """Hourly rates in effect on one date.

    ``effective_date`` is None when the fallback rate was used.
    """

    billing_rate: float
    conventioned_rate: float
    allowance_monthly_hours: Optional[float] = None
    effective_date: Optional[date] = None

    @property
    def is_fallback(self) -> bool:
        return self.effective_date is None

    @property
    def evening_rate(self) -> float:
        return self.billing_rate * EVENING_MULTIPLIER

    @property
    def holiday_rate(self) -> float:
        return self.billing_rate * SUNDAY_HOLIDAY_MULTIPLIER

    def to_dict(self) -> dict:
        return {
            "billing_rate": self.billing_rate,
            "conventioned_rate": self.conventioned_rate,
            "evening_rate": self.evening_rate,
            "holiday_rate": self.holiday_rate,
            "allowance_monthly_hours": self.allowance_monthly_hours,
            "effective_date": self.effective_date.isoformat() if self.effective_date else None,
        }
