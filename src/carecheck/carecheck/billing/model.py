from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import month_bounds, parse_month
from ..core.constants import PRESENTATION_DECIMALS
from ..intervals.model import IntervalAnomaly
from ..rates.model import ResolvedRate


def _money(value: float) -> float:
    return round(value, PRESENTATION_DECIMALS)


def _hours(minutes: float) -> float:
    return minutes / 60.0


@dataclass(frozen=True)
class MonthWindow:
    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"month out of range: {self.month}")

    @classmethod
    def parse(cls, value: str) -> "MonthWindow":
        year, month = parse_month(value)
        return cls(year=year, month=month)

    def bounds(self, tz_name: str) -> tuple[datetime, datetime]:
        return month_bounds(self.year, self.month, tz_name)

    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class MinuteBuckets:
    """Disjoint partition of worked minutes by premium class."""

    regular: float = 0.0
    premium25: float = 0.0
    premium100: float = 0.0

    def __add__(self, other: "MinuteBuckets") -> "MinuteBuckets":
        return MinuteBuckets(
            regular=self.regular + other.regular,
            premium25=self.premium25 + other.premium25,
            premium100=self.premium100 + other.premium100,
        )

    @property
    def total(self) -> float:
        return self.regular + self.premium25 + self.premium100


@dataclass(frozen=True)
class CaregiverSummary:
    """Full-precision monthly figures for one caregiver.

    ``training_minutes`` counts training visits, which are reported but
    never priced; they are not part of the billed minutes.
    """

    caregiver_name: str
    regular_minutes: float
    premium25_minutes: float
    premium100_minutes: float
    regular_amount: float
    premium25_amount: float
    premium100_amount: float
    total_amount: float
    conventioned_amount: float = 0.0
    interval_count: int = 0
    training_minutes: float = 0.0

    @property
    def total_minutes(self) -> float:
        return self.regular_minutes + self.premium25_minutes + self.premium100_minutes

    def to_dict(self) -> dict:
        return {
            "name": self.caregiver_name,
            "intervals": self.interval_count,
            "regularHours": _money(_hours(self.regular_minutes)),
            "premium25Hours": _money(_hours(self.premium25_minutes)),
            "premium100Hours": _money(_hours(self.premium100_minutes)),
            "totalHours": _money(_hours(self.total_minutes)),
            "regularAmount": _money(self.regular_amount),
            "premium25Amount": _money(self.premium25_amount),
            "premium100Amount": _money(self.premium100_amount),
            "totalAmount": _money(self.total_amount),
            "trainingHours": _money(_hours(self.training_minutes)),
        }


@dataclass(frozen=True)
class BillingTotals:
    """Beneficiary-level totals plus the allowance/co-pay split."""

    regular_minutes: float = 0.0
    premium25_minutes: float = 0.0
    premium100_minutes: float = 0.0
    regular_amount: float = 0.0
    premium25_amount: float = 0.0
    premium100_amount: float = 0.0
    total_amount: float = 0.0
    conventioned_amount: float = 0.0
    allowance_covered_amount: float = 0.0
    beneficiary_share_amount: float = 0.0
    total_including_vat: float = 0.0
    allowance_monthly_hours: Optional[float] = None
    training_minutes: float = 0.0

    @property
    def total_minutes(self) -> float:
        return self.regular_minutes + self.premium25_minutes + self.premium100_minutes

    @property
    def allowance_hours_remaining(self) -> Optional[float]:
        if self.allowance_monthly_hours is None:
            return None
        return self.allowance_monthly_hours - _hours(self.total_minutes)

    def to_dict(self) -> dict:
        remaining = self.allowance_hours_remaining
        return {
            "regularHours": _money(_hours(self.regular_minutes)),
            "premium25Hours": _money(_hours(self.premium25_minutes)),
            "premium100Hours": _money(_hours(self.premium100_minutes)),
            "totalHours": _money(_hours(self.total_minutes)),
            "regularAmount": _money(self.regular_amount),
            "premium25Amount": _money(self.premium25_amount),
            "premium100Amount": _money(self.premium100_amount),
            "totalAmount": _money(self.total_amount),
            "totalIncludingVat": _money(self.total_including_vat),
            "conventionedAmount": _money(self.conventioned_amount),
            "allowanceCoveredAmount": _money(self.allowance_covered_amount),
            "beneficiaryShareAmount": _money(self.beneficiary_share_amount),
            "allowanceMonthlyHours": self.allowance_monthly_hours,
            "allowanceHoursRemaining": _money(remaining) if remaining is not None else None,
            "trainingHours": _money(_hours(self.training_minutes)),
        }


@dataclass(frozen=True)
class MonthlySummary:
    beneficiary_id: int
    window: MonthWindow
    currency: str
    caregiver_summaries: list[CaregiverSummary]
    totals: BillingTotals
    open_intervals: list[IntervalAnomaly] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    month_start_rate: Optional[ResolvedRate] = None

    def to_dict(self) -> dict:
        return {
            "beneficiaryId": self.beneficiary_id,
            "month": self.window.label(),
            "currency": self.currency,
            "caregivers": [s.to_dict() for s in self.caregiver_summaries],
            "totals": self.totals.to_dict(),
            "openIntervals": [a.to_dict() for a in self.open_intervals],
            "warnings": list(self.warnings),
            "rates": self.month_start_rate.to_dict() if self.month_start_rate else None,
        }
