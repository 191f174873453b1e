from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional

from ..core.constants import EVENING_MULTIPLIER, SUNDAY_HOLIDAY_MULTIPLIER, VAT_RATE
from ..intervals.model import WorkInterval
from ..rates.schedule import RateSchedule
from .model import BillingTotals, CaregiverSummary, MinuteBuckets
from .splitter import PremiumSplitter


@dataclass(frozen=True)
class _Priced:
    caregiver_name: str
    buckets: MinuteBuckets
    regular_amount: float
    premium25_amount: float
    premium100_amount: float
    conventioned_amount: float

    @property
    def total_amount(self) -> float:
        return math.fsum((self.regular_amount, self.premium25_amount, self.premium100_amount))


def is_training(interval: WorkInterval) -> bool:
    """Training visits are opened by a check-in flagged ``is_training``."""
    return interval.check_in is not None and interval.check_in.is_training


class BillingAggregator:
    """Prices work intervals and rolls them up per caregiver.

    Pure: the same intervals always give the same figures, in any order.
    Sums go through ``math.fsum`` and nothing is rounded here; rounding
    belongs to presentation (``to_dict``).
    """

    def __init__(self, splitter: Optional[PremiumSplitter] = None):
        self._splitter = splitter or PremiumSplitter()

    def price(self, interval: WorkInterval, *, schedule: RateSchedule, country: str) -> _Priced:
        buckets = self._splitter.split(interval, country=country, timezone=schedule.timezone)
        rate = schedule.rate_at(interval.start)
        per_minute = rate.billing_rate / 60.0
        return _Priced(
            caregiver_name=interval.caregiver_name,
            buckets=buckets,
            regular_amount=buckets.regular * per_minute,
            premium25_amount=buckets.premium25 * per_minute * EVENING_MULTIPLIER,
            premium100_amount=buckets.premium100 * per_minute * SUNDAY_HOLIDAY_MULTIPLIER,
            conventioned_amount=buckets.total * rate.conventioned_rate / 60.0,
        )

    def summarize(self, intervals: Iterable[WorkInterval], *, schedule: RateSchedule, country: str) -> list[CaregiverSummary]:
        by_caregiver: dict[str, list[_Priced]] = defaultdict(list)
        training: dict[str, list[float]] = defaultdict(list)
        for interval in intervals:
            if is_training(interval):
                training[interval.caregiver_name].append(interval.minutes)
                continue
            priced = self.price(interval, schedule=schedule, country=country)
            by_caregiver[priced.caregiver_name].append(priced)

        summaries = []
        for name in sorted(set(by_caregiver) | set(training)):
            items = by_caregiver.get(name, [])
            summaries.append(
                CaregiverSummary(
                    caregiver_name=name,
                    regular_minutes=math.fsum(p.buckets.regular for p in items),
                    premium25_minutes=math.fsum(p.buckets.premium25 for p in items),
                    premium100_minutes=math.fsum(p.buckets.premium100 for p in items),
                    regular_amount=math.fsum(p.regular_amount for p in items),
                    premium25_amount=math.fsum(p.premium25_amount for p in items),
                    premium100_amount=math.fsum(p.premium100_amount for p in items),
                    total_amount=math.fsum(p.total_amount for p in items),
                    conventioned_amount=math.fsum(p.conventioned_amount for p in items),
                    interval_count=len(items),
                    training_minutes=math.fsum(training.get(name, [])),
                )
            )
        return summaries

    @staticmethod
    def totals(
        summaries: Iterable[CaregiverSummary],
        *,
        copay_percentage: float = 0.0,
        allowance_monthly_hours: Optional[float] = None,
    ) -> BillingTotals:
        """Sums the caregiver figures and splits them between allowance and beneficiary.

        With no allowance hours configured nothing is covered and the
        beneficiary pays the full total. The co-pay split of the conventioned
        amount is not applied in that case, even though the base is computed.
        """
        summaries = list(summaries)
        total_amount = math.fsum(s.total_amount for s in summaries)
        conventioned = math.fsum(s.conventioned_amount for s in summaries)
        covered = conventioned * (1 - float(copay_percentage) / 100.0) if allowance_monthly_hours is not None else 0.0
        return BillingTotals(
            regular_minutes=math.fsum(s.regular_minutes for s in summaries),
            premium25_minutes=math.fsum(s.premium25_minutes for s in summaries),
            premium100_minutes=math.fsum(s.premium100_minutes for s in summaries),
            regular_amount=math.fsum(s.regular_amount for s in summaries),
            premium25_amount=math.fsum(s.premium25_amount for s in summaries),
            premium100_amount=math.fsum(s.premium100_amount for s in summaries),
            total_amount=total_amount,
            conventioned_amount=conventioned,
            allowance_covered_amount=covered,
            beneficiary_share_amount=total_amount - covered,
            total_including_vat=total_amount * (1 + VAT_RATE),
            allowance_monthly_hours=allowance_monthly_hours,
            training_minutes=math.fsum(s.training_minutes for s in summaries),
        )

    def aggregate(
        self,
        intervals: Iterable[WorkInterval],
        *,
        schedule: RateSchedule,
        country: str,
        copay_percentage: float = 0.0,
        allowance_monthly_hours: Optional[float] = None,
    ) -> tuple[list[CaregiverSummary], BillingTotals]:
        summaries = self.summarize(intervals, schedule=schedule, country=country)
        totals = self.totals(
            summaries,
            copay_percentage=copay_percentage,
            allowance_monthly_hours=allowance_monthly_hours,
        )
        return summaries, totals
