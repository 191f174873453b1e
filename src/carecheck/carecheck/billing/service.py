from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ..attendance.repository import CheckEventRepository
from ..beneficiaries.repository import BeneficiaryRepository
from ..common.datetime_utils import NowFn, local_date, utc_now
from ..core.constants import DEFAULT_FALLBACK_RATE
from ..core.exceptions import NotFoundError
from ..intervals.reconstructor import IntervalReconstructor
from ..rates.repository import RateHistoryRepository
from ..rates.schedule import RateSchedule
from .aggregator import BillingAggregator
from .model import MonthlySummary, MonthWindow

logger = logging.getLogger(__name__)


class MonthlySummaryService:
    """Builds the monthly bill of a beneficiary from stored events and rates.

    A pure function of what the stores return: recomputing gives the same
    result and different beneficiaries/months can run in parallel.
    """

    def __init__(
        self,
        beneficiaries: BeneficiaryRepository,
        events: CheckEventRepository,
        rates: RateHistoryRepository,
        *,
        reconstructor: Optional[IntervalReconstructor] = None,
        aggregator: Optional[BillingAggregator] = None,
        default_fallback_rate: float = DEFAULT_FALLBACK_RATE,
        now_fn: NowFn = utc_now,
    ):
        self._beneficiaries = beneficiaries
        self._events = events
        self._rates = rates
        self._reconstructor = reconstructor or IntervalReconstructor()
        self._aggregator = aggregator or BillingAggregator()
        self._default_fallback_rate = float(default_fallback_rate)
        self._now = now_fn

    def compute_monthly_summary(
        self,
        beneficiary_id: int,
        window: Optional[MonthWindow] = None,
        *,
        fallback_rate: Optional[float] = None,
    ) -> MonthlySummary:
        """Without a window, bills the current month as seen in the beneficiary timezone."""
        beneficiary = self._beneficiaries.get_by_id(beneficiary_id)
        if not beneficiary:
            raise NotFoundError("Beneficiary not found")

        if window is None:
            today = local_date(self._now(), beneficiary.timezone)
            window = MonthWindow(year=today.year, month=today.month)

        if fallback_rate is None:
            fallback_rate = beneficiary.regular_rate or self._default_fallback_rate

        start, end = window.bounds(beneficiary.timezone)
        events = self._events.list_events(beneficiary_id=beneficiary.beneficiary_id, start=start, end=end)
        schedule = RateSchedule(
            self._rates.list_rate_history(beneficiary.beneficiary_id),
            fallback_rate=fallback_rate,
            timezone=beneficiary.timezone,
        )

        result = self._reconstructor.reconstruct(events)
        month_start_rate = schedule.rate_for(date(window.year, window.month, 1), warn=False)
        summaries, totals = self._aggregator.aggregate(
            result.intervals,
            schedule=schedule,
            country=beneficiary.country,
            copay_percentage=beneficiary.copay_percentage,
            allowance_monthly_hours=month_start_rate.allowance_monthly_hours,
        )

        warnings = schedule.warnings
        if result.anomalies:
            warnings.append(f"{len(result.anomalies)} check event(s) could not be paired and were not billed")

        logger.info(
            "Computed %s summary for beneficiary %s: %d events, %d intervals, %d caregivers",
            window.label(),
            beneficiary.beneficiary_id,
            len(events),
            len(result.intervals),
            len(summaries),
        )
        return MonthlySummary(
            beneficiary_id=beneficiary.beneficiary_id,
            window=window,
            currency=beneficiary.currency,
            caregiver_summaries=summaries,
            totals=totals,
            open_intervals=result.anomalies,
            warnings=warnings,
            month_start_rate=month_start_rate,
        )
