from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, Optional

from ..common.datetime_utils import local_date
from ..core.constants import DEFAULT_TIMEZONE
from .model import RateHistoryEntry, ResolvedRate

logger = logging.getLogger(__name__)


class RateSchedule:
    """Time-versioned rates of one beneficiary.

    The entry in effect on a date is the one with the latest
    ``effective_date`` on or before it. Dates before every entry resolve to
    the fallback rate. Problems are collected in ``warnings`` instead of
    failing the billing run.
    """

    def __init__(
        self,
        entries: Iterable[RateHistoryEntry],
        *,
        fallback_rate: float,
        timezone: str = DEFAULT_TIMEZONE,
    ):
        self._fallback_rate = float(fallback_rate)
        self._timezone = timezone
        self._warnings: list[str] = []

        valid: list[RateHistoryEntry] = []
        for entry in entries:
            if entry.rate is None or entry.rate <= 0 or entry.effective_date is None:
                self._warn(f"Ignored malformed rate entry {entry!r}")
                continue
            valid.append(entry)
        # Sorted ascending; equal dates keep input order and the last one wins.
        self._entries = sorted(valid, key=lambda e: e.effective_date)

    @property
    def warnings(self) -> list[str]:
        return list(self._warnings)

    @property
    def timezone(self) -> str:
        return self._timezone

    def _warn(self, message: str) -> None:
        if message not in self._warnings:
            logger.warning(message)
            self._warnings.append(message)

    def _entry_for(self, day: date) -> Optional[RateHistoryEntry]:
        found = None
        for entry in self._entries:
            if entry.effective_date > day:
                break
            found = entry
        return found

    def rate_for(self, day: date, *, warn: bool = True) -> ResolvedRate:
        entry = self._entry_for(day)
        if entry is None:
            if warn:
                self._warn(f"No rate in effect on {day.isoformat()}; using fallback rate {self._fallback_rate:.2f}")
            return ResolvedRate(billing_rate=self._fallback_rate, conventioned_rate=self._fallback_rate)

        conventioned = entry.conventioned_rate if entry.conventioned_rate is not None else entry.rate
        return ResolvedRate(
            billing_rate=float(entry.rate),
            conventioned_rate=float(conventioned),
            allowance_monthly_hours=entry.allowance_monthly_hours,
            effective_date=entry.effective_date,
        )

    def rate_at(self, instant: datetime) -> ResolvedRate:
        """Rate for the beneficiary-local calendar date of ``instant``."""
        return self.rate_for(local_date(instant, self._timezone))
