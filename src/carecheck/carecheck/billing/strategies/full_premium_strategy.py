from __future__ import annotations

from datetime import date, datetime

from ...common.datetime_utils import minutes_between
from ..model import MinuteBuckets
from .base import PremiumStrategy


class FullPremiumStrategy(PremiumStrategy):
    """Sunday or public holiday: every minute at +100%, whatever the clock says."""

    def split_segment(self, *, start: datetime, end: datetime, day: date, timezone: str) -> MinuteBuckets:
        if end <= start:
            return MinuteBuckets()
        return MinuteBuckets(premium100=minutes_between(start, end))
