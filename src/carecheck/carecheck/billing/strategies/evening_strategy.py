from __future__ import annotations

from datetime import date, datetime, time

from ...common.datetime_utils import local_instant, minutes_between
from ...core.constants import EVENING_PREMIUM_START
from ..model import MinuteBuckets
from .base import PremiumStrategy


class EveningPremiumStrategy(PremiumStrategy):
    """Ordinary day: regular before the evening threshold, +25% from it on.

    The threshold instant itself is premium.
    """

    def __init__(self, evening_start: time = EVENING_PREMIUM_START):
        self._evening_start = evening_start

    def split_segment(self, *, start: datetime, end: datetime, day: date, timezone: str) -> MinuteBuckets:
        if end <= start:
            return MinuteBuckets()

        boundary = local_instant(day, self._evening_start, timezone)
        regular = minutes_between(start, min(end, boundary)) if start < boundary else 0.0
        premium = minutes_between(max(start, boundary), end) if end > boundary else 0.0
        return MinuteBuckets(regular=regular, premium25=premium)
