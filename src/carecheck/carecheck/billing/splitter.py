from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterator, Optional

from ..common.datetime_utils import ensure_utc, local_date, local_midnight
from ..intervals.model import WorkInterval
from .factory import PremiumStrategyFactory
from .model import MinuteBuckets


def day_segments(start: datetime, end: datetime, tz_name: str) -> Iterator[tuple[datetime, datetime]]:
    """Cut [start, end) at every local midnight in between."""
    cursor = ensure_utc(start)
    end = ensure_utc(end)
    while cursor < end:
        next_midnight = local_midnight(local_date(cursor, tz_name) + timedelta(days=1), tz_name)
        segment_end = min(end, next_midnight)
        yield cursor, segment_end
        cursor = segment_end


class PremiumSplitter:
    """Partitions a work interval into regular / premium25 / premium100 minutes.

    Every rule is evaluated on the beneficiary-local date and clock. An
    interval crossing midnight is cut there first and each day is classified
    on its own.
    """

    def __init__(self, factory: Optional[PremiumStrategyFactory] = None):
        self._factory = factory or PremiumStrategyFactory()

    def split(self, interval: WorkInterval, *, country: str, timezone: str) -> MinuteBuckets:
        buckets = MinuteBuckets()
        for seg_start, seg_end in day_segments(interval.start, interval.end, timezone):
            day = local_date(seg_start, timezone)
            strategy = self._factory.for_day(day=day, country=country)
            buckets = buckets + strategy.split_segment(start=seg_start, end=seg_end, day=day, timezone=timezone)
        return buckets
