from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime

from ..model import MinuteBuckets


class PremiumStrategy(ABC):
    """Strategy Pattern: how the minutes of one local day are classified.

    ``start``/``end`` always lie within the local calendar day ``day``.
    """

    @abstractmethod
    def split_segment(self, *, start: datetime, end: datetime, day: date, timezone: str) -> MinuteBuckets:
        raise NotImplementedError
