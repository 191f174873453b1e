from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time

from ..core.constants import EVENING_PREMIUM_START
from ..core.enums import DayKind
from ..holidays.calendar import HolidayCalendar
from .strategies.base import PremiumStrategy
from .strategies.evening_strategy import EveningPremiumStrategy
from .strategies.full_premium_strategy import FullPremiumStrategy


@dataclass
class PremiumStrategyFactory:
    """Factory Pattern: choose the premium strategy for a local date."""

    calendar: HolidayCalendar = field(default_factory=HolidayCalendar)
    evening_start: time = EVENING_PREMIUM_START

    def __post_init__(self) -> None:
        self._ordinary = EveningPremiumStrategy(self.evening_start)
        self._full = FullPremiumStrategy()

    def for_day(self, *, day: date, country: str) -> PremiumStrategy:
        kind = self.calendar.classify(day, country)
        if kind in (DayKind.SUNDAY, DayKind.HOLIDAY):
            return self._full
        return self._ordinary
