"""
Public holiday calendar used to classify beneficiary-local dates
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Callable, Mapping, Optional

from dateutil.easter import easter

from ..core.enums import DayKind

logger = logging.getLogger(__name__)

_FR_FIXED = (
    (1, 1, "Jour de l'an"),
    (5, 1, "Fête du Travail"),
    (5, 8, "Victoire 1945"),
    (7, 14, "Fête Nationale"),
    (8, 15, "Assomption"),
    (11, 1, "Toussaint"),
    (11, 11, "Armistice 1918"),
    (12, 25, "Noël"),
)

# Days after Easter Sunday.
_FR_EASTER_BASED = (
    (1, "Lundi de Pâques"),
    (39, "Jeudi de l'Ascension"),
    (50, "Lundi de Pentecôte"),
)


def french_holidays(year: int) -> dict[date, str]:
    days = {date(year, month, day): name for month, day, name in _FR_FIXED}
    easter_sunday = easter(year)
    for offset, name in _FR_EASTER_BASED:
        days[easter_sunday + timedelta(days=offset)] = name
    return days


HolidayRule = Callable[[int], dict[date, str]]

DEFAULT_RULES: dict[str, HolidayRule] = {
    "FR": french_holidays,
}


class HolidayCalendar:
    """Classifies a date as ordinary, Sunday or public holiday for a country.

    Countries without a rule only get Sunday classification, plus any dates
    passed in ``extra_holidays`` (country code -> {date: name}).
    """

    def __init__(
        self,
        *,
        rules: Optional[Mapping[str, HolidayRule]] = None,
        extra_holidays: Optional[Mapping[str, Mapping[date, str]]] = None,
    ):
        self._rules = dict(DEFAULT_RULES if rules is None else rules)
        self._extra = {k.upper(): dict(v) for k, v in (extra_holidays or {}).items()}
        self._cache: dict[tuple[str, int], dict[date, str]] = {}
        self._warned: set[str] = set()

    def holidays_for(self, country: str, year: int) -> dict[date, str]:
        country = (country or "").upper()
        key = (country, year)
        if key not in self._cache:
            rule = self._rules.get(country)
            if rule is None and country not in self._warned and country not in self._extra:
                logger.warning("No holiday rule for country %r; only Sundays get the holiday premium", country)
                self._warned.add(country)
            days = dict(rule(year)) if rule else {}
            days.update({d: n for d, n in self._extra.get(country, {}).items() if d.year == year})
            self._cache[key] = days
        return self._cache[key]

    def holiday_name(self, day: date, country: str) -> Optional[str]:
        return self.holidays_for(country, day.year).get(day)

    def classify(self, day: date, country: str) -> DayKind:
        if self.holiday_name(day, country):
            return DayKind.HOLIDAY
        if day.weekday() == 6:
            return DayKind.SUNDAY
        return DayKind.ORDINARY
