from __future__ import annotations

from datetime import date, datetime, timezone

from src.carecheck.carecheck.rates.model import RateHistoryEntry
from src.carecheck.carecheck.rates.schedule import RateSchedule

HISTORY = [
    RateHistoryEntry(beneficiary_id=1, rate=16.0, effective_date=date(2025, 6, 1), allowance_monthly_hours=40.0),
    RateHistoryEntry(beneficiary_id=1, rate=15.0, effective_date=date(2025, 1, 1), conventioned_rate=14.0),
]


def _schedule(entries=HISTORY, fallback=12.0):
    return RateSchedule(entries, fallback_rate=fallback, timezone="Europe/Paris")


def test_latest_entry_on_or_before_the_date_wins():
    schedule = _schedule()

    assert schedule.rate_for(date(2025, 5, 31)).billing_rate == 15.0
    assert schedule.rate_for(date(2025, 6, 1)).billing_rate == 16.0
    assert schedule.rate_for(date(2030, 1, 1)).billing_rate == 16.0
    assert schedule.warnings == []


def test_conventioned_rate_defaults_to_billing_rate():
    schedule = _schedule()

    assert schedule.rate_for(date(2025, 3, 1)).conventioned_rate == 14.0
    assert schedule.rate_for(date(2025, 7, 1)).conventioned_rate == 16.0
    assert schedule.rate_for(date(2025, 7, 1)).allowance_monthly_hours == 40.0


def test_date_before_history_uses_fallback_and_warns_once():
    schedule = _schedule()

    first = schedule.rate_for(date(2024, 1, 1))
    schedule.rate_for(date(2024, 1, 1))

    assert first.billing_rate == 12.0
    assert first.is_fallback is True
    assert len(schedule.warnings) == 1


def test_empty_history_always_falls_back():
    schedule = _schedule(entries=[], fallback=15.0)

    rate = schedule.rate_for(date(2025, 6, 8))

    assert rate.billing_rate == 15.0
    assert rate.evening_rate == 18.75
    assert rate.holiday_rate == 30.0


def test_instant_resolves_on_the_local_date():
    schedule = _schedule()

    # 22:30 UTC on May 31st is already June 1st in Paris.
    assert schedule.rate_at(datetime(2025, 5, 31, 22, 30, tzinfo=timezone.utc)).billing_rate == 16.0
    assert schedule.rate_at(datetime(2025, 5, 31, 21, 30, tzinfo=timezone.utc)).billing_rate == 15.0


def test_malformed_entries_are_skipped_with_a_warning():
    entries = HISTORY + [RateHistoryEntry(beneficiary_id=1, rate=0.0, effective_date=date(2025, 9, 1))]

    schedule = _schedule(entries)

    assert schedule.rate_for(date(2025, 10, 1)).billing_rate == 16.0
    assert len(schedule.warnings) == 1
