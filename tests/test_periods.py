# tests/test_periods.py
from datetime import datetime, timedelta, timezone

import pytest

from services.periods import PERIODS, PeriodBounds
from tests.helpers import LOCAL_TZ, NOW


def test_bounds_are_local_midnights():
    b = PeriodBounds.from_now(NOW)
    assert b.today == datetime(2026, 10, 14, tzinfo=LOCAL_TZ)
    assert b.week == datetime(2026, 10, 11, tzinfo=LOCAL_TZ)  # Sunday
    assert b.month == datetime(2026, 10, 1, tzinfo=LOCAL_TZ)
    assert b.year == datetime(2026, 1, 1, tzinfo=LOCAL_TZ)


def test_week_starts_today_on_a_sunday():
    sunday = datetime(2026, 10, 11, 8, 0, tzinfo=LOCAL_TZ)
    assert PeriodBounds.from_now(sunday).week == datetime(2026, 10, 11, tzinfo=LOCAL_TZ)


def test_saturday_reaches_back_six_days():
    saturday = datetime(2026, 10, 17, 23, 59, tzinfo=LOCAL_TZ)
    assert PeriodBounds.from_now(saturday).week == datetime(2026, 10, 11, tzinfo=LOCAL_TZ)


@pytest.mark.parametrize(
    "ts, expected",
    [
        (NOW, PERIODS),
        (NOW - timedelta(hours=1), ("today", "week", "month", "year")),
        (datetime(2026, 10, 12, 9, 0, tzinfo=LOCAL_TZ), ("week", "month", "year")),
        (datetime(2026, 10, 2, tzinfo=LOCAL_TZ), ("month", "year")),
        (datetime(2026, 3, 1, tzinfo=LOCAL_TZ), ("year",)),
        (NOW - timedelta(days=400), ()),
        (NOW + timedelta(minutes=1), ()),
    ],
)
def test_classify_fans_out_cumulatively(ts, expected):
    assert PeriodBounds.from_now(NOW).classify(ts) == expected


def test_bounds_are_inclusive():
    b = PeriodBounds.from_now(NOW)
    assert b.classify(b.week) == ("week", "month", "year")


def test_classify_compares_across_timezones():
    b = PeriodBounds.from_now(NOW)
    # 13:30 UTC on the 13th is 00:30 on the 14th at UTC+11
    utc_ts = datetime(2026, 10, 13, 13, 30, tzinfo=timezone.utc)
    assert b.classify(utc_ts) == PERIODS


def test_unknown_period_rejected():
    with pytest.raises(ValueError):
        PeriodBounds.from_now(NOW).start_of("decade")
