"""Rolling dashboard periods: today, this week (Sunday start), this month, this year."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Tuple

PERIODS: Tuple[str, ...] = ("today", "week", "month", "year")


@dataclass(frozen=True)
class PeriodBounds:
    now: datetime
    today: datetime
    week: datetime
    month: datetime
    year: datetime

    @classmethod
    def from_now(cls, now: datetime) -> "PeriodBounds":
        """Local-midnight lower bounds, in the timezone `now` carries."""
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
        # weekday(): Monday=0 ... Sunday=6
        days_since_sunday = (now.weekday() + 1) % 7
        return cls(
            now=now,
            today=midnight,
            week=midnight - timedelta(days=days_since_sunday),
            month=midnight.replace(day=1),
            year=midnight.replace(month=1, day=1),
        )

    def start_of(self, period: str) -> datetime:
        if period not in PERIODS:
            raise ValueError(f"unknown period {period!r}")
        return getattr(self, period)

    def classify(self, ts: datetime) -> Tuple[str, ...]:
        """Every period whose bound <= ts <= now. Buckets overlap."""
        if ts > self.now:
            return ()
        return tuple(p for p in PERIODS if self.start_of(p) <= ts)


def empty_period_totals(zero=0) -> Dict[str, float]:
    return {p: zero for p in PERIODS}
