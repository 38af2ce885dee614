"""Record builders shared by the test modules."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional, Sequence

from weightinsights.analytics.models import DailyRecord

START = date(2025, 1, 6)  # a Monday


def make_records(
    weights: Sequence[Optional[float]],
    start: date = START,
    intake: Optional[float] = None,
    expenditure: Optional[float] = None,
) -> list[DailyRecord]:
    """One record per consecutive day starting at start."""
    return [
        DailyRecord(
            date=start + timedelta(days=i),
            weight=w,
            calorie_intake=intake,
            expenditure=expenditure,
        )
        for i, w in enumerate(weights)
    ]


def linear_weights(n: int, start_weight: float = 90.0, daily_change: float = -0.1) -> list[float]:
    return [start_weight + daily_change * i for i in range(n)]
