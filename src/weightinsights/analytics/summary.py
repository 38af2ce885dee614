"""Range aggregates and weekly summaries over processed records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional, Sequence

from weightinsights.analytics.models import DailyRecord, WeeklyStats
from weightinsights.analytics.smoothing import is_valid
from weightinsights.analytics.stats import StatsBackend

MIN_DAYS_PER_WEEK = 3


@dataclass
class Coverage:
    """How many days in a range have a value for a field."""

    count: int = 0
    total_days: int = 0
    percentage: float = 0.0


def _in_range(records: Sequence[DailyRecord], start: date, end: date) -> list[DailyRecord]:
    return [r for r in records if start <= r.date <= end]


def average_in_range(
    records: Sequence[DailyRecord],
    field_name: str,
    start: Optional[date],
    end: Optional[date],
    stats: StatsBackend,
) -> Optional[float]:
    """Mean of a record field over [start, end], None if nothing is logged."""
    if start is None or end is None or start > end:
        return None
    values = [getattr(r, field_name) for r in _in_range(records, start, end)]
    return stats.mean([v for v in values if is_valid(v)])


def count_in_range(
    records: Sequence[DailyRecord],
    field_name: str,
    start: Optional[date],
    end: Optional[date],
) -> Coverage:
    if start is None or end is None or start > end:
        return Coverage()
    total_days = (end - start).days + 1
    count = sum(
        1 for r in _in_range(records, start, end) if is_valid(getattr(r, field_name))
    )
    return Coverage(count=count, total_days=total_days, percentage=count / total_days * 100)


def current_rate(records: Sequence[DailyRecord], end: Optional[date]) -> Optional[float]:
    """Latest smoothed weekly rate on or before end."""
    if end is None:
        return None
    for r in reversed(records):
        if r.date <= end and is_valid(r.smoothed_weekly_rate):
            return r.smoothed_weekly_rate
    return None


def volatility(
    records: Sequence[DailyRecord],
    start: Optional[date],
    end: Optional[date],
    stats: StatsBackend,
) -> Optional[float]:
    """Std of weight around the SMA over the range, outliers excluded."""
    if start is None or end is None or start > end:
        return None
    deviations = [
        r.weight - r.sma  # type: ignore[operator]
        for r in _in_range(records, start, end)
        if is_valid(r.weight) and r.sma is not None and not r.is_outlier
    ]
    if len(deviations) < 2:
        return None
    return stats.std_dev(deviations)


def week_start(day: date) -> date:
    """Monday of the week containing day."""
    return day - timedelta(days=day.weekday())


def calculate_weekly_stats(
    records: Sequence[DailyRecord],
    start: Optional[date],
    end: Optional[date],
    stats: StatsBackend,
) -> list[WeeklyStats]:
    """Aggregate records into Monday-started weeks.

    Weeks with fewer than three days of smoothed rate or of net balance are
    dropped.
    """
    in_range = _in_range(records, start, end) if start and end else list(records)

    weeks: dict[date, list[DailyRecord]] = {}
    for r in in_range:
        weeks.setdefault(week_start(r.date), []).append(r)

    def avg(values) -> Optional[float]:
        return stats.mean([v for v in values if is_valid(v)])

    summaries = []
    for monday in sorted(weeks):
        days = sorted(weeks[monday], key=lambda r: r.date)
        rates = [r.smoothed_weekly_rate for r in days if is_valid(r.smoothed_weekly_rate)]
        balances = [r.net_balance for r in days if is_valid(r.net_balance)]
        if len(rates) < MIN_DAYS_PER_WEEK or len(balances) < MIN_DAYS_PER_WEEK:
            continue
        summaries.append(
            WeeklyStats(
                week_key=monday.strftime("%Y-W%W"),
                week_start_date=monday,
                avg_net_cal=stats.mean(balances),
                weekly_rate=stats.mean(rates),
                avg_weight=avg(r.sma if r.sma is not None else r.weight for r in days),
                avg_expenditure=avg(r.expenditure for r in days),
                avg_intake=avg(r.calorie_intake for r in days),
            )
        )
    return summaries


def net_cal_rate_correlation(
    weekly: Sequence[WeeklyStats],
    min_weeks: int,
    stats: StatsBackend,
) -> Optional[float]:
    """Correlation between weekly net calories and weekly rate."""
    valid = [w for w in weekly if is_valid(w.avg_net_cal) and is_valid(w.weekly_rate)]
    if len(valid) < max(min_weeks, 2):
        return None
    return stats.correlation(
        [w.avg_net_cal for w in valid],  # type: ignore[misc]
        [w.weekly_rate for w in valid],  # type: ignore[misc]
    )
