"""Plateau and trend-change detection over the smoothed weight series."""

from __future__ import annotations

from typing import Optional, Sequence

from weightinsights.analytics.models import DailyRecord, Plateau, TrendChangePoint
from weightinsights.analytics.smoothing import is_valid


def detect_plateaus(
    records: Sequence[DailyRecord],
    min_duration_days: int,
    rate_threshold: float,
) -> list[Plateau]:
    """Find maximal runs of days whose smoothed weekly rate is near zero.

    A day is flat when its smoothed_weekly_rate is known and
    |rate| < rate_threshold. A run of flat days is reported when it spans at
    least min_duration_days calendar days (inclusive). A run still open at the
    last record is closed there.

    Args:
        records: Processed records in date order
        min_duration_days: Minimum inclusive length of a plateau
        rate_threshold: Absolute weekly rate below which a day is flat

    Returns:
        Plateaus in chronological order
    """
    plateaus: list[Plateau] = []
    if not records or min_duration_days <= 0:
        return plateaus

    run_start: Optional[DailyRecord] = None
    run_end: Optional[DailyRecord] = None

    def close_run() -> None:
        if run_start is None or run_end is None:
            return
        if (run_end.date - run_start.date).days + 1 >= min_duration_days:
            plateaus.append(Plateau(start_date=run_start.date, end_date=run_end.date))

    for record in records:
        rate = record.smoothed_weekly_rate
        flat = is_valid(rate) and abs(rate) < rate_threshold  # type: ignore[arg-type]
        if flat:
            if run_start is None:
                run_start = record
            run_end = record
        elif run_start is not None:
            close_run()
            run_start = run_end = None

    close_run()
    return plateaus


def _endpoint_slope(segment: Sequence[DailyRecord]) -> Optional[float]:
    """(last SMA - first SMA) / elapsed days over the valid points of segment."""
    valid = [r for r in segment if is_valid(r.sma)]
    if len(valid) < 2:
        return None
    first, last = valid[0], valid[-1]
    days = (last.date - first.date).days
    if days <= 0:
        return None
    return (last.sma - first.sma) / days  # type: ignore[operator]


def detect_trend_changes(
    records: Sequence[DailyRecord],
    window_days: int,
    min_slope_diff: float,
) -> list[TrendChangePoint]:
    """Find days where the SMA slope changes by at least min_slope_diff per day.

    For each index i with window_days records on both sides, the slope of
    records[i - window_days : i] is compared with that of
    records[i : i + window_days].

    Args:
        records: Processed records in date order
        window_days: Records in each of the trailing and leading windows
        min_slope_diff: Threshold in kg/day (weekly thresholds divided by 7)

    Returns:
        One TrendChangePoint per qualifying day, magnitude = after - before
    """
    if window_days <= 0 or len(records) < window_days * 2:
        return []

    changes = []
    for i in range(window_days, len(records) - window_days):
        before = _endpoint_slope(records[i - window_days : i])
        after = _endpoint_slope(records[i : i + window_days])
        if before is None or after is None:
            continue
        diff = after - before
        if abs(diff) >= min_slope_diff:
            changes.append(TrendChangePoint(date=records[i].date, magnitude=diff))
    return changes
