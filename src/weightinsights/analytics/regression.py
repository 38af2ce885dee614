"""Ordinary least squares with a confidence band for the mean response.

For n points (x = days since the first point, y = value) and df = n - 2:

    SEE  = sqrt(SSE / df)
    Sxx  = sum((x - x_mean)^2)
    SE_i = SEE * sqrt(1/n + (x_i - x_mean)^2 / Sxx)
    CI_i = y_hat_i -/+ t(1 - alpha/2, df) * SE_i

When df <= 0 the fitted values are still reported but the band is None.
"""

from __future__ import annotations

import logging
import math
from datetime import date, timedelta
from typing import Optional, Sequence

import numpy as np

from weightinsights.analytics.models import DailyRecord, RegressionPoint, RegressionResult
from weightinsights.analytics.smoothing import is_valid
from weightinsights.analytics.stats import StatsBackend

logger = logging.getLogger(__name__)


def linear_regression_with_ci(
    points: Sequence[tuple[date, float]],
    alpha: float,
    stats: StatsBackend,
) -> RegressionResult:
    """Fit value against elapsed days and compute a per-point confidence band.

    Args:
        points: (date, value) pairs; sorted here by date
        alpha: Two-sided significance level (0.05 gives a 95% band)
        stats: Statistics backend supplying the t-quantile

    Returns:
        RegressionResult whose points cover exactly the input points. With a
        single point, or when every point shares one date, slope is None and
        the fitted value is the mean of y.
    """
    if not points:
        return RegressionResult()

    ordered = sorted(points, key=lambda p: p[0])
    first = ordered[0][0]
    x = np.array([(d - first).days for d, _ in ordered], dtype=float)
    y = np.array([v for _, v in ordered], dtype=float)
    n = len(ordered)

    x_mean = float(x.mean())
    y_mean = float(y.mean())
    sxx = float(((x - x_mean) ** 2).sum())

    if n < 2 or sxx == 0:
        logger.debug("Regression slope undefined (n=%d, Sxx=%s)", n, sxx)
        return RegressionResult(
            slope=None,
            intercept=y_mean,
            points=[
                RegressionPoint(date=d, value=v, regression_value=y_mean) for d, v in ordered
            ],
        )

    slope = float(((x - x_mean) * (y - y_mean)).sum() / sxx)
    intercept = y_mean - slope * x_mean
    y_hat = slope * x + intercept

    df = n - 2
    if df <= 0:
        return RegressionResult(
            slope=slope,
            intercept=intercept,
            points=[
                RegressionPoint(date=d, value=v, regression_value=float(fit))
                for (d, v), fit in zip(ordered, y_hat)
            ],
        )

    sse = float(((y - y_hat) ** 2).sum())
    see = math.sqrt(sse / df)
    t_value = stats.t_quantile(1 - alpha / 2, df)

    result_points = []
    for (d, v), xi, fit in zip(ordered, x, y_hat):
        se_mean = see * math.sqrt(1 / n + (xi - x_mean) ** 2 / sxx)
        margin = t_value * se_mean
        result_points.append(
            RegressionPoint(
                date=d,
                value=v,
                regression_value=float(fit),
                lower_ci=float(fit - margin),
                upper_ci=float(fit + margin),
            )
        )

    return RegressionResult(
        slope=slope,
        intercept=intercept,
        points=result_points,
        t_value=t_value,
        t_approximate=stats.approximate,
    )


def calculate_linear_regression(
    records: Sequence[DailyRecord],
    start: Optional[date],
    end: Optional[date],
    alpha: float,
    min_points: int,
    stats: StatsBackend,
) -> RegressionResult:
    """Regress measured weight over [start, end], ignoring outliers.

    Returns an empty result when fewer than min_points usable days remain.
    """
    usable = [
        (r.date, float(r.weight))  # type: ignore[arg-type]
        for r in records
        if is_valid(r.weight)
        and not r.is_outlier
        and (start is None or r.date >= start)
        and (end is None or r.date <= end)
    ]
    if len(usable) < min_points:
        logger.debug("Regression skipped: %d points < %d", len(usable), min_points)
        return RegressionResult()
    return linear_regression_with_ci(usable, alpha, stats)


def trend_weight(
    start_date: Optional[date],
    initial_weight: Optional[float],
    weekly_change: Optional[float],
    target_date: Optional[date],
) -> Optional[float]:
    """Weight on target_date along a straight manual trend line."""
    if start_date is None or target_date is None:
        return None
    if not is_valid(initial_weight) or not is_valid(weekly_change):
        return None
    weeks = (target_date - start_date) / timedelta(weeks=1)
    return initial_weight + weeks * weekly_change  # type: ignore[operator]
