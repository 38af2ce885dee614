"""Time-series analytics for the daily weight and calorie log.

Every function in this package is pure: inputs in, new values out. Callers
dispatch the results into the store.

Key components:
- Smoothing (SMA with bands, EMA, outliers, rolling volatility)
- Processing pipeline (rates, TDEE from trend, adaptive TDEE)
- Regression with confidence band
- Plateau and trend-change detection
- Goal and TDEE arithmetic, weekly summaries
"""

from __future__ import annotations

from weightinsights.analytics.detectors import detect_plateaus, detect_trend_changes
from weightinsights.analytics.goals import estimate_time_to_goal, required_rate_for_goal
from weightinsights.analytics.models import (
    Annotation,
    DailyRecord,
    Goal,
    GoalStatus,
    Plateau,
    RegressionPoint,
    RegressionResult,
    TimeToGoal,
    TrendChangePoint,
    WeeklyStats,
)
from weightinsights.analytics.pipeline import process_data
from weightinsights.analytics.regression import linear_regression_with_ci
from weightinsights.analytics.smoothing import exponential_average, rolling_average
from weightinsights.analytics.stats import (
    FallbackStats,
    ScipyStats,
    StatsBackend,
    make_stats_backend,
)

__all__ = [
    "Annotation",
    "DailyRecord",
    "FallbackStats",
    "Goal",
    "GoalStatus",
    "Plateau",
    "RegressionPoint",
    "RegressionResult",
    "ScipyStats",
    "StatsBackend",
    "TimeToGoal",
    "TrendChangePoint",
    "WeeklyStats",
    "detect_plateaus",
    "detect_trend_changes",
    "estimate_time_to_goal",
    "exponential_average",
    "linear_regression_with_ci",
    "make_stats_backend",
    "process_data",
    "required_rate_for_goal",
    "rolling_average",
]
