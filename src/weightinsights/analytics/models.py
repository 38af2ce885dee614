"""Data models for daily records and analytics results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


@dataclass
class DailyRecord:
    """One calendar day of logged data plus fields derived by the pipeline.

    Derived fields are always recomputed from the raw ones by
    `weightinsights.analytics.pipeline.process_data`.
    """

    date: date
    weight: Optional[float] = None  # kg
    calorie_intake: Optional[float] = None  # kcal
    expenditure: Optional[float] = None  # kcal, external estimate (e.g. Google Fit)
    body_fat_percent: Optional[float] = None

    # Derived
    net_balance: Optional[float] = None
    lbm: Optional[float] = None
    fm: Optional[float] = None
    lbm_sma: Optional[float] = None
    fm_sma: Optional[float] = None
    sma: Optional[float] = None
    ema: Optional[float] = None
    std_dev: Optional[float] = None
    lower_bound: Optional[float] = None
    upper_bound: Optional[float] = None
    is_outlier: bool = False
    rolling_volatility: Optional[float] = None
    daily_sma_rate: Optional[float] = None
    tdee_trend: Optional[float] = None
    adaptive_tdee: Optional[float] = None
    smoothed_weekly_rate: Optional[float] = None
    tdee_difference: Optional[float] = None
    avg_tdee_difference: Optional[float] = None
    rate_moving_average: Optional[float] = None


@dataclass
class RegressionPoint:
    """Fitted value and confidence band at one date."""

    date: date
    value: Optional[float]
    regression_value: Optional[float]
    lower_ci: Optional[float] = None
    upper_ci: Optional[float] = None


@dataclass
class RegressionResult:
    """Least-squares fit over a window of daily values.

    Attributes:
        slope: kg/day, None when undefined
        intercept: value at the first point's date
        points: one entry per input point, in date order
        t_value: quantile used for the band, None when no band was computed
        t_approximate: True when t_value is the 1.96 normal approximation
    """

    slope: Optional[float] = None
    intercept: Optional[float] = None
    points: list[RegressionPoint] = field(default_factory=list)
    t_value: Optional[float] = None
    t_approximate: bool = False

    @property
    def weekly_slope(self) -> Optional[float]:
        return self.slope * 7 if self.slope is not None else None


@dataclass
class Plateau:
    """Inclusive run of days with near-zero smoothed rate."""

    start_date: date
    end_date: date

    @property
    def duration_days(self) -> int:
        return (self.end_date - self.start_date).days + 1


@dataclass
class TrendChangePoint:
    """Day where the leading slope differs from the trailing slope.

    magnitude is slope_after - slope_before in kg/day.
    """

    date: date
    magnitude: float


@dataclass
class Goal:
    """User goal; every field is optional."""

    weight: Optional[float] = None
    date: Optional[date] = None
    target_rate: Optional[float] = None  # kg/week


@dataclass
class Annotation:
    """User note pinned to a date."""

    id: str
    date: date
    text: str = ""
    type: str = "point"  # 'point' or 'range'


@dataclass
class WeeklyStats:
    """Aggregates over one Monday-started week."""

    week_key: str
    week_start_date: date
    avg_net_cal: Optional[float]
    weekly_rate: Optional[float]
    avg_weight: Optional[float]
    avg_expenditure: Optional[float]
    avg_intake: Optional[float]


class GoalStatus(str, Enum):
    ACHIEVED = "achieved"
    ESTIMATED = "estimated"
    FLAT = "flat"
    TRENDING_AWAY = "trending_away"
    UNKNOWN = "unknown"


@dataclass
class TimeToGoal:
    """Projected time until the goal weight is reached."""

    status: GoalStatus
    weeks: Optional[float] = None

    @property
    def label(self) -> str:
        if self.status is GoalStatus.ACHIEVED:
            return "Goal Achieved!"
        if self.status is GoalStatus.FLAT:
            return "Trend flat"
        if self.status is GoalStatus.TRENDING_AWAY:
            return "Trending away"
        if self.status is GoalStatus.UNKNOWN or self.weeks is None:
            return "N/A"

        weeks = self.weeks
        if weeks < 1:
            return f"~{weeks * 7:.0f} days"
        if weeks < 8:
            return f"~{round(weeks)} week{'s' if weeks >= 1.5 else ''}"
        months = weeks / (365.25 / 12 / 7)
        if months < 18:
            return f"~{round(months)} month{'s' if months >= 1.5 else ''}"
        return f"~{months / 12:.1f} years"
