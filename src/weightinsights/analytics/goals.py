"""Goal projections and TDEE arithmetic.

Weight change is converted to energy with kcals_per_kg (7700 kcal per kg of
body mass by default):

    daily balance = weekly_change / 7 * kcals_per_kg
    TDEE          = average intake - daily balance
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from weightinsights.analytics.models import DailyRecord, GoalStatus, TimeToGoal
from weightinsights.analytics.smoothing import is_valid

# Below this |kg/week| the trend is treated as flat for goal projection.
FLAT_RATE_THRESHOLD = 0.01

# |current - target| kg/week counted as on target.
ON_TARGET_TOLERANCE = 0.03

SUGGESTED_INTAKE_HALF_WIDTH = 100


@dataclass
class RateFeedback:
    """Comparison of the current rate with the user's target rate."""

    text: str
    level: str  # '', 'good' or 'warn'


def deficit_from_trend(weekly_change: Optional[float], kcals_per_kg: float) -> Optional[float]:
    """Daily energy balance implied by a weekly weight change (negative = deficit)."""
    if not is_valid(weekly_change):
        return None
    return weekly_change / 7 * kcals_per_kg  # type: ignore[operator]


def tdee_from_trend(
    avg_intake: Optional[float],
    weekly_change: Optional[float],
    kcals_per_kg: float,
) -> Optional[float]:
    """TDEE implied by average intake and the observed weekly change."""
    balance = deficit_from_trend(weekly_change, kcals_per_kg)
    if balance is None or not is_valid(avg_intake):
        return None
    return avg_intake - balance  # type: ignore[operator]


def required_rate_for_goal(
    current_weight: Optional[float],
    goal_weight: Optional[float],
    goal_date: Optional[date],
    today: date,
) -> Optional[float]:
    """Weekly rate needed to reach goal_weight by goal_date.

    Returns None when an input is missing or goal_date is not after today.
    """
    if not is_valid(current_weight) or not is_valid(goal_weight) or goal_date is None:
        return None
    days_remaining = (goal_date - today).days
    if days_remaining <= 0:
        return None
    return (goal_weight - current_weight) / (days_remaining / 7)  # type: ignore[operator]


def estimate_time_to_goal(
    current_weight: Optional[float],
    goal_weight: Optional[float],
    weekly_rate: Optional[float],
    achieved: bool = False,
    tolerance: Optional[float] = None,
) -> TimeToGoal:
    """Project how long the current weekly rate takes to reach goal_weight.

    A current weight within tolerance of goal_weight counts as achieved.

    Example:
        >>> estimate_time_to_goal(70, 65, -0.5).weeks
        10.0
    """
    if achieved:
        return TimeToGoal(GoalStatus.ACHIEVED)
    if (
        tolerance is not None
        and is_valid(current_weight)
        and is_valid(goal_weight)
        and abs(goal_weight - current_weight) <= tolerance  # type: ignore[operator]
    ):
        return TimeToGoal(GoalStatus.ACHIEVED)
    if not (is_valid(current_weight) and is_valid(goal_weight) and is_valid(weekly_rate)):
        return TimeToGoal(GoalStatus.UNKNOWN)

    difference = goal_weight - current_weight  # type: ignore[operator]
    if abs(weekly_rate) < FLAT_RATE_THRESHOLD:  # type: ignore[arg-type]
        return TimeToGoal(GoalStatus.FLAT)
    if (weekly_rate > 0 and difference < 0) or (weekly_rate < 0 and difference > 0):  # type: ignore[operator]
        return TimeToGoal(GoalStatus.TRENDING_AWAY)

    weeks = difference / weekly_rate  # type: ignore[operator]
    if weeks <= 0:
        return TimeToGoal(GoalStatus.UNKNOWN)
    return TimeToGoal(GoalStatus.ESTIMATED, weeks=weeks)


def find_goal_achieved_date(
    records: Sequence[DailyRecord],
    goal_weight: Optional[float],
    tolerance: float,
) -> Optional[date]:
    """First date whose SMA lies within tolerance of goal_weight."""
    if not is_valid(goal_weight):
        return None
    for r in records:
        if r.sma is not None and abs(goal_weight - r.sma) <= tolerance:  # type: ignore[operator]
            return r.date
    return None


def required_calorie_adjustment(
    target_rate: Optional[float],
    current_rate: Optional[float],
    kcals_per_kg: float,
) -> Optional[float]:
    """Daily kcal change that would move current_rate onto target_rate."""
    if not is_valid(target_rate) or not is_valid(current_rate):
        return None
    return (target_rate - current_rate) / 7 * kcals_per_kg  # type: ignore[operator]


def suggested_intake_range(
    baseline_tdee: Optional[float],
    required_rate: Optional[float],
    kcals_per_kg: float,
) -> Optional[tuple[int, int]]:
    """Intake band (+/- 100 kcal) that would produce required_rate."""
    balance = deficit_from_trend(required_rate, kcals_per_kg)
    if balance is None or not is_valid(baseline_tdee):
        return None
    target = baseline_tdee + balance  # type: ignore[operator]
    return (
        round(target - SUGGESTED_INTAKE_HALF_WIDTH),
        round(target + SUGGESTED_INTAKE_HALF_WIDTH),
    )


def target_rate_feedback(
    current_rate: Optional[float],
    target_rate: Optional[float],
) -> RateFeedback:
    if not is_valid(current_rate) or not is_valid(target_rate):
        return RateFeedback("N/A", "")
    diff = current_rate - target_rate  # type: ignore[operator]
    if abs(diff) < ON_TARGET_TOLERANCE:
        return RateFeedback("On Target", "good")
    if diff > 0:
        return RateFeedback(f"Faster (+{diff:.2f})", "warn")
    return RateFeedback(f"Slower ({diff:.2f})", "warn")
