"""Read helpers over a state snapshot."""

from __future__ import annotations

from datetime import date
from typing import Optional

from weightinsights.store.state import AppState, DateRange


def select_sort_options(state: AppState) -> dict[str, str]:
    return {"column_key": state.sort_column_key, "direction": state.sort_direction}


def select_effective_regression_range(state: AppState) -> DateRange:
    """Date range the regression line should cover.

    The interactive range wins when both ends are set. Otherwise the
    analysis range is used, starting at the trend-config start date when
    that date lies inside it.
    """
    interactive = state.interactive_regression_range
    if interactive.is_complete:
        return DateRange(interactive.start, interactive.end)

    analysis = state.analysis_range
    if not analysis.is_complete:
        return DateRange()

    trend_start: Optional[date] = state.trend_config.start_date
    start = analysis.start
    if trend_start is not None and analysis.start <= trend_start <= analysis.end:  # type: ignore[operator]
        start = trend_start
    return DateRange(start, analysis.end)


def select_latest_sma(state: AppState) -> Optional[float]:
    for r in reversed(state.processed_data):
        if r.sma is not None:
            return r.sma
    return None


def select_latest_weight(state: AppState) -> Optional[float]:
    for r in reversed(state.processed_data):
        if r.weight is not None:
            return r.weight
    return None


def select_is_goal_achieved(state: AppState, tolerance: float) -> bool:
    """Goal reached, per the stored achieved date or the latest SMA/weight.

    tolerance is the same kg band used to find the goal-achieved date.
    """
    if state.goal.weight is None or not state.processed_data:
        return False
    if state.goal_achieved_date is not None:
        return True
    reference = select_latest_sma(state)
    if reference is None:
        reference = select_latest_weight(state)
    if reference is None:
        return False
    return abs(state.goal.weight - reference) <= tolerance
