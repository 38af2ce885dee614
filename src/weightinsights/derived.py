"""Derived data orchestration.

The store never calls analytics itself. `StatsUpdater` listens for the
channels that invalidate derived data, reads a snapshot, runs
`calculate_derived_data` and dispatches the results back as SET_* actions.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from typing import Any, Callable, Iterable, Optional

from weightinsights.analytics.detectors import detect_plateaus, detect_trend_changes
from weightinsights.analytics.goals import (
    deficit_from_trend,
    estimate_time_to_goal,
    find_goal_achieved_date,
    required_calorie_adjustment,
    required_rate_for_goal,
    suggested_intake_range,
    target_rate_feedback,
    tdee_from_trend,
)
from weightinsights.analytics.models import (
    DailyRecord,
    Plateau,
    RegressionResult,
    TrendChangePoint,
    WeeklyStats,
)
from weightinsights.analytics.pipeline import normalize_records, process_data
from weightinsights.analytics.regression import calculate_linear_regression
from weightinsights.analytics.stats import StatsBackend
from weightinsights.analytics.summary import (
    average_in_range,
    calculate_weekly_stats,
    count_in_range,
    current_rate,
    net_cal_rate_correlation,
    volatility,
)
from weightinsights.config.settings import Settings
from weightinsights.store.actions import Action, ActionType, Channel
from weightinsights.store.selectors import select_effective_regression_range
from weightinsights.store.state import AppState
from weightinsights.store.store import Store

logger = logging.getLogger(__name__)

TRIGGER_CHANNELS = (
    Channel.ANALYSIS_RANGE_CHANGED,
    Channel.INTERACTIVE_REGRESSION_RANGE_CHANGED,
    Channel.TREND_CONFIG_CHANGED,
    Channel.INITIALIZATION_COMPLETE,
)


@dataclass
class DerivedData:
    """Everything StatsUpdater writes back into the store."""

    filtered_data: list[DailyRecord] = field(default_factory=list)
    weekly_summary_data: list[WeeklyStats] = field(default_factory=list)
    correlation_scatter_data: list[WeeklyStats] = field(default_factory=list)
    plateaus: list[Plateau] = field(default_factory=list)
    trend_change_points: list[TrendChangePoint] = field(default_factory=list)
    goal_achieved_date: Optional[date] = None
    regression_result: RegressionResult = field(default_factory=RegressionResult)
    display_stats: dict[str, Any] = field(default_factory=dict)


def _all_time_stats(state: AppState) -> dict[str, Any]:
    weighed = [r for r in state.raw_data if r.weight is not None]
    stats: dict[str, Any] = {
        "starting_weight": None,
        "current_weight": None,
        "max_weight": None,
        "max_weight_date": None,
        "min_weight": None,
        "min_weight_date": None,
        "total_change": None,
    }
    if weighed:
        heaviest = max(weighed, key=lambda r: r.weight)  # type: ignore[arg-type,return-value]
        lightest = min(weighed, key=lambda r: r.weight)  # type: ignore[arg-type,return-value]
        stats.update(
            starting_weight=weighed[0].weight,
            current_weight=weighed[-1].weight,
            max_weight=heaviest.weight,
            max_weight_date=heaviest.date,
            min_weight=lightest.weight,
            min_weight_date=lightest.date,
            total_change=weighed[-1].weight - weighed[0].weight,  # type: ignore[operator]
        )

    latest_sma = next((r.sma for r in reversed(state.processed_data) if r.sma is not None), None)
    stats["current_sma"] = latest_sma if latest_sma is not None else stats["current_weight"]
    return stats


def _body_composition_stats(processed: list[DailyRecord]) -> dict[str, Any]:
    lbm = [r.lbm_sma for r in processed if r.lbm_sma is not None]
    fm = [r.fm_sma for r in processed if r.fm_sma is not None]
    return {
        "starting_lbm": lbm[0] if lbm else None,
        "current_lbm_sma": lbm[-1] if lbm else None,
        "total_lbm_change": lbm[-1] - lbm[0] if lbm else None,
        "current_fm_sma": fm[-1] if fm else None,
        "total_fm_change": fm[-1] - fm[0] if fm else None,
    }


def calculate_derived_data(
    state: AppState,
    settings: Settings,
    stats: StatsBackend,
    today: Optional[date] = None,
) -> DerivedData:
    """Compute every derived collection and display statistic for a snapshot.

    Args:
        state: Snapshot from Store.get_state()
        settings: Analysis and detector configuration
        stats: Statistics backend
        today: Reference date for goal-date arithmetic (defaults to today)

    Returns:
        DerivedData ready to dispatch
    """
    today = today or date.today()
    cfg = settings.analysis
    profile = settings.detectors
    processed = state.processed_data
    window = state.analysis_range
    goal = state.goal

    results = DerivedData()
    display = results.display_stats
    display.update(_all_time_stats(state))
    display.update(_body_composition_stats(processed))

    regression_slope_weekly = None
    rate_now = None
    avg_tdee_adaptive = avg_tdee_wgt_change = avg_expenditure = None

    if window.is_complete and processed:
        start, end = window.start, window.end
        results.filtered_data = [r for r in processed if start <= r.date <= end]  # type: ignore[operator]
        results.plateaus = detect_plateaus(
            processed, profile.plateau_min_duration_days, profile.plateau_rate_threshold_kg_week
        )
        results.trend_change_points = detect_trend_changes(
            processed,
            profile.trend_change_window_days,
            profile.trend_change_min_slope_diff_daily,
        )

        if results.filtered_data:
            weekly = calculate_weekly_stats(processed, start, end, stats)
            results.weekly_summary_data = weekly
            results.correlation_scatter_data = [
                w for w in weekly if w.avg_net_cal is not None and w.weekly_rate is not None
            ]
            rate_now = current_rate(processed, end)
            latest_vol = next(
                (
                    r.rolling_volatility
                    for r in reversed(results.filtered_data)
                    if r.rolling_volatility is not None
                ),
                None,
            )
            avg_expenditure = average_in_range(processed, "expenditure", start, end, stats)
            avg_tdee_adaptive = average_in_range(processed, "adaptive_tdee", start, end, stats)
            display.update(
                net_cal_rate_correlation=net_cal_rate_correlation(
                    weekly, cfg.min_weeks_for_correlation, stats
                ),
                current_weekly_rate=rate_now,
                volatility=volatility(processed, start, end, stats),
                rolling_volatility=latest_vol,
                avg_intake=average_in_range(processed, "calorie_intake", start, end, stats),
                avg_expenditure=avg_expenditure,
                avg_net_balance=average_in_range(processed, "net_balance", start, end, stats),
                avg_tdee_difference=average_in_range(
                    processed, "avg_tdee_difference", start, end, stats
                ),
                avg_tdee_adaptive=avg_tdee_adaptive,
                weight_data_consistency=asdict(count_in_range(processed, "weight", start, end)),
                calorie_data_consistency=asdict(
                    count_in_range(processed, "calorie_intake", start, end)
                ),
            )

            reg_range = select_effective_regression_range(state)
            if reg_range.is_complete:
                results.regression_result = calculate_linear_regression(
                    processed,
                    reg_range.start,
                    reg_range.end,
                    cfg.confidence_alpha,
                    cfg.min_points_for_regression,
                    stats,
                )
                regression_slope_weekly = results.regression_result.weekly_slope
            display["regression_slope_weekly"] = regression_slope_weekly
            display["regression_start_date"] = reg_range.start
            display["regression_ci_approximate"] = results.regression_result.t_approximate

            trend_for_tdee = (
                regression_slope_weekly if regression_slope_weekly is not None else rate_now
            )
            avg_tdee_wgt_change = tdee_from_trend(
                display["avg_intake"], trend_for_tdee, cfg.kcals_per_kg
            )
            display["avg_tdee_wgt_change"] = avg_tdee_wgt_change
            display["estimated_deficit_surplus"] = deficit_from_trend(
                trend_for_tdee, cfg.kcals_per_kg
            )
            results.goal_achieved_date = find_goal_achieved_date(
                results.filtered_data, goal.weight, cfg.goal_tolerance_kg
            )

    # Goal projections
    reference_weight = display["current_sma"]
    trend_for_goal = regression_slope_weekly if regression_slope_weekly is not None else rate_now
    achieved = results.goal_achieved_date is not None

    display["target_weight"] = goal.weight
    display["target_rate"] = goal.target_rate
    display["target_date"] = goal.date
    display["weight_to_goal"] = (
        goal.weight - reference_weight
        if goal.weight is not None and reference_weight is not None
        else None
    )
    display["estimated_time_to_goal"] = estimate_time_to_goal(
        reference_weight, goal.weight, trend_for_goal, achieved, cfg.goal_tolerance_kg
    )
    required_rate = (
        required_rate_for_goal(reference_weight, goal.weight, goal.date, today)
        if goal.date is not None and not achieved
        else None
    )
    display["required_rate_for_goal"] = required_rate

    baseline_tdee = next(
        (v for v in (avg_tdee_adaptive, avg_tdee_wgt_change, avg_expenditure) if v is not None),
        None,
    )
    display["required_calorie_adjustment"] = (
        required_calorie_adjustment(goal.target_rate, trend_for_goal, cfg.kcals_per_kg)
        if baseline_tdee is not None
        else None
    )
    display["required_net_calories"] = (
        deficit_from_trend(required_rate, cfg.kcals_per_kg) if baseline_tdee is not None else None
    )
    display["suggested_intake_range"] = suggested_intake_range(
        baseline_tdee, required_rate, cfg.kcals_per_kg
    )
    display["target_rate_feedback"] = target_rate_feedback(trend_for_goal, goal.target_rate)

    return results


class StatsUpdater:
    """Recomputes derived data whenever a trigger channel fires.

    Triggers arriving while an update is running (because the update's own
    dispatches fire channels) are queued and handled once it finishes.
    """

    def __init__(
        self,
        store: Store,
        settings: Settings,
        stats: StatsBackend,
        today: Optional[Callable[[], date]] = None,
    ) -> None:
        self.store = store
        self.settings = settings
        self.stats = stats
        self._today = today or date.today
        self._running = False
        self._pending = False
        self._unsubscribers: list[Callable[[], None]] = []

    def start(self) -> None:
        for channel in TRIGGER_CHANNELS:
            self._unsubscribers.append(
                self.store.subscribe_to_channel(channel, self._on_trigger)
            )

    def stop(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def _on_trigger(self, payload: Any) -> None:
        self._pending = True
        if self._running:
            return
        self._running = True
        try:
            while self._pending:
                self._pending = False
                self.update()
        finally:
            self._running = False

    def update(self) -> None:
        """Read the current state, compute derived data and dispatch it."""
        snapshot = self.store.get_state()
        if not snapshot.processed_data:
            logger.warning("Skipping stats update: no processed data")
            return

        derived = calculate_derived_data(snapshot, self.settings, self.stats, self._today())
        for action_type, payload in (
            (ActionType.SET_FILTERED_DATA, derived.filtered_data),
            (ActionType.SET_PLATEAUS, derived.plateaus),
            (ActionType.SET_TREND_CHANGES, derived.trend_change_points),
            (ActionType.SET_REGRESSION_RESULT, derived.regression_result),
            (ActionType.SET_WEEKLY_SUMMARY, derived.weekly_summary_data),
            (ActionType.SET_CORRELATION_DATA, derived.correlation_scatter_data),
            (ActionType.SET_GOAL_ACHIEVED_DATE, derived.goal_achieved_date),
            (ActionType.SET_DISPLAY_STATS, derived.display_stats),
        ):
            self.store.dispatch(Action(action_type, payload))


def default_analysis_range(records: list[DailyRecord], months: int) -> tuple[date, date]:
    """Last `months` (30-day) months of data, clipped to the first record."""
    first, last = records[0].date, records[-1].date
    start = max(first, last - timedelta(days=30 * months))
    return start, last


def initialize_dashboard(
    store: Store,
    raw_records: Iterable[DailyRecord],
    settings: Settings,
    stats: StatsBackend,
    loaders: Iterable[Callable[[Store], None]] = (),
) -> None:
    """Run the startup sequence against store.

    loaders are persistence collaborators (goal, annotations) that dispatch
    their own LOAD_* actions.

    Raises:
        Exception: Whatever a step raised, after INITIALIZATION_FAILED is
            dispatched
    """
    store.dispatch(Action(ActionType.INITIALIZE_START))
    try:
        raw = normalize_records(raw_records)
        processed = process_data(raw, settings.analysis, stats)
        store.dispatch(
            Action(
                ActionType.SET_INITIAL_DATA,
                {"raw_data": raw, "processed_data": processed},
            )
        )
        for load in loaders:
            load(store)
        store.dispatch(Action(ActionType.SET_THEME, settings.view.theme))
        if processed:
            start, end = default_analysis_range(processed, settings.view.initial_view_months)
            store.dispatch(Action(ActionType.SET_ANALYSIS_RANGE, {"start": start, "end": end}))
        store.dispatch(Action(ActionType.INITIALIZATION_COMPLETE))
    except Exception:
        logger.exception("Dashboard initialization failed")
        store.dispatch(Action(ActionType.INITIALIZATION_FAILED))
        raise
