"""The single pure reducer: (state, action) -> next state.

Each action type has exactly one handler. A handler receives a deep copy of
the current state and the raw payload and edits the copy in place. Payloads
are coerced leniently: unparseable dates become None and missing keys keep
their previous values.
"""

from __future__ import annotations

import copy
import logging
import math
import uuid
from dataclasses import fields
from datetime import date, datetime
from typing import Any, Callable, Mapping, Optional

from weightinsights.analytics.models import Annotation, Goal, RegressionResult
from weightinsights.store.actions import Action, ActionType
from weightinsights.store.state import AppState, DateRange, TrendConfig, ZoomTransform

logger = logging.getLogger(__name__)

Handler = Callable[[AppState, Any], None]


def coerce_date(value: Any) -> Optional[date]:
    """Accept a date, datetime or ISO 'YYYY-MM-DD' string; anything else is None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip().replace("/", "-")[:10])
        except ValueError:
            return None
    return None


def coerce_number(value: Any) -> Optional[float]:
    """Finite float from a number or numeric string; anything else is None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _as_mapping(payload: Any) -> Mapping:
    return payload if isinstance(payload, Mapping) else {}


def _as_list(payload: Any) -> list:
    return list(payload) if isinstance(payload, (list, tuple)) else []


def coerce_annotation(value: Any) -> Optional[Annotation]:
    """Annotation from an instance or a dict with a parseable date, else None."""
    if isinstance(value, Annotation):
        return value
    if not isinstance(value, Mapping):
        return None
    day = coerce_date(value.get("date"))
    if day is None:
        return None
    return Annotation(
        id=str(value.get("id") or uuid.uuid4().hex),
        date=day,
        text=str(value.get("text") or ""),
        type="range" if value.get("type") == "range" else "point",
    )


def _merge_range(current: DateRange, payload: Any) -> DateRange:
    if isinstance(payload, DateRange):
        updates = {"start": payload.start, "end": payload.end}
    else:
        updates = _as_mapping(payload)
    start = updates["start"] if "start" in updates else current.start
    end = updates["end"] if "end" in updates else current.end
    return DateRange(start=coerce_date(start), end=coerce_date(end))


def _reset_derived(state: AppState) -> None:
    fresh = AppState()
    for name in (
        "raw_data",
        "processed_data",
        "filtered_data",
        "weekly_summary_data",
        "correlation_scatter_data",
        "plateaus",
        "trend_change_points",
        "goal_achieved_date",
        "regression_result",
        "analysis_range",
        "interactive_regression_range",
        "display_stats",
    ):
        setattr(state, name, getattr(fresh, name))


def _initialize_start(state: AppState, payload: Any) -> None:
    state.is_initialized = False
    _reset_derived(state)


def _set_initial_data(state: AppState, payload: Any) -> None:
    data = _as_mapping(payload)
    state.raw_data = _as_list(data.get("raw_data"))
    state.processed_data = _as_list(data.get("processed_data"))


def _set_processed_data(state: AppState, payload: Any) -> None:
    state.processed_data = _as_list(payload)


def _set_filtered_data(state: AppState, payload: Any) -> None:
    state.filtered_data = _as_list(payload)


def _set_weekly_summary(state: AppState, payload: Any) -> None:
    state.weekly_summary_data = _as_list(payload)


def _set_correlation_data(state: AppState, payload: Any) -> None:
    state.correlation_scatter_data = _as_list(payload)


def _set_regression_result(state: AppState, payload: Any) -> None:
    state.regression_result = (
        payload if isinstance(payload, RegressionResult) else RegressionResult()
    )


def _load_goal(state: AppState, payload: Any) -> None:
    if isinstance(payload, Goal):
        updates: Mapping = {f.name: getattr(payload, f.name) for f in fields(Goal)}
    else:
        updates = _as_mapping(payload)
    goal = state.goal
    if "weight" in updates:
        goal.weight = coerce_number(updates["weight"])
    if "date" in updates:
        goal.date = coerce_date(updates["date"])
    if "target_rate" in updates:
        goal.target_rate = coerce_number(updates["target_rate"])


def _load_annotations(state: AppState, payload: Any) -> None:
    annotations = [coerce_annotation(a) for a in _as_list(payload)]
    state.annotations = [a for a in annotations if a is not None]


def _add_annotation(state: AppState, payload: Any) -> None:
    annotation = coerce_annotation(payload)
    if annotation is None:
        logger.warning("Ignoring invalid annotation: %r", payload)
        return
    state.annotations = [*state.annotations, annotation]


def _delete_annotation(state: AppState, payload: Any) -> None:
    if isinstance(payload, Annotation):
        target = payload.id
    elif isinstance(payload, Mapping):
        target = payload.get("id")
    else:
        target = payload
    state.annotations = [a for a in state.annotations if a.id != target]


def _set_plateaus(state: AppState, payload: Any) -> None:
    state.plateaus = _as_list(payload)


def _set_trend_changes(state: AppState, payload: Any) -> None:
    state.trend_change_points = _as_list(payload)


def _set_goal_achieved_date(state: AppState, payload: Any) -> None:
    state.goal_achieved_date = payload if isinstance(payload, date) else None


def _set_analysis_range(state: AppState, payload: Any) -> None:
    state.analysis_range = _merge_range(state.analysis_range, payload)


def _set_interactive_regression_range(state: AppState, payload: Any) -> None:
    state.interactive_regression_range = _merge_range(state.interactive_regression_range, payload)


def _set_theme(state: AppState, payload: Any) -> None:
    state.current_theme = payload


def _toggle_series_visibility(state: AppState, payload: Any) -> None:
    data = _as_mapping(payload)
    series_id = data.get("series_id")
    if series_id in state.series_visibility:
        state.series_visibility[series_id] = bool(data.get("is_visible"))
    else:
        logger.warning("Unknown series id: %r", series_id)


def _set_highlighted_date(state: AppState, payload: Any) -> None:
    state.highlighted_date = coerce_date(payload)


def _set_pinned_tooltip(state: AppState, payload: Any) -> None:
    state.pinned_tooltip_data = payload


def _set_active_hover_data(state: AppState, payload: Any) -> None:
    state.active_hover_data = payload


def _set_last_zoom_transform(state: AppState, payload: Any) -> None:
    if isinstance(payload, ZoomTransform):
        state.last_zoom_transform = payload
        return
    data = _as_mapping(payload)
    k, x, y = (coerce_number(data.get(key)) for key in ("k", "x", "y"))
    if k is None or x is None or y is None:
        state.last_zoom_transform = None
    else:
        state.last_zoom_transform = ZoomTransform(k=k, x=x, y=y)


def _set_sort_options(state: AppState, payload: Any) -> None:
    data = _as_mapping(payload)
    if data.get("column_key") is not None:
        state.sort_column_key = data["column_key"]
    if data.get("direction") is not None:
        state.sort_direction = data["direction"]


def _load_settings(state: AppState, payload: Any) -> None:
    state.settings = {**state.settings, **_as_mapping(payload)}


def _update_trend_config(state: AppState, payload: Any) -> None:
    data = _as_mapping(payload)
    start_date = coerce_date(data.get("start_date"))
    initial_weight = coerce_number(data.get("initial_weight"))
    weekly_1 = coerce_number(data.get("weekly_increase_1"))
    weekly_2 = coerce_number(data.get("weekly_increase_2"))
    state.trend_config = TrendConfig(
        start_date=start_date,
        initial_weight=initial_weight,
        weekly_increase_1=weekly_1,
        weekly_increase_2=weekly_2,
        is_valid=(
            start_date is not None
            and initial_weight is not None
            and weekly_1 is not None
            and weekly_2 is not None
        ),
    )


def _set_display_stats(state: AppState, payload: Any) -> None:
    state.display_stats = dict(payload) if isinstance(payload, Mapping) else {}


def _initialization_complete(state: AppState, payload: Any) -> None:
    state.is_initialized = True


def _initialization_failed(state: AppState, payload: Any) -> None:
    state.is_initialized = False


HANDLERS: dict[ActionType, Handler] = {
    ActionType.INITIALIZE_START: _initialize_start,
    ActionType.SET_INITIAL_DATA: _set_initial_data,
    ActionType.SET_PROCESSED_DATA: _set_processed_data,
    ActionType.SET_FILTERED_DATA: _set_filtered_data,
    ActionType.SET_WEEKLY_SUMMARY: _set_weekly_summary,
    ActionType.SET_CORRELATION_DATA: _set_correlation_data,
    ActionType.SET_REGRESSION_RESULT: _set_regression_result,
    ActionType.LOAD_GOAL: _load_goal,
    ActionType.LOAD_ANNOTATIONS: _load_annotations,
    ActionType.ADD_ANNOTATION: _add_annotation,
    ActionType.DELETE_ANNOTATION: _delete_annotation,
    ActionType.SET_PLATEAUS: _set_plateaus,
    ActionType.SET_TREND_CHANGES: _set_trend_changes,
    ActionType.SET_GOAL_ACHIEVED_DATE: _set_goal_achieved_date,
    ActionType.SET_ANALYSIS_RANGE: _set_analysis_range,
    ActionType.SET_INTERACTIVE_REGRESSION_RANGE: _set_interactive_regression_range,
    ActionType.SET_THEME: _set_theme,
    ActionType.TOGGLE_SERIES_VISIBILITY: _toggle_series_visibility,
    ActionType.SET_HIGHLIGHTED_DATE: _set_highlighted_date,
    ActionType.SET_PINNED_TOOLTIP: _set_pinned_tooltip,
    ActionType.SET_ACTIVE_HOVER_DATA: _set_active_hover_data,
    ActionType.SET_LAST_ZOOM_TRANSFORM: _set_last_zoom_transform,
    ActionType.SET_SORT_OPTIONS: _set_sort_options,
    ActionType.LOAD_SETTINGS: _load_settings,
    ActionType.UPDATE_TREND_CONFIG: _update_trend_config,
    ActionType.SET_DISPLAY_STATS: _set_display_stats,
    ActionType.INITIALIZATION_COMPLETE: _initialization_complete,
    ActionType.INITIALIZATION_FAILED: _initialization_failed,
}


def reduce(state: AppState, action: Action) -> AppState:
    """Return the state that results from applying action to state.

    Unknown action types are logged and the input state is returned as-is.
    """
    handler = HANDLERS.get(action.type)  # type: ignore[call-overload]
    if handler is None:
        logger.warning("Unknown action type: %s", action.type)
        return state

    logger.debug("Reducing %s", action.type)
    next_state = copy.deepcopy(state)
    handler(next_state, action.payload)
    return next_state
