"""Action vocabulary, notification channels and channel payloads."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Union

if TYPE_CHECKING:
    from weightinsights.store.state import AppState


class ActionType(str, Enum):
    INITIALIZE_START = "INITIALIZE_START"
    SET_INITIAL_DATA = "SET_INITIAL_DATA"
    SET_PROCESSED_DATA = "SET_PROCESSED_DATA"
    SET_FILTERED_DATA = "SET_FILTERED_DATA"
    SET_WEEKLY_SUMMARY = "SET_WEEKLY_SUMMARY"
    SET_CORRELATION_DATA = "SET_CORRELATION_DATA"
    SET_REGRESSION_RESULT = "SET_REGRESSION_RESULT"
    LOAD_GOAL = "LOAD_GOAL"
    LOAD_ANNOTATIONS = "LOAD_ANNOTATIONS"
    ADD_ANNOTATION = "ADD_ANNOTATION"
    DELETE_ANNOTATION = "DELETE_ANNOTATION"
    SET_PLATEAUS = "SET_PLATEAUS"
    SET_TREND_CHANGES = "SET_TREND_CHANGES"
    SET_GOAL_ACHIEVED_DATE = "SET_GOAL_ACHIEVED_DATE"
    SET_ANALYSIS_RANGE = "SET_ANALYSIS_RANGE"
    SET_INTERACTIVE_REGRESSION_RANGE = "SET_INTERACTIVE_REGRESSION_RANGE"
    SET_THEME = "SET_THEME"
    TOGGLE_SERIES_VISIBILITY = "TOGGLE_SERIES_VISIBILITY"
    SET_HIGHLIGHTED_DATE = "SET_HIGHLIGHTED_DATE"
    SET_PINNED_TOOLTIP = "SET_PINNED_TOOLTIP"
    SET_ACTIVE_HOVER_DATA = "SET_ACTIVE_HOVER_DATA"
    SET_LAST_ZOOM_TRANSFORM = "SET_LAST_ZOOM_TRANSFORM"
    SET_SORT_OPTIONS = "SET_SORT_OPTIONS"
    LOAD_SETTINGS = "LOAD_SETTINGS"
    UPDATE_TREND_CONFIG = "UPDATE_TREND_CONFIG"
    SET_DISPLAY_STATS = "SET_DISPLAY_STATS"
    INITIALIZATION_COMPLETE = "INITIALIZATION_COMPLETE"
    INITIALIZATION_FAILED = "INITIALIZATION_FAILED"


@dataclass(frozen=True)
class Action:
    """A tagged state transition request.

    type is an ActionType for the known vocabulary; any other string is
    carried through unchanged so the reducer can ignore it.
    """

    type: Union[ActionType, str]
    payload: Any = None

    @classmethod
    def coerce(cls, obj: Any) -> Optional["Action"]:
        """Build an Action from an Action or a {"type", "payload"} mapping.

        Returns None when obj has no string type.
        """
        if isinstance(obj, Action):
            action_type, payload = obj.type, obj.payload
        elif isinstance(obj, Mapping):
            action_type, payload = obj.get("type"), obj.get("payload")
        else:
            return None

        if not isinstance(action_type, str):
            return None
        try:
            action_type = ActionType(action_type)
        except ValueError:
            pass
        return cls(type=action_type, payload=payload)


class Channel(str, Enum):
    ANNOTATIONS_CHANGED = "state:annotationsChanged"
    VISIBILITY_CHANGED = "state:visibilityChanged"
    GOAL_CHANGED = "state:goalChanged"
    THEME_UPDATED = "state:themeUpdated"
    ANALYSIS_RANGE_CHANGED = "state:analysisRangeChanged"
    INTERACTIVE_REGRESSION_RANGE_CHANGED = "state:interactiveRegressionRangeChanged"
    FILTERED_DATA_CHANGED = "state:filteredDataChanged"
    WEEKLY_SUMMARY_UPDATED = "state:weeklySummaryUpdated"
    CORRELATION_DATA_UPDATED = "state:correlationDataUpdated"
    PLATEAUS_CHANGED = "state:plateausChanged"
    TREND_CHANGES_CHANGED = "state:trendChangesChanged"
    REGRESSION_RESULT_CHANGED = "state:regressionResultChanged"
    TREND_CONFIG_CHANGED = "state:trendConfigChanged"
    SORT_OPTIONS_CHANGED = "state:sortOptionsChanged"
    DISPLAY_STATS_UPDATED = "state:displayStatsUpdated"
    INITIALIZATION_COMPLETE = "state:initializationComplete"
    HIGHLIGHTED_DATE_CHANGED = "state:highlightedDateChanged"
    PINNED_TOOLTIP_DATA_CHANGED = "state:pinnedTooltipDataChanged"
    ACTIVE_HOVER_DATA_CHANGED = "state:activeHoverDataChanged"


PayloadBuilder = Callable[["AppState"], Any]


def _annotations(s: AppState) -> dict:
    return {"annotations": s.annotations}


def _goal(s: AppState) -> dict:
    return {"goal": s.goal, "achieved_date": s.goal_achieved_date}


# action type -> (channel, payload builder)
_CHANNEL_TABLE: dict[ActionType, tuple[Channel, PayloadBuilder]] = {
    ActionType.LOAD_ANNOTATIONS: (Channel.ANNOTATIONS_CHANGED, _annotations),
    ActionType.ADD_ANNOTATION: (Channel.ANNOTATIONS_CHANGED, _annotations),
    ActionType.DELETE_ANNOTATION: (Channel.ANNOTATIONS_CHANGED, _annotations),
    ActionType.TOGGLE_SERIES_VISIBILITY: (
        Channel.VISIBILITY_CHANGED,
        lambda s: {"visibility": s.series_visibility},
    ),
    ActionType.LOAD_GOAL: (Channel.GOAL_CHANGED, _goal),
    ActionType.SET_GOAL_ACHIEVED_DATE: (Channel.GOAL_CHANGED, _goal),
    ActionType.SET_THEME: (Channel.THEME_UPDATED, lambda s: {"theme": s.current_theme}),
    ActionType.SET_ANALYSIS_RANGE: (
        Channel.ANALYSIS_RANGE_CHANGED,
        lambda s: {"range": s.analysis_range},
    ),
    ActionType.SET_INTERACTIVE_REGRESSION_RANGE: (
        Channel.INTERACTIVE_REGRESSION_RANGE_CHANGED,
        lambda s: {"range": s.interactive_regression_range},
    ),
    ActionType.SET_FILTERED_DATA: (
        Channel.FILTERED_DATA_CHANGED,
        lambda s: {"data": s.filtered_data},
    ),
    ActionType.SET_WEEKLY_SUMMARY: (
        Channel.WEEKLY_SUMMARY_UPDATED,
        lambda s: {"data": s.weekly_summary_data},
    ),
    ActionType.SET_CORRELATION_DATA: (
        Channel.CORRELATION_DATA_UPDATED,
        lambda s: {"data": s.correlation_scatter_data},
    ),
    ActionType.SET_PLATEAUS: (Channel.PLATEAUS_CHANGED, lambda s: {"plateaus": s.plateaus}),
    ActionType.SET_TREND_CHANGES: (
        Channel.TREND_CHANGES_CHANGED,
        lambda s: {"trend_change_points": s.trend_change_points},
    ),
    ActionType.SET_REGRESSION_RESULT: (
        Channel.REGRESSION_RESULT_CHANGED,
        lambda s: {"result": s.regression_result},
    ),
    ActionType.UPDATE_TREND_CONFIG: (
        Channel.TREND_CONFIG_CHANGED,
        lambda s: {"config": s.trend_config},
    ),
    ActionType.SET_SORT_OPTIONS: (
        Channel.SORT_OPTIONS_CHANGED,
        lambda s: {"column_key": s.sort_column_key, "direction": s.sort_direction},
    ),
    ActionType.SET_DISPLAY_STATS: (Channel.DISPLAY_STATS_UPDATED, lambda s: s.display_stats),
    ActionType.INITIALIZATION_COMPLETE: (Channel.INITIALIZATION_COMPLETE, lambda s: {}),
    ActionType.SET_HIGHLIGHTED_DATE: (
        Channel.HIGHLIGHTED_DATE_CHANGED,
        lambda s: {"date": s.highlighted_date},
    ),
    ActionType.SET_PINNED_TOOLTIP: (
        Channel.PINNED_TOOLTIP_DATA_CHANGED,
        lambda s: {"data": s.pinned_tooltip_data},
    ),
    ActionType.SET_ACTIVE_HOVER_DATA: (
        Channel.ACTIVE_HOVER_DATA_CHANGED,
        lambda s: {"data": s.active_hover_data},
    ),
}

ACTION_CHANNELS: dict[ActionType, Channel] = {
    action_type: channel for action_type, (channel, _) in _CHANNEL_TABLE.items()
}


def channel_for(action_type: Union[ActionType, str]) -> Optional[Channel]:
    """Channel notified for action_type, or None for general-only actions."""
    entry = _CHANNEL_TABLE.get(action_type)  # type: ignore[call-overload]
    return entry[0] if entry else None


def channel_payload(action_type: Union[ActionType, str], state: AppState) -> Any:
    """Channel payload for action_type built from the post-dispatch state."""
    entry = _CHANNEL_TABLE.get(action_type)  # type: ignore[call-overload]
    if entry is None:
        raise KeyError(f"No channel registered for {action_type}")
    return entry[1](state)


# Action creators for the actions external collaborators send most often.


def set_theme(theme: str) -> Action:
    return Action(ActionType.SET_THEME, theme)


def load_goal(goal: Any) -> Action:
    return Action(ActionType.LOAD_GOAL, goal)


def load_annotations(annotations: list) -> Action:
    return Action(ActionType.LOAD_ANNOTATIONS, annotations)


def add_annotation(annotation: Any) -> Action:
    return Action(ActionType.ADD_ANNOTATION, annotation)


def delete_annotation(annotation_id: str) -> Action:
    return Action(ActionType.DELETE_ANNOTATION, {"id": annotation_id})


def set_analysis_range(start: Any, end: Any) -> Action:
    return Action(ActionType.SET_ANALYSIS_RANGE, {"start": start, "end": end})


def toggle_series_visibility(series_id: str, is_visible: bool) -> Action:
    return Action(
        ActionType.TOGGLE_SERIES_VISIBILITY, {"series_id": series_id, "is_visible": is_visible}
    )
