"""Tests for the state reducer."""

from __future__ import annotations

from datetime import date

from weightinsights.analytics.models import Annotation, Goal, RegressionResult
from weightinsights.store import Action, ActionType
from weightinsights.store.reducer import coerce_date, reduce
from weightinsights.store.state import DateRange, ZoomTransform, initial_state

from helpers import make_records


def apply(state, action_type, payload=None):
    return reduce(state, Action(action_type, payload))


class TestCoerceDate:
    """Tests for coerce_date."""

    def test_accepted_forms(self) -> None:
        assert coerce_date("2025-01-06") == date(2025, 1, 6)
        assert coerce_date("2025/01/06") == date(2025, 1, 6)
        assert coerce_date("2025-01-06T08:30:00") == date(2025, 1, 6)
        assert coerce_date(date(2025, 1, 6)) == date(2025, 1, 6)

    def test_rejected_forms(self) -> None:
        assert coerce_date("not a date") is None
        assert coerce_date(20250106) is None
        assert coerce_date(None) is None


class TestReduce:
    """Tests for reduce."""

    def test_input_state_not_mutated(self) -> None:
        state = initial_state()
        new = apply(state, ActionType.SET_THEME, "dark")
        assert state.current_theme == "light"
        assert new.current_theme == "dark"

    def test_unknown_action_returns_same_state(self) -> None:
        state = initial_state()
        assert reduce(state, Action("NOT_REAL", 1)) is state

    def test_initial_data(self) -> None:
        records = make_records([80.0, 79.9])
        state = apply(
            initial_state(),
            ActionType.SET_INITIAL_DATA,
            {"raw_data": records, "processed_data": records[:1]},
        )
        assert state.raw_data == records
        assert state.processed_data == records[:1]

    def test_initialize_start_resets_derived(self) -> None:
        state = apply(initial_state(), ActionType.SET_PROCESSED_DATA, make_records([80.0]))
        state = apply(state, ActionType.SET_ANALYSIS_RANGE, {"start": "2025-01-01", "end": "2025-02-01"})
        state = apply(state, ActionType.SET_THEME, "dark")
        state = apply(state, ActionType.INITIALIZATION_COMPLETE)

        state = apply(state, ActionType.INITIALIZE_START)

        assert state.processed_data == []
        assert state.analysis_range == DateRange()
        assert state.is_initialized is False
        assert state.current_theme == "dark"

    def test_initialization_flags(self) -> None:
        state = apply(initial_state(), ActionType.INITIALIZATION_COMPLETE)
        assert state.is_initialized is True
        assert apply(state, ActionType.INITIALIZATION_FAILED).is_initialized is False

    def test_analysis_range_partial_update(self) -> None:
        state = apply(
            initial_state(),
            ActionType.SET_ANALYSIS_RANGE,
            {"start": "2025-01-01", "end": "2025-03-01"},
        )
        state = apply(state, ActionType.SET_ANALYSIS_RANGE, {"end": date(2025, 2, 1)})
        assert state.analysis_range == DateRange(date(2025, 1, 1), date(2025, 2, 1))

    def test_analysis_range_bad_date_becomes_none(self) -> None:
        state = apply(initial_state(), ActionType.SET_ANALYSIS_RANGE, {"start": "garbage"})
        assert state.analysis_range.start is None

    def test_load_goal_merges_fields(self) -> None:
        state = apply(initial_state(), ActionType.LOAD_GOAL, Goal(weight=75.0, target_rate=-0.5))
        state = apply(state, ActionType.LOAD_GOAL, {"date": "2025-06-01"})
        assert state.goal == Goal(weight=75.0, date=date(2025, 6, 1), target_rate=-0.5)

    def test_load_goal_coerces_numbers(self) -> None:
        state = apply(initial_state(), ActionType.LOAD_GOAL, {"weight": "75.5", "target_rate": "x"})
        assert state.goal.weight == 75.5
        assert state.goal.target_rate is None

    def test_annotations(self) -> None:
        state = apply(
            initial_state(),
            ActionType.LOAD_ANNOTATIONS,
            [{"id": "a", "date": "2025-01-06", "text": "start"}, {"id": "bad", "date": "nope"}],
        )
        assert [a.id for a in state.annotations] == ["a"]

        state = apply(
            state, ActionType.ADD_ANNOTATION, Annotation(id="b", date=date(2025, 1, 7), text="x")
        )
        assert [a.id for a in state.annotations] == ["a", "b"]

        state = apply(state, ActionType.DELETE_ANNOTATION, {"id": "a"})
        assert [a.id for a in state.annotations] == ["b"]

    def test_add_invalid_annotation_ignored(self) -> None:
        state = apply(initial_state(), ActionType.ADD_ANNOTATION, {"text": "no date"})
        assert state.annotations == []

    def test_toggle_series_visibility(self) -> None:
        state = apply(
            initial_state(),
            ActionType.TOGGLE_SERIES_VISIBILITY,
            {"series_id": "ema_line", "is_visible": False},
        )
        assert state.series_visibility["ema_line"] is False

    def test_toggle_unknown_series_ignored(self) -> None:
        state = apply(
            initial_state(),
            ActionType.TOGGLE_SERIES_VISIBILITY,
            {"series_id": "nonexistent", "is_visible": False},
        )
        assert "nonexistent" not in state.series_visibility

    def test_trend_config_validity(self) -> None:
        payload = {
            "start_date": "2025-01-06",
            "initial_weight": 80,
            "weekly_increase_1": -0.5,
            "weekly_increase_2": "-0.25",
        }
        state = apply(initial_state(), ActionType.UPDATE_TREND_CONFIG, payload)
        assert state.trend_config.is_valid
        assert state.trend_config.weekly_increase_2 == -0.25

        state = apply(state, ActionType.UPDATE_TREND_CONFIG, {**payload, "initial_weight": None})
        assert not state.trend_config.is_valid

    def test_sort_options(self) -> None:
        state = apply(
            initial_state(), ActionType.SET_SORT_OPTIONS, {"column_key": "avg_weight"}
        )
        assert state.sort_column_key == "avg_weight"
        assert state.sort_direction == "asc"

    def test_zoom_transform(self) -> None:
        state = apply(
            initial_state(), ActionType.SET_LAST_ZOOM_TRANSFORM, {"k": 2, "x": 10, "y": 0}
        )
        assert state.last_zoom_transform == ZoomTransform(2.0, 10.0, 0.0)
        state = apply(state, ActionType.SET_LAST_ZOOM_TRANSFORM, None)
        assert state.last_zoom_transform is None

    def test_regression_result_requires_type(self) -> None:
        result = RegressionResult(slope=-0.1, intercept=80.0)
        state = apply(initial_state(), ActionType.SET_REGRESSION_RESULT, result)
        assert state.regression_result == result
        state = apply(state, ActionType.SET_REGRESSION_RESULT, {"slope": 1})
        assert state.regression_result == RegressionResult()

    def test_load_settings_merges(self) -> None:
        state = apply(initial_state(), ActionType.LOAD_SETTINGS, {"sma_window": 10})
        assert state.settings["sma_window"] == 10
        assert "rolling_volatility_window" in state.settings

    def test_highlighted_date(self) -> None:
        state = apply(initial_state(), ActionType.SET_HIGHLIGHTED_DATE, "2025-01-06")
        assert state.highlighted_date == date(2025, 1, 6)
