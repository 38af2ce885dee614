"""Application state tree and its default shape."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from weightinsights.analytics.models import (
    Annotation,
    DailyRecord,
    Goal,
    Plateau,
    RegressionResult,
    TrendChangePoint,
    WeeklyStats,
)

SERIES_IDS = (
    "raw",
    "sma_line",
    "ema_line",
    "sma_band",
    "regression",
    "trend1",
    "trend2",
    "goal",
    "annotations",
    "plateaus",
    "trend_changes",
    "rate_ma",
)


@dataclass
class DateRange:
    start: Optional[date] = None
    end: Optional[date] = None

    @property
    def is_complete(self) -> bool:
        return self.start is not None and self.end is not None


@dataclass
class TrendConfig:
    """Manual trend lines drawn from a start date and weight."""

    start_date: Optional[date] = None
    initial_weight: Optional[float] = None
    weekly_increase_1: Optional[float] = None
    weekly_increase_2: Optional[float] = None
    is_valid: bool = False


@dataclass
class ZoomTransform:
    k: float
    x: float
    y: float


def _default_visibility() -> dict[str, bool]:
    return {series: True for series in SERIES_IDS}


def _default_view_settings() -> dict[str, Any]:
    return {"sma_window": None, "rolling_volatility_window": None}


@dataclass
class AppState:
    """Canonical application state.

    Only the reducer produces new instances; readers get deep copies.
    """

    is_initialized: bool = False

    # Primary
    raw_data: list[DailyRecord] = field(default_factory=list)
    goal: Goal = field(default_factory=Goal)
    annotations: list[Annotation] = field(default_factory=list)
    analysis_range: DateRange = field(default_factory=DateRange)
    interactive_regression_range: DateRange = field(default_factory=DateRange)
    current_theme: str = "light"
    series_visibility: dict[str, bool] = field(default_factory=_default_visibility)
    trend_config: TrendConfig = field(default_factory=TrendConfig)
    highlighted_date: Optional[date] = None
    pinned_tooltip_data: Any = None
    active_hover_data: Any = None
    last_zoom_transform: Optional[ZoomTransform] = None
    sort_column_key: str = "week_start_date"
    sort_direction: str = "asc"
    settings: dict[str, Any] = field(default_factory=_default_view_settings)

    # Derived
    processed_data: list[DailyRecord] = field(default_factory=list)
    filtered_data: list[DailyRecord] = field(default_factory=list)
    weekly_summary_data: list[WeeklyStats] = field(default_factory=list)
    correlation_scatter_data: list[WeeklyStats] = field(default_factory=list)
    plateaus: list[Plateau] = field(default_factory=list)
    trend_change_points: list[TrendChangePoint] = field(default_factory=list)
    goal_achieved_date: Optional[date] = None
    regression_result: RegressionResult = field(default_factory=RegressionResult)
    display_stats: dict[str, Any] = field(default_factory=dict)


def initial_state() -> AppState:
    """Fresh default state."""
    return AppState()
