"""Tests for Rich report rendering."""

from __future__ import annotations

from datetime import date, timedelta

from rich.console import Console

from weightinsights.analytics.goals import RateFeedback
from weightinsights.analytics.models import (
    GoalStatus,
    Plateau,
    RegressionResult,
    TimeToGoal,
    TrendChangePoint,
    WeeklyStats,
)
from weightinsights.report import ReportFormatter, format_value


def _formatter():
    console = Console(record=True, width=120)
    return ReportFormatter(console), console


class TestFormatValue:
    """Tests for format_value."""

    def test_missing(self) -> None:
        assert format_value(None) == "N/A"

    def test_number(self) -> None:
        assert format_value(80.123, 1, " kg") == "80.1 kg"

    def test_rich_values(self) -> None:
        assert format_value(TimeToGoal(GoalStatus.FLAT)) == "Trend flat"
        assert format_value(RateFeedback("On Target", "good")) == "On Target"
        assert format_value(date(2025, 1, 6)) == "2025-01-06"
        assert format_value(True) == "yes"


class TestReportFormatter:
    """Tests for ReportFormatter output."""

    def test_summary_with_missing_values(self) -> None:
        formatter, console = _formatter()
        formatter.summary({"current_sma": 80.25, "estimated_time_to_goal": TimeToGoal(GoalStatus.UNKNOWN)})
        text = console.export_text()
        assert "80.25 kg" in text
        assert "N/A" in text

    def test_plateaus(self) -> None:
        formatter, console = _formatter()
        start = date(2025, 1, 6)
        formatter.plateaus([Plateau(start, start + timedelta(days=20))])
        text = console.export_text()
        assert "2025-01-06" in text
        assert "21" in text

    def test_empty_collections(self) -> None:
        formatter, console = _formatter()
        formatter.plateaus([])
        formatter.trend_changes([])
        formatter.weekly([])
        text = console.export_text()
        assert "No plateaus detected" in text
        assert "No trend changes detected" in text

    def test_trend_changes_in_weekly_units(self) -> None:
        formatter, console = _formatter()
        formatter.trend_changes([TrendChangePoint(date(2025, 2, 1), -0.2)])
        assert "-1.40" in console.export_text()

    def test_weekly(self) -> None:
        formatter, console = _formatter()
        formatter.weekly(
            [WeeklyStats("2025-W01", date(2025, 1, 6), -500.0, -0.45, 80.1, 2500.0, 2000.0)]
        )
        text = console.export_text()
        assert "-0.45" in text
        assert "2025-01-06" in text

    def test_regression_approximation_noted(self) -> None:
        formatter, console = _formatter()
        formatter.regression(RegressionResult(slope=-0.1, intercept=80.0, t_approximate=True))
        text = console.export_text()
        assert "-0.700" in text
        assert "1.96" in text
