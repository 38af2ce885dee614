"""Terminal rendering of display stats and derived collections."""

from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from weightinsights.analytics.goals import RateFeedback
from weightinsights.analytics.models import (
    Plateau,
    RegressionResult,
    TimeToGoal,
    TrendChangePoint,
    WeeklyStats,
)


def format_value(value: Any, decimals: int = 1, suffix: str = "") -> str:
    """Render a number, date or label; missing values become 'N/A'."""
    if value is None:
        return "N/A"
    if isinstance(value, TimeToGoal):
        return value.label
    if isinstance(value, RateFeedback):
        return value.text
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (int, float)):
        return f"{value:.{decimals}f}{suffix}"
    return str(value)


def _signed(value: Optional[float], decimals: int = 2, suffix: str = "") -> str:
    if value is None:
        return "N/A"
    return f"{value:+.{decimals}f}{suffix}"


class ReportFormatter:
    """Format dashboard panels as Rich output."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize the formatter.

        Args:
            console: Rich console for output. If None, creates a new one.
        """
        self.console = console or Console()

    def summary(self, stats: Mapping[str, Any]) -> None:
        weight = Table(title="Weight", show_header=False)
        weight.add_column("Metric", style="cyan")
        weight.add_column("Value", justify="right")
        weight.add_row("Starting weight", format_value(stats.get("starting_weight"), suffix=" kg"))
        weight.add_row("Current weight", format_value(stats.get("current_weight"), suffix=" kg"))
        weight.add_row("Current SMA", format_value(stats.get("current_sma"), 2, " kg"))
        weight.add_row("Total change", _signed(stats.get("total_change"), 1, " kg"))
        weight.add_row("Max", format_value(stats.get("max_weight"), suffix=" kg"))
        weight.add_row("Min", format_value(stats.get("min_weight"), suffix=" kg"))
        weight.add_row("Weekly rate", _signed(stats.get("current_weekly_rate"), 2, " kg/wk"))
        weight.add_row(
            "Regression slope", _signed(stats.get("regression_slope_weekly"), 2, " kg/wk")
        )
        weight.add_row("Volatility", format_value(stats.get("volatility"), 2, " kg"))
        self.console.print(weight)

        energy = Table(title="Energy", show_header=False)
        energy.add_column("Metric", style="cyan")
        energy.add_column("Value", justify="right")
        energy.add_row("Avg intake", format_value(stats.get("avg_intake"), 0, " kcal"))
        energy.add_row("Avg expenditure", format_value(stats.get("avg_expenditure"), 0, " kcal"))
        energy.add_row("Avg net balance", _signed(stats.get("avg_net_balance"), 0, " kcal"))
        energy.add_row("Adaptive TDEE", format_value(stats.get("avg_tdee_adaptive"), 0, " kcal"))
        energy.add_row("TDEE from trend", format_value(stats.get("avg_tdee_wgt_change"), 0, " kcal"))
        energy.add_row(
            "Net cal / rate correlation",
            format_value(stats.get("net_cal_rate_correlation"), 2),
        )
        self.console.print(energy)

        self.goal(stats)

    def goal(self, stats: Mapping[str, Any]) -> None:
        lines = [
            f"Target weight:  {format_value(stats.get('target_weight'), suffix=' kg')}",
            f"Target date:    {format_value(stats.get('target_date'))}",
            f"Target rate:    {_signed(stats.get('target_rate'), 2, ' kg/wk')}",
            f"To goal:        {_signed(stats.get('weight_to_goal'), 1, ' kg')}",
            f"Time to goal:   {format_value(stats.get('estimated_time_to_goal'))}",
            f"Required rate:  {_signed(stats.get('required_rate_for_goal'), 2, ' kg/wk')}",
            f"Rate feedback:  {format_value(stats.get('target_rate_feedback'))}",
        ]
        intake = stats.get("suggested_intake_range")
        if intake:
            lines.append(f"Suggested intake: {intake[0]}-{intake[1]} kcal/day")
        self.console.print(Panel("\n".join(lines), title="Goal"))

    def plateaus(self, plateaus: Sequence[Plateau]) -> None:
        if not plateaus:
            self.console.print("[yellow]No plateaus detected.[/yellow]")
            return
        table = Table(title="Plateaus")
        table.add_column("Start", style="cyan")
        table.add_column("End", style="cyan")
        table.add_column("Days", justify="right")
        for p in plateaus:
            table.add_row(p.start_date.isoformat(), p.end_date.isoformat(), str(p.duration_days))
        self.console.print(table)

    def trend_changes(self, points: Sequence[TrendChangePoint]) -> None:
        if not points:
            self.console.print("[yellow]No trend changes detected.[/yellow]")
            return
        table = Table(title="Trend Changes")
        table.add_column("Date", style="cyan")
        table.add_column("Change (kg/wk)", justify="right")
        for p in points:
            color = "green" if p.magnitude < 0 else "red"
            table.add_row(p.date.isoformat(), f"[{color}]{p.magnitude * 7:+.2f}[/{color}]")
        self.console.print(table)

    def weekly(self, weeks: Sequence[WeeklyStats]) -> None:
        if not weeks:
            self.console.print("[yellow]Not enough data for weekly summaries.[/yellow]")
            return
        table = Table(title="Weekly Summary")
        table.add_column("Week of", style="cyan")
        table.add_column("Avg weight", justify="right")
        table.add_column("Rate (kg/wk)", justify="right")
        table.add_column("Intake", justify="right")
        table.add_column("Expenditure", justify="right")
        table.add_column("Net", justify="right")
        for w in weeks:
            table.add_row(
                w.week_start_date.isoformat(),
                format_value(w.avg_weight, 2),
                _signed(w.weekly_rate, 2),
                format_value(w.avg_intake, 0),
                format_value(w.avg_expenditure, 0),
                _signed(w.avg_net_cal, 0),
            )
        self.console.print(table)

    def regression(self, result: RegressionResult) -> None:
        if result.slope is None:
            self.console.print("[yellow]Not enough data for a regression line.[/yellow]")
            return
        note = " (t approximated by 1.96)" if result.t_approximate else ""
        self.console.print(
            f"Regression: {result.slope * 7:+.3f} kg/week over {len(result.points)} days{note}"
        )
