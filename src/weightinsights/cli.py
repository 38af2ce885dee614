"""CLI interface using Typer."""

from __future__ import annotations

import dataclasses
import json
import logging
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from weightinsights.analytics.models import TimeToGoal
from weightinsights.analytics.stats import make_stats_backend
from weightinsights.config import Settings
from weightinsights.data.loader import load_csv, load_data_file
from weightinsights.derived import StatsUpdater, initialize_dashboard
from weightinsights.persistence import AnnotationRepository, GoalRepository
from weightinsights.report import ReportFormatter
from weightinsights.store import Store
from weightinsights.store.actions import set_analysis_range
from weightinsights.store.state import AppState

app = typer.Typer(
    help="Weight trend analytics: smoothing, TDEE, plateaus and goal tracking",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

goal_app = typer.Typer(help="Show and edit the weight goal")
annotations_app = typer.Typer(help="Manage chart annotations")

app.add_typer(goal_app, name="goal")
app.add_typer(annotations_app, name="annotations")

logger = logging.getLogger(__name__)


# ============================================================================
# Helpers
# ============================================================================


def _json_default(obj: Any) -> Any:
    if isinstance(obj, TimeToGoal):
        return {"status": obj.status.value, "weeks": obj.weeks, "label": obj.label}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def output_json(response: dict, file=None) -> None:
    """Output JSON response to stdout or file."""
    json_str = json.dumps(response, indent=2, default=_json_default)
    if file:
        file.write(json_str)
    else:
        print(json_str)


def fail(command: str, message: str, json_output: bool) -> NoReturn:
    """Report an error in the requested format and exit with status 1."""
    if json_output:
        output_json({"success": False, "command": command, "errors": [message]})
    else:
        console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


def parse_date(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"Invalid date '{value}', expected YYYY-MM-DD")


def get_settings(ctx: typer.Context) -> Settings:
    if isinstance(ctx.obj, Settings):
        return ctx.obj
    return Settings.load()


def build_dashboard(
    settings: Settings,
    data_file: Path,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> Store:
    """Load data, run the startup sequence and apply an optional date range.

    Raises:
        FileNotFoundError: If data_file does not exist
        ValueError: If the data file cannot be parsed
    """
    if data_file.suffix.lower() == ".csv":
        records = load_csv(data_file)
    else:
        records = load_data_file(data_file)

    stats = make_stats_backend(settings.statistics.backend)
    store = Store()
    updater = StatsUpdater(store, settings, stats)
    updater.start()

    goals = GoalRepository(settings.storage.goal_path)
    annotations = AnnotationRepository(settings.storage.annotations_path)
    initialize_dashboard(store, records, settings, stats, loaders=(goals.load, annotations.load))

    if start is not None or end is not None:
        current = store.get_state().analysis_range
        store.dispatch(set_analysis_range(start or current.start, end or current.end))

    updater.stop()
    return store


def _load_or_exit(
    ctx: typer.Context,
    command: str,
    data_file: Path,
    json_output: bool,
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> AppState:
    settings = get_settings(ctx)
    try:
        store = build_dashboard(settings, data_file, parse_date(start), parse_date(end))
    except (FileNotFoundError, ValueError) as e:
        fail(command, str(e), json_output)
    state = store.get_state()
    if not state.processed_data:
        fail(command, f"No usable records in {data_file}", json_output)
    return state


def _range_data(state: AppState) -> dict:
    return {"start": state.analysis_range.start, "end": state.analysis_range.end}


# ============================================================================
# Global options
# ============================================================================


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to config.yaml (default: ~/.weightinsights/config.yaml)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging and load settings before any command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )
    ctx.obj = Settings.load(config)


# ============================================================================
# Analysis commands
# ============================================================================


DATA_FILE_ARG = typer.Argument(..., help="data.json export or CSV with a date column")
START_OPT = typer.Option(None, "--start", "-s", help="Analysis start (YYYY-MM-DD)")
END_OPT = typer.Option(None, "--end", "-e", help="Analysis end (YYYY-MM-DD)")
JSON_OPT = typer.Option(False, "--json", help="Output as JSON")


@app.command()
def summary(
    ctx: typer.Context,
    data_file: Path = DATA_FILE_ARG,
    start: Optional[str] = START_OPT,
    end: Optional[str] = END_OPT,
    json_output: bool = JSON_OPT,
) -> None:
    """Show weight, energy and goal statistics for the analysis range."""
    state = _load_or_exit(ctx, "summary", data_file, json_output, start, end)
    stats = state.display_stats

    if json_output:
        output_json({
            "success": True,
            "command": "summary",
            "data": {
                "range": _range_data(state),
                "display_stats": stats,
                "regression": {
                    "slope_weekly": state.regression_result.weekly_slope,
                    "intercept": state.regression_result.intercept,
                    "t_approximate": state.regression_result.t_approximate,
                },
            },
            "human_summary": f"Current SMA: {stats.get('current_sma')}",
        })
        return

    console.print(
        f"[bold]Analysis range:[/bold] {state.analysis_range.start} to {state.analysis_range.end}"
    )
    formatter = ReportFormatter(console)
    formatter.summary(stats)
    formatter.regression(state.regression_result)


@app.command()
def plateaus(
    ctx: typer.Context,
    data_file: Path = DATA_FILE_ARG,
    json_output: bool = JSON_OPT,
) -> None:
    """List periods where the smoothed rate stayed near zero."""
    state = _load_or_exit(ctx, "plateaus", data_file, json_output)

    if json_output:
        output_json({
            "success": True,
            "command": "plateaus",
            "data": {
                "plateaus": [
                    {
                        "start_date": p.start_date,
                        "end_date": p.end_date,
                        "duration_days": p.duration_days,
                    }
                    for p in state.plateaus
                ]
            },
            "human_summary": f"{len(state.plateaus)} plateau(s) detected",
        })
        return

    ReportFormatter(console).plateaus(state.plateaus)


@app.command()
def trends(
    ctx: typer.Context,
    data_file: Path = DATA_FILE_ARG,
    json_output: bool = JSON_OPT,
) -> None:
    """List days where the weight trend changed direction or pace."""
    state = _load_or_exit(ctx, "trends", data_file, json_output)

    if json_output:
        output_json({
            "success": True,
            "command": "trends",
            "data": {"trend_changes": state.trend_change_points},
            "human_summary": f"{len(state.trend_change_points)} trend change(s) detected",
        })
        return

    ReportFormatter(console).trend_changes(state.trend_change_points)


@app.command()
def weekly(
    ctx: typer.Context,
    data_file: Path = DATA_FILE_ARG,
    start: Optional[str] = START_OPT,
    end: Optional[str] = END_OPT,
    json_output: bool = JSON_OPT,
) -> None:
    """Show per-week averages and rates for the analysis range."""
    state = _load_or_exit(ctx, "weekly", data_file, json_output, start, end)

    if json_output:
        output_json({
            "success": True,
            "command": "weekly",
            "data": {
                "range": _range_data(state),
                "weeks": state.weekly_summary_data,
                "net_cal_rate_correlation": state.display_stats.get("net_cal_rate_correlation"),
            },
            "human_summary": f"{len(state.weekly_summary_data)} week(s)",
        })
        return

    ReportFormatter(console).weekly(state.weekly_summary_data)
    r = state.display_stats.get("net_cal_rate_correlation")
    if r is not None:
        console.print(f"Net calories vs rate correlation: {r:.2f}")


# ============================================================================
# Goal commands
# ============================================================================


def _goal_store(ctx: typer.Context) -> tuple[Store, GoalRepository]:
    repo = GoalRepository(get_settings(ctx).storage.goal_path)
    store = Store()
    repo.load(store)
    return store, repo


@goal_app.command("show")
def goal_show(
    ctx: typer.Context,
    json_output: bool = JSON_OPT,
) -> None:
    """Show the saved goal."""
    store, _ = _goal_store(ctx)
    goal = store.get_state().goal

    if json_output:
        output_json({"success": True, "command": "goal show", "data": {"goal": goal}})
        return

    if goal.weight is None and goal.date is None and goal.target_rate is None:
        console.print("[yellow]No goal set.[/yellow]")
        return
    table = Table(title="Goal", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Weight", f"{goal.weight:.1f} kg" if goal.weight is not None else "N/A")
    table.add_row("Date", goal.date.isoformat() if goal.date else "N/A")
    table.add_row(
        "Target rate", f"{goal.target_rate:+.2f} kg/wk" if goal.target_rate is not None else "N/A"
    )
    console.print(table)


@goal_app.command("set")
def goal_set(
    ctx: typer.Context,
    weight: Optional[float] = typer.Option(None, "--weight", "-w", help="Goal weight in kg"),
    date_str: Optional[str] = typer.Option(None, "--date", "-d", help="Goal date (YYYY-MM-DD)"),
    rate: Optional[float] = typer.Option(None, "--rate", "-r", help="Target rate in kg/week"),
    json_output: bool = JSON_OPT,
) -> None:
    """Update one or more goal fields."""
    updates: dict[str, Any] = {}
    if weight is not None:
        updates["weight"] = weight
    if date_str is not None:
        updates["date"] = parse_date(date_str)
    if rate is not None:
        updates["target_rate"] = rate
    if not updates:
        fail("goal set", "Nothing to update: pass --weight, --date or --rate", json_output)

    store, repo = _goal_store(ctx)
    repo.update(store, **updates)
    goal = store.get_state().goal

    if json_output:
        output_json({"success": True, "command": "goal set", "data": {"goal": goal}})
    else:
        console.print(f"[green]Goal saved to[/green] {repo.path}")


@goal_app.command("clear")
def goal_clear(
    ctx: typer.Context,
    json_output: bool = JSON_OPT,
) -> None:
    """Remove every goal field."""
    store, repo = _goal_store(ctx)
    repo.update(store, weight=None, date=None, target_rate=None)

    if json_output:
        output_json({"success": True, "command": "goal clear", "data": {}})
    else:
        console.print("[green]Goal cleared.[/green]")


# ============================================================================
# Annotation commands
# ============================================================================


def _annotation_store(ctx: typer.Context) -> tuple[Store, AnnotationRepository]:
    repo = AnnotationRepository(get_settings(ctx).storage.annotations_path)
    store = Store()
    repo.load(store)
    return store, repo


@annotations_app.command("list")
def annotations_list(
    ctx: typer.Context,
    json_output: bool = JSON_OPT,
) -> None:
    """List annotations in date order."""
    store, _ = _annotation_store(ctx)
    annotations = store.get_state().annotations

    if json_output:
        output_json({
            "success": True,
            "command": "annotations list",
            "data": {"annotations": annotations},
        })
        return

    if not annotations:
        console.print("[yellow]No annotations.[/yellow]")
        return
    table = Table(title="Annotations")
    table.add_column("ID", style="dim")
    table.add_column("Date", style="cyan")
    table.add_column("Type")
    table.add_column("Text")
    for a in annotations:
        table.add_row(a.id, a.date.isoformat(), a.type, a.text)
    console.print(table)


@annotations_app.command("add")
def annotations_add(
    ctx: typer.Context,
    date_str: str = typer.Argument(..., help="Date (YYYY-MM-DD)"),
    text: str = typer.Argument(..., help="Annotation text"),
    range_type: bool = typer.Option(False, "--range", help="Mark as a range annotation"),
    json_output: bool = JSON_OPT,
) -> None:
    """Add an annotation."""
    day = parse_date(date_str)
    store, repo = _annotation_store(ctx)
    annotation = repo.add(store, day, text, "range" if range_type else "point")  # type: ignore[arg-type]

    if json_output:
        output_json({
            "success": True,
            "command": "annotations add",
            "data": {"annotation": annotation},
        })
    else:
        console.print(f"[green]Added annotation[/green] {annotation.id} on {annotation.date}")


@annotations_app.command("remove")
def annotations_remove(
    ctx: typer.Context,
    annotation_id: str = typer.Argument(..., help="Annotation ID"),
    json_output: bool = JSON_OPT,
) -> None:
    """Remove an annotation by ID."""
    store, repo = _annotation_store(ctx)
    if not repo.remove(store, annotation_id):
        fail("annotations remove", f"No annotation with id {annotation_id}", json_output)

    if json_output:
        output_json({
            "success": True,
            "command": "annotations remove",
            "data": {"id": annotation_id},
        })
    else:
        console.print(f"[green]Removed annotation[/green] {annotation_id}")


if __name__ == "__main__":
    app()
