"""Command-line interface for clawcron.

Commands:
    clawcron validate EXPR   Check an expression, exit 1 with reasons if invalid
    clawcron describe EXPR   Print the plain-English description
    clawcron next EXPR       Print the next run times
    clawcron presets         List the dashboard presets
    clawcron jobs FILE       Describe every job in a ``cron list --json`` dump
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from clawcron import __version__
from clawcron.exceptions import ConfigError, InvalidTimezoneError, JobFileError
from clawcron.infrastructure.config import get_config, load_config, set_config
from clawcron.infrastructure.logging import configure_logging
from clawcron.scheduling.cron import get_next_runs, validate_expression
from clawcron.scheduling.humanize import to_human_text
from clawcron.scheduling.jobs import describe_jobs, load_jobs
from clawcron.scheduling.presets import CRON_PRESETS
from clawcron.timezones import resolve_timezone

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="clawcron",
    help="Cron expression engine for the OpenClaw mission-control dashboard",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


# =============================================================================
# Type Aliases
# =============================================================================

ExprArg = Annotated[str, typer.Argument(help="5-field cron expression (quote it)")]

CountOpt = Annotated[
    Optional[int],
    typer.Option("--count", "-n", min=1, help="Number of runs to show"),
]

TzOpt = Annotated[
    Optional[str],
    typer.Option("--tz", help="IANA timezone for matching (e.g. Europe/Madrid)"),
]

FormatOpt = Annotated[
    str,
    typer.Option("--format", "-f", help="Output format (console, json)"),
]


# =============================================================================
# Helper Functions
# =============================================================================


def _parse_instant(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise typer.BadParameter(f"Not an ISO-8601 timestamp: {value}", param_hint="--from")


def _check_format(format: str) -> None:
    if format not in ("console", "json"):
        raise typer.BadParameter(f"Unknown format: {format}", param_hint="--format")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"clawcron {__version__}")
        raise typer.Exit()


# =============================================================================
# Commands
# =============================================================================


@app.callback()
def main(
    config_file: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file (yaml, json, toml)"),
    ] = None,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)"),
    ] = None,
    log_format: Annotated[
        Optional[str],
        typer.Option("--log-format", help="Log format (console, json)"),
    ] = None,
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version"),
    ] = False,
) -> None:
    """Validate, describe and project cron schedules."""
    try:
        config = load_config(config_file, log_level=log_level, log_format=log_format)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)

    set_config(config)
    configure_logging(config.log_level, config.log_format)
    logger.debug("Loaded configuration", extra={"config_file": str(config_file)})


@app.command(name="validate")
def validate_cmd(expression: ExprArg) -> None:
    """Check a cron expression."""
    errors = validate_expression(expression)
    if errors:
        typer.echo(f"Invalid: {expression}", err=True)
        for error in errors:
            typer.echo(f"  - {error}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Valid: {expression}")


@app.command(name="describe")
def describe_cmd(expression: ExprArg) -> None:
    """Describe a cron expression in plain English."""
    typer.echo(to_human_text(expression))


@app.command(name="next")
def next_cmd(
    expression: ExprArg,
    count: CountOpt = None,
    from_: Annotated[
        Optional[str],
        typer.Option("--from", help="Start instant, ISO-8601 (default: now)"),
    ] = None,
    tz: TzOpt = None,
    format: FormatOpt = "console",
) -> None:
    """Show the next run times of a cron expression."""
    _check_format(format)
    start = _parse_instant(from_)
    timezone = tz or get_config().default_timezone

    try:
        tzinfo = resolve_timezone(timezone)
    except InvalidTimezoneError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)
    runs = [run.astimezone(tzinfo) for run in get_next_runs(expression, count, start, tzinfo)]

    if format == "json":
        typer.echo(
            json.dumps(
                {
                    "expression": expression,
                    "timezone": timezone,
                    "description": to_human_text(expression),
                    "runs": [run.isoformat() for run in runs],
                },
                indent=2,
            )
        )
        return

    if not runs:
        console.print(f"[yellow]No upcoming runs for {expression!r}[/yellow]")
        return

    table = Table(title=to_human_text(expression), show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right")
    table.add_column(f"Local ({timezone})", style="cyan")
    table.add_column("Weekday")
    for i, run in enumerate(runs, 1):
        table.add_row(str(i), run.strftime("%Y-%m-%d %H:%M %Z"), run.strftime("%A"))
    console.print(table)


@app.command(name="presets")
def presets_cmd(format: FormatOpt = "console") -> None:
    """List the dashboard's preset schedules."""
    _check_format(format)
    if format == "json":
        typer.echo(
            json.dumps(
                [{"label": p.label, "value": p.value, "slug": p.slug} for p in CRON_PRESETS],
                indent=2,
            )
        )
        return

    table = Table(title="Cron presets", show_header=True, header_style="bold magenta")
    table.add_column("Label", style="cyan", no_wrap=True)
    table.add_column("Expression")
    table.add_column("Slug", style="dim")
    for preset in CRON_PRESETS:
        table.add_row(preset.label, preset.value, preset.slug)
    console.print(table)


@app.command(name="jobs")
def jobs_cmd(
    file: Annotated[Path, typer.Argument(help="JSON dump of `openclaw cron list --json`")],
    count: CountOpt = None,
    tz: TzOpt = None,
    format: FormatOpt = "console",
) -> None:
    """Describe every job in a cron job dump."""
    _check_format(format)
    try:
        jobs = load_jobs(file)
    except JobFileError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    logger.info("Loaded jobs", extra={"count": len(jobs), "file": str(file)})
    schedules = describe_jobs(jobs, count=count, timezone=tz)

    if format == "json":
        typer.echo(json.dumps([s.to_dict() for s in schedules], indent=2))
        return

    if not schedules:
        console.print("[yellow]No cron jobs found.[/yellow]")
        return

    table = Table(title="Cron jobs", show_header=True, header_style="bold magenta")
    table.add_column("Job", style="cyan", no_wrap=True)
    table.add_column("Schedule")
    table.add_column("Description")
    table.add_column("Next run", justify="right")
    for schedule in schedules:
        local_runs = schedule.local_runs
        next_run = local_runs[0].strftime("%Y-%m-%d %H:%M %Z") if local_runs else "-"
        style = None if schedule.valid else "red"
        table.add_row(schedule.name, schedule.schedule, schedule.description, next_run, style=style)
    console.print(table)


if __name__ == "__main__":
    app()
