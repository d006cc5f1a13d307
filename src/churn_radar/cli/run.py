"""Run command: one incremental analysis pass."""

from pathlib import Path
from typing import List, Optional

import typer

from ..exceptions import ChurnRadarError
from ..formatters import JsonFormatter, RichFormatter
from ..logging_config import setup_logging
from ..pipeline import RiskPipeline
from . import app
from ._common import err_console, resolve_config


@app.command()
def run(
    path: Optional[Path] = typer.Option(
        None,
        "-C",
        "--path",
        help="Repository root to analyze (default: current directory)",
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file path (TOML format)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show full rankings, blast radius and debug logging",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors",
    ),
    no_push: bool = typer.Option(
        False,
        "--no-push",
        help="Commit state and move the tag locally without pushing",
    ),
    alert_threshold: Optional[int] = typer.Option(
        None, "--alert-threshold", min=1, help="Rank positions climbed that raise an ALERT"
    ),
    fail_threshold: Optional[int] = typer.Option(
        None, "--fail-threshold", min=1, help="Rank positions climbed that FAIL the run"
    ),
    min_percentile: Optional[float] = typer.Option(
        None, "--min-percentile", min=0.0, max=100.0, help="Percentile cutoff for ranking"
    ),
    exclude: Optional[List[str]] = typer.Option(
        None, "--exclude", "-x", help="Path prefix to exclude (repeatable)"
    ),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Also write logs to this file"),
):
    """
    Fold new commits into the risk state and classify the run.

    Exit codes: 0 pass, 70 alert, 71 fail; 1-4 for operational failures.

    [bold cyan]Examples:[/bold cyan]

      churn-radar run

      churn-radar run --verbose --exclude vendor/ --exclude third_party/

      churn-radar run --json --no-push
    """
    overrides = {
        "alert_threshold": alert_threshold,
        "fail_threshold": fail_threshold,
        "minimum_percentile": min_percentile,
        "excluded_areas": tuple(exclude) if exclude else None,
    }
    if verbose:
        overrides["verbose"] = True
    if no_push:
        overrides["push"] = False

    settings = resolve_config(path, config, **overrides)
    setup_logging(
        verbose=settings.verbose, quiet=quiet, log_file=log_file, level_name=settings.log_level
    )

    formatter = JsonFormatter() if json_output else RichFormatter(verbose=settings.verbose)
    pipeline = RiskPipeline(settings, formatter=formatter)

    try:
        outcome = pipeline.run()
    except ChurnRadarError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(int(e.exit_code))
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Interrupted[/yellow]")
        raise typer.Exit(130)

    if outcome.result is None and not json_output:
        err_console.print("[green]No new commits since last analysis.[/green]")

    raise typer.Exit(int(outcome.exit_code))
