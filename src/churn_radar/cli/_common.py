"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ..analysis.models import AnalysisState
from ..config import RadarConfig, load_config
from ..exceptions import ChurnRadarError
from ..persistence import StateStore

console = Console()
err_console = Console(stderr=True)


def resolve_config(path: Optional[Path], config_file: Optional[Path] = None, **overrides) -> RadarConfig:
    """Build config from CLI options; exits with the config error code on failure."""
    if path is not None:
        overrides["repo_path"] = str(path)
    try:
        return load_config(config_file=config_file, **overrides)
    except ChurnRadarError as e:
        err_console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(int(e.exit_code))


def load_state_or_exit(config: RadarConfig) -> AnalysisState:
    """Strictly read the stored state for display commands."""
    store = StateStore(config.state_path)
    if not store.path.exists():
        console.print(
            f"[yellow]No analysis state found at {store.path}.[/yellow] "
            "Run [bold]churn-radar run[/bold] first."
        )
        raise typer.Exit(0)
    try:
        return store.read()
    except ChurnRadarError as e:
        err_console.print(f"[red]Error reading analysis state:[/red] {e}")
        raise typer.Exit(int(e.exit_code))
