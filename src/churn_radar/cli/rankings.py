"""Read-only views over the stored analysis state."""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..analysis.areas import normalize_path
from ..formatters import rankings_table
from ..persistence import state_to_dict
from . import app
from ._common import console, load_state_or_exit, resolve_config


@app.command()
def rankings(
    path: Optional[Path] = typer.Option(
        None, "-C", "--path", help="Repository root", exists=True, file_okay=False, dir_okay=True
    ),
    limit: int = typer.Option(
        20, "--limit", "-n", help="Maximum number of ranked areas to list", min=1, max=1000
    ),
    json_output: bool = typer.Option(False, "--json", help="Output in machine-readable JSON format"),
):
    """
    List ranked risk areas from the stored analysis state.

    [bold cyan]Examples:[/bold cyan]

      churn-radar rankings

      churn-radar rankings --limit 5 --json
    """
    state = load_state_or_exit(resolve_config(path))
    ranked = state.ranked_areas()[:limit]

    if json_output:
        paths = {a.path for a in ranked}
        areas = [a for a in state_to_dict(state).get("trackedAreas", []) if a["path"] in paths]
        areas.sort(key=lambda a: a["currentRanking"])
        print(json.dumps(areas, indent=2))
        return

    if not ranked:
        console.print("[yellow]No ranked areas yet.[/yellow]")
        return

    commit = state.last_commit_hash[:8] if state.last_commit_hash else "-"
    console.print()
    console.print(rankings_table(state, limit=limit, title=f"Risk Rankings at {commit}"))
    console.print()


@app.command("blast-radius")
def blast_radius(
    area: str = typer.Argument(..., help="Area (leaf directory) to inspect, e.g. src/auth"),
    path: Optional[Path] = typer.Option(
        None, "-C", "--path", help="Repository root", exists=True, file_okay=False, dir_okay=True
    ),
    top: int = typer.Option(10, "--top", "-n", help="Number of correlated areas", min=1, max=1000),
    json_output: bool = typer.Option(False, "--json", help="Output in machine-readable JSON format"),
):
    """
    Show which areas historically change together with AREA.

    [bold cyan]Examples:[/bold cyan]

      churn-radar blast-radius src/auth

      churn-radar blast-radius src/auth --top 3 --json
    """
    state = load_state_or_exit(resolve_config(path))
    area = normalize_path(area)
    entry = state.blast_radius_for(area)
    correlated = entry.top(top) if entry is not None else []

    if json_output:
        print(
            json.dumps(
                {
                    "sourcePath": area,
                    "correlatedPaths": [
                        {
                            "path": cp.path,
                            "correlationScore": cp.correlation_score,
                            "cooccurrenceCount": cp.cooccurrence_count,
                        }
                        for cp in correlated
                    ],
                },
                indent=2,
            )
        )
        return

    if not correlated:
        console.print(f"[yellow]No co-change history for '{area}'.[/yellow]")
        return

    tracked = state.area(area)
    runs = tracked.metrics.total_commits if tracked is not None else 0
    table = Table(title=f"Blast radius of {area}", show_lines=False, pad_edge=True)
    table.add_column("Correlation", justify="right", style="yellow")
    table.add_column("Area", style="cyan")
    table.add_column("Co-changes", justify="right")

    for cp in correlated:
        table.add_row(f"{cp.correlation_score * 100:.1f}%", cp.path, f"{cp.cooccurrence_count} of {runs}")

    console.print()
    console.print(table)
    console.print()
