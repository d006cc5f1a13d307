"""Rich terminal formatter for Churn Radar."""

from typing import Optional

from rich.console import Console
from rich.table import Table

from ..analysis.models import AnalysisState, Decision, RiskAnalysisResult
from .base import BaseFormatter

_DECISION_LABELS = {
    Decision.PASS: "[green bold]PASS[/green bold]: No significant risk pattern changes detected.",
    Decision.ALERT: "[yellow bold]ALERT[/yellow bold]: Pipeline paused due to risk pattern changes.",
    Decision.FAIL: "[red bold]FAIL[/red bold]: Pipeline stopped due to critical risk pattern changes.",
}


def _short(commit: Optional[str]) -> str:
    return commit[:7] if commit else "repository root"


def rankings_table(state: AnalysisState, limit: int = 10, title: str = "All-Time Risk Rankings") -> Table:
    """Ranked areas, rank 1 first."""
    table = Table(title=title, show_lines=False, pad_edge=True)
    table.add_column("#", style="bold", justify="right")
    table.add_column("Pctl", justify="right")
    table.add_column("Area", style="cyan")
    table.add_column("Files", justify="right")
    table.add_column("Lines", justify="right")
    table.add_column("Runs", justify="right")
    table.add_column("Score", justify="right", style="yellow")

    for area in state.ranked_areas()[:limit]:
        m = area.metrics
        table.add_row(
            str(area.current_ranking),
            f"{area.percentile:.1f}%",
            area.path,
            str(m.total_files_changed),
            str(m.churn),
            str(m.total_commits),
            f"{area.risk_score:.2f}",
        )
    return table


class RichFormatter(BaseFormatter):
    """Decision summary, plus rankings and blast radius when verbose."""

    def __init__(self, verbose: bool = False, console: Optional[Console] = None):
        self.verbose = verbose
        self.console = console or Console(stderr=True)

    def render(self, result: RiskAnalysisResult) -> None:
        self._print_summary(result)
        if self.verbose:
            self._print_rankings(result.current_state)
            self._print_blast_radius(result.current_state)

    def format(self, result: RiskAnalysisResult) -> str:
        with self.console.capture() as capture:
            self.render(result)
        return capture.get()

    def _print_summary(self, result: RiskAnalysisResult) -> None:
        self.console.print(
            f"Analysis complete from [bold]{_short(result.previous_state.last_commit_hash)}[/bold] "
            f"to [bold]{_short(result.current_state.last_commit_hash)}[/bold]"
        )
        self.console.print(_DECISION_LABELS[result.decision])
        for reason in result.reasons:
            self.console.print(f"  {reason}", markup=False, highlight=False)

    def _print_rankings(self, state: AnalysisState) -> None:
        self.console.print()
        if not state.ranked_areas():
            self.console.print("[dim]No ranked areas yet.[/dim]")
            return
        self.console.print(rankings_table(state, limit=10, title="All-Time Risk Rankings (Top 10)"))

    def _print_blast_radius(self, state: AnalysisState) -> None:
        self.console.print()
        self.console.print("[bold cyan]BLAST RADIUS[/bold cyan] (Top 3)")
        printed = False
        for area in state.ranked_areas()[:3]:
            entry = state.blast_radius_for(area.path)
            if entry is None or not entry.correlated_paths:
                continue
            printed = True
            self.console.print(f"  [bold]{area.path}[/bold] - when changed, triggers:")
            for cp in entry.top(3):
                self.console.print(
                    f"    {cp.correlation_score * 100:5.1f}%  {cp.path} "
                    f"[dim]({cp.cooccurrence_count} of {area.metrics.total_commits} times)[/dim]"
                )
        if not printed:
            self.console.print("  [dim]No co-change correlations for the top areas.[/dim]")
        self.console.print()
