"""CLI entry point: registers all subcommands."""

import typer

app = typer.Typer(
    name="churn-radar",
    help="Churn Radar - incremental change-risk hotspot tracking",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .run import run as _run  # noqa: F401, E402
from .rankings import rankings as _rankings, blast_radius as _blast_radius  # noqa: F401, E402


def main() -> None:
    app()
