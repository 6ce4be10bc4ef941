"""Main CLI application for gridflow."""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from gridflow import __version__

app = typer.Typer(
    name="gridflow",
    help="Collision-free grid layouts: compact, move, merge and synchronize items.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"gridflow {__version__}")
        raise typer.Exit()


def configure_logging(level: str) -> None:
    """Route library logs through rich on stderr."""
    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    logging.basicConfig(level=level.upper(), format="%(message)s", handlers=[handler], force=True)


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version.", callback=version_callback, is_eager=True
    ),
    log_level: str = typer.Option(
        "WARNING", "--log-level", envvar="GRIDFLOW_LOG_LEVEL", help="Logging level (DEBUG, INFO, WARNING, ...)"
    ),
) -> None:
    """gridflow: Lay out grid items without overlaps."""
    if log_level.upper() not in LOG_LEVELS:
        raise typer.BadParameter(f"must be one of {', '.join(LOG_LEVELS)}", param_hint="--log-level")
    configure_logging(log_level)


# Import and register commands
from gridflow.cli.edit_cmd import compact, detach, merge, move  # noqa: E402
from gridflow.cli.show_cmd import show, validate  # noqa: E402
from gridflow.cli.sync_cmd import sync  # noqa: E402

app.command("show")(show)
app.command("validate")(validate)
app.command("compact")(compact)
app.command("move")(move)
app.command("merge")(merge)
app.command("detach")(detach)
app.command("sync")(sync)


def main() -> None:
    """Entry point for the CLI."""
    app()
