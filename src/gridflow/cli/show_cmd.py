"""gridflow show / validate: Inspect a layout file."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from gridflow.cli.output import check_format, console, emit_layout, resolve_settings
from gridflow.exceptions import GridFlowError, LayoutValidationError
from gridflow.layout.geometry import collides, within_columns
from gridflow.layout.serializer import load_layout


def show(
    file: Annotated[Path, typer.Argument(help="Layout file (.json, .yaml or .yml)")],
    cols: Annotated[int | None, typer.Option("--cols", "-c", help="Grid column count")] = None,
    fmt: Annotated[str, typer.Option("--format", "-f", help="Output format: table, json or yaml")] = "table",
) -> None:
    """Print a layout as a table and an ASCII grid."""
    try:
        check_format(fmt)
        settings = resolve_settings(cols=cols)
        layout = load_layout(file)
        emit_layout(layout, fmt=fmt, cols=settings.cols, title=file.name)
    except GridFlowError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


def validate(
    file: Annotated[Path, typer.Argument(help="Layout file (.json, .yaml or .yml)")],
    cols: Annotated[int | None, typer.Option("--cols", "-c", help="Grid column count")] = None,
) -> None:
    """Check a layout file for malformed items, overflow and overlaps."""
    try:
        settings = resolve_settings(cols=cols)
        layout = load_layout(file)
    except LayoutValidationError as e:
        console.print(f"[red]Invalid:[/red] {e.context}")
        for err in e.errors:
            console.print(f"  - {err}", style="red", markup=False, highlight=False)
        raise typer.Exit(1) from e
    except GridFlowError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    warnings = []
    for item in layout:
        if item.y < 0 or not within_columns(item, settings.cols):
            warnings.append(f"'{item.i}' lies outside the {settings.cols}-column grid")
    for index, item in enumerate(layout):
        for other in layout[index + 1:]:
            if collides(item, other):
                warnings.append(f"'{item.i}' overlaps '{other.i}'")

    console.print(f"[green]Valid:[/green] {file.name} ({len(layout)} items)")
    for warning in warnings:
        console.print(f"  ! {warning}", style="yellow", markup=False, highlight=False)
