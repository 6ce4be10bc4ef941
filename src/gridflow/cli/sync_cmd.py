"""gridflow sync: Reconcile a layout file with a list of item descriptors."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from gridflow.cli.output import check_format, console, emit_layout, resolve_settings
from gridflow.exceptions import GridFlowError
from gridflow.layout.grouping import iter_keys
from gridflow.layout.serializer import load_descriptors, load_layout
from gridflow.layout.synchronizer import synchronize_layout


def sync(
    file: Annotated[Path, typer.Argument(help="Current layout file (.json, .yaml or .yml)")],
    descriptors: Annotated[
        Path, typer.Argument(help="Descriptor file: a list of keys or {key, grid} mappings")
    ],
    axis: Annotated[
        str | None, typer.Option("--axis", "-a", help="Compaction axis: vertical, horizontal or none")
    ] = None,
    cols: Annotated[int | None, typer.Option("--cols", "-c", help="Grid column count")] = None,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Write the result to this file")] = None,
    fmt: Annotated[str, typer.Option("--format", "-f", help="Output format: table, json or yaml")] = "table",
) -> None:
    """Keep placements of known items, add new ones, drop the rest.

    Descriptors with a ``grid`` mapping override the stored geometry.
    """
    try:
        check_format(fmt)
        settings = resolve_settings(compact_type=axis, cols=cols)
        layout = load_layout(file)
        items = load_descriptors(descriptors)

        result = synchronize_layout(
            layout, items, settings.cols,
            compact_type=settings.compact_type,
            allow_overlap=settings.allow_overlap,
        )
        known = set(iter_keys(layout))
        added = [d.key for d in items if d.key not in known]
        if added:
            console.print(f"[green]Added:[/green] {', '.join(added)}")
        emit_layout(result, fmt=fmt, output=output, cols=settings.cols, title=f"{file.name} (synchronized)")
    except GridFlowError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
