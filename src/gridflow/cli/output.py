"""Shared loading, settings and rendering helpers for CLI commands."""

from __future__ import annotations

import json
import string
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from gridflow.config import GridSettings, get_settings
from gridflow.layout.geometry import bottom
from gridflow.layout.models import LayoutItem
from gridflow.layout.serializer import LayoutSerializer, dump_layout

console = Console()

VALID_FORMATS = ("table", "json", "yaml")

_CELL_SYMBOLS = string.ascii_uppercase + string.ascii_lowercase + string.digits


def resolve_settings(**overrides: Any) -> GridSettings:
    """Settings with any CLI options that were actually given applied on top."""
    given = {k: v for k, v in overrides.items() if v is not None}
    return get_settings(**given)


def check_format(fmt: str) -> None:
    if fmt not in VALID_FORMATS:
        console.print(f"[red]Invalid format '{fmt}'. Choose from: {', '.join(VALID_FORMATS)}[/red]")
        raise typer.Exit(1)


def layout_table(layout: list[LayoutItem], title: str = "Layout") -> Table:
    table = Table(title=title)
    table.add_column("Key", style="cyan")
    table.add_column("x", justify="right")
    table.add_column("y", justify="right")
    table.add_column("w", justify="right")
    table.add_column("h", justify="right")
    table.add_column("Flags", style="dim")

    for item in layout:
        flags = []
        if item.static:
            flags.append("static")
        if item.is_group:
            children = ", ".join(child.i for child in item.children or [])
            flags.append(f"group: {children}")
        table.add_row(item.i, str(item.x), str(item.y), str(item.w), str(item.h), " ".join(flags))
    return table


def render_grid(layout: list[LayoutItem], cols: int) -> str:
    """ASCII picture of the grid: one symbol per item, ``.`` for free cells, ``#`` for overlaps."""
    rows = bottom(layout)
    width = max([cols] + [item.x + item.w for item in layout])
    cells = [["."] * width for _ in range(rows)]
    legend = []

    for index, item in enumerate(layout):
        symbol = _CELL_SYMBOLS[index % len(_CELL_SYMBOLS)]
        legend.append(f"{symbol}={item.i}")
        for y in range(max(item.y, 0), item.y + item.h):
            for x in range(max(item.x, 0), item.x + item.w):
                cells[y][x] = symbol if cells[y][x] == "." else "#"

    lines = ["".join(row) for row in cells]
    lines.append("")
    lines.append("  ".join(legend))
    return "\n".join(lines)


def emit_layout(
    layout: list[LayoutItem],
    *,
    fmt: str = "table",
    output: Path | None = None,
    cols: int = 12,
    title: str = "Layout",
) -> None:
    """Write the layout to ``output`` if given, otherwise print it in ``fmt``."""
    if output:
        path = dump_layout(layout, output)
        console.print(f"[green]Wrote[/green] {len(layout)} items to {path}")
        return

    if fmt == "json":
        console.print_json(json.dumps(LayoutSerializer.to_dicts(layout), indent=2))
    elif fmt == "yaml":
        console.print(LayoutSerializer.to_yaml(layout), highlight=False, markup=False)
    else:
        console.print(layout_table(layout, title))
        console.print(render_grid(layout, cols), highlight=False, markup=False)
