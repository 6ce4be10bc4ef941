"""gridflow compact / move / merge / detach: Apply one layout operation to a file."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from gridflow.cli.output import check_format, console, emit_layout, resolve_settings
from gridflow.config import GridSettings
from gridflow.exceptions import GridFlowError
from gridflow.layout.bounds import correct_bounds
from gridflow.layout.compactor import compact as compact_layout
from gridflow.layout.geometry import get_layout_item
from gridflow.layout.grouping import detach_from_group, merge_items
from gridflow.layout.models import LayoutItem
from gridflow.layout.mover import move_element
from gridflow.layout.serializer import load_layout

AxisOption = Annotated[
    str | None, typer.Option("--axis", "-a", help="Compaction axis: vertical, horizontal or none")
]
ColsOption = Annotated[int | None, typer.Option("--cols", "-c", help="Grid column count")]
OutputOption = Annotated[Path | None, typer.Option("--output", "-o", help="Write the result to this file")]
FormatOption = Annotated[str, typer.Option("--format", "-f", help="Output format: table, json or yaml")]


def _settle(layout: list[LayoutItem], settings: GridSettings) -> list[LayoutItem]:
    if settings.allow_overlap:
        return layout
    return compact_layout(layout, settings.compact_type, settings.cols)


def _fail(e: GridFlowError) -> typer.Exit:
    console.print(f"[red]Error:[/red] {e}")
    return typer.Exit(1)


def compact(
    file: Annotated[Path, typer.Argument(help="Layout file (.json, .yaml or .yml)")],
    axis: AxisOption = None,
    cols: ColsOption = None,
    output: OutputOption = None,
    fmt: FormatOption = "table",
) -> None:
    """Correct bounds and remove gaps along the compaction axis."""
    try:
        check_format(fmt)
        settings = resolve_settings(compact_type=axis, cols=cols)
        layout = load_layout(file)
        correct_bounds(layout, settings.cols)
        result = compact_layout(layout, settings.compact_type, settings.cols, settings.allow_overlap)
        emit_layout(result, fmt=fmt, output=output, cols=settings.cols, title=f"{file.name} (compacted)")
    except GridFlowError as e:
        raise _fail(e) from e


def move(
    file: Annotated[Path, typer.Argument(help="Layout file (.json, .yaml or .yml)")],
    key: Annotated[str, typer.Argument(help="Key of the item to move")],
    x: Annotated[int, typer.Argument(help="Target column")],
    y: Annotated[int, typer.Argument(help="Target row")],
    prevent_collision: Annotated[
        bool, typer.Option("--prevent-collision", help="Refuse the move instead of displacing items")
    ] = False,
    axis: AxisOption = None,
    cols: ColsOption = None,
    output: OutputOption = None,
    fmt: FormatOption = "table",
) -> None:
    """Move one item as a user drag would, then compact."""
    try:
        check_format(fmt)
        settings = resolve_settings(
            compact_type=axis, cols=cols, prevent_collision=prevent_collision or None
        )
        layout = load_layout(file)
        item = get_layout_item(layout, key)
        if item is None:
            console.print(f"[red]No item with key[/red] '{key}'")
            raise typer.Exit(1)

        moved = move_element(
            layout, item, x, y,
            is_user_action=True,
            prevent_collision=settings.prevent_collision,
            compact_type=settings.compact_type,
            cols=settings.cols,
            allow_overlap=settings.allow_overlap,
        )
        if moved is layout:
            console.print(f"[yellow]'{key}' was not moved[/yellow]")
        emit_layout(_settle(moved, settings), fmt=fmt, output=output, cols=settings.cols, title=f"{file.name} (moved {key})")
    except GridFlowError as e:
        raise _fail(e) from e


def merge(
    file: Annotated[Path, typer.Argument(help="Layout file (.json, .yaml or .yml)")],
    dragged: Annotated[str, typer.Argument(help="Key of the item being dropped")],
    target: Annotated[str, typer.Argument(help="Key of the item or group it is dropped on")],
    policy: Annotated[
        str | None, typer.Option("--policy", "-p", help="New group arrangement: fit_first or min_area")
    ] = None,
    axis: AxisOption = None,
    cols: ColsOption = None,
    output: OutputOption = None,
    fmt: FormatOption = "table",
) -> None:
    """Group DRAGGED with TARGET, or add it to TARGET when that is a group."""
    try:
        check_format(fmt)
        settings = resolve_settings(compact_type=axis, cols=cols, group_layout_policy=policy)
        layout = load_layout(file)
        for key in (dragged, target):
            if get_layout_item(layout, key) is None:
                console.print(f"[red]No item with key[/red] '{key}'")
                raise typer.Exit(1)

        merged = merge_items(
            layout, dragged, target, settings.cols,
            compact_type=settings.compact_type,
            policy=settings.group_layout_policy,
            wrap_row_height=settings.group_wrap_row_height,
            key_prefix=settings.group_key_prefix,
        )
        if merged is layout:
            console.print(f"[yellow]Cannot merge '{dragged}' onto '{target}'[/yellow]")
            raise typer.Exit(1)
        emit_layout(_settle(merged, settings), fmt=fmt, output=output, cols=settings.cols, title=f"{file.name} (merged)")
    except GridFlowError as e:
        raise _fail(e) from e


def detach(
    file: Annotated[Path, typer.Argument(help="Layout file (.json, .yaml or .yml)")],
    group: Annotated[str, typer.Argument(help="Key of the group")],
    child: Annotated[str, typer.Argument(help="Key of the child to take out")],
    axis: AxisOption = None,
    cols: ColsOption = None,
    output: OutputOption = None,
    fmt: FormatOption = "table",
) -> None:
    """Take CHILD out of GROUP and place it below the group."""
    try:
        check_format(fmt)
        settings = resolve_settings(compact_type=axis, cols=cols)
        layout = load_layout(file)
        detached = detach_from_group(layout, group, child, settings.cols, compact_type=settings.compact_type)
        if detached is layout:
            console.print(f"[red]'{child}' is not a child of group[/red] '{group}'")
            raise typer.Exit(1)
        emit_layout(_settle(detached, settings), fmt=fmt, output=output, cols=settings.cols, title=f"{file.name} (detached {child})")
    except GridFlowError as e:
        raise _fail(e) from e
