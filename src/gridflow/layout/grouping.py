"""Merge items into composite group items, and take them apart again.

A group owns its own coordinate space: its children are positioned
relative to the group's top-left cell, on a sub-grid whose column count is
the children's combined span. Only the group's footprint interacts with
the parent grid.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

from gridflow.layout.geometry import bottom, get_layout_item, right
from gridflow.layout.models import CompactType, GroupLayoutPolicy, LayoutItem, clone_item
from gridflow.layout.mover import displace_collisions

logger = logging.getLogger(__name__)


@dataclass
class GroupPlan:
    """Footprint and child placement chosen for a new group."""

    x: int
    y: int
    w: int
    h: int
    children: list[LayoutItem] = field(default_factory=list)
    orientation: str = "horizontal"


def iter_keys(layout: list[LayoutItem]) -> Iterator[str]:
    """Every key in the layout, including the children of groups."""
    for item in layout:
        yield item.i
        if item.children:
            yield from iter_keys(item.children)


def new_group_key(layout: list[LayoutItem], prefix: str = "group-") -> str:
    """Next ``prefix<n>`` key not already used anywhere in the layout."""
    used = set(iter_keys(layout))
    n = 1
    while f"{prefix}{n}" in used:
        n += 1
    return f"{prefix}{n}"


def find_group_of(layout: list[LayoutItem], key: str) -> LayoutItem | None:
    """The top-level group holding ``key`` as a child, if any."""
    for item in layout:
        if item.is_group and any(child.i == key for child in item.children or []):
            return item
    return None


def group_columns(group: LayoutItem) -> int:
    """Column count of a group's internal sub-grid."""
    return max(1, right(group.children or []))


def _as_child(item: LayoutItem, x: int, y: int) -> LayoutItem:
    return item.model_copy(update={"x": x, "y": y, "moved": False})


def plan_group_layout(
    dragging: LayoutItem,
    target: LayoutItem,
    cols: int,
    policy: GroupLayoutPolicy = GroupLayoutPolicy.FIT_FIRST,
) -> GroupPlan:
    """Choose side-by-side or stacked placement for two items.

    The group is anchored at the target's cell (the drop destination). The
    dragged item always comes first, at the group's origin.
    """
    horizontal = GroupPlan(
        x=target.x,
        y=target.y,
        w=dragging.w + target.w,
        h=max(dragging.h, target.h),
        children=[_as_child(dragging, 0, 0), _as_child(target, dragging.w, 0)],
        orientation="horizontal",
    )
    vertical = GroupPlan(
        x=target.x,
        y=target.y,
        w=max(dragging.w, target.w),
        h=dragging.h + target.h,
        children=[_as_child(dragging, 0, 0), _as_child(target, 0, dragging.h)],
        orientation="vertical",
    )

    fits = target.x + horizontal.w <= cols
    if policy == GroupLayoutPolicy.MIN_AREA:
        chosen = horizontal if fits and horizontal.w * horizontal.h <= vertical.w * vertical.h else vertical
    else:
        chosen = horizontal if fits else vertical

    # Anchor stays put unless the footprint would leave the grid
    if chosen.x + chosen.w > cols:
        chosen.x = max(0, cols - chosen.w)
    return chosen


def pack_group_children(
    children: list[LayoutItem],
    group_x: int,
    cols: int,
    wrap_row_height: int | None = 2,
) -> tuple[list[LayoutItem], int, int]:
    """Re-flow children left to right, wrapping at the parent grid's edge.

    A row wraps when the next child would cross ``cols`` measured from the
    group's absolute ``group_x``. Each wrap advances ``wrap_row_height``
    rows, or the tallest child of the finished row when that is ``None``.

    Returns:
        (packed children, group width, group height)
    """
    packed: list[LayoutItem] = []
    cursor_x = 0
    cursor_y = 0
    row_height = 0
    width = 0
    height = 0

    for child in children:
        if group_x + cursor_x + child.w > cols and cursor_x > 0:
            cursor_x = 0
            cursor_y += wrap_row_height if wrap_row_height is not None else row_height
            row_height = 0

        packed.append(_as_child(child, cursor_x, cursor_y))
        cursor_x += child.w
        row_height = max(row_height, child.h)
        width = max(width, cursor_x)
        height = max(height, cursor_y + child.h)

    return packed, width, height


def create_group(
    layout: list[LayoutItem],
    dragging: LayoutItem,
    target: LayoutItem,
    cols: int,
    *,
    key: str,
    policy: GroupLayoutPolicy = GroupLayoutPolicy.FIT_FIRST,
) -> list[LayoutItem]:
    """Replace two plain items with a new group holding both.

    The group takes the target's slot in the list order.
    """
    plan = plan_group_layout(dragging, target, cols, policy)
    group = LayoutItem(i=key, x=plan.x, y=plan.y, w=plan.w, h=plan.h, is_group=True, children=plan.children)

    result: list[LayoutItem] = []
    for item in layout:
        if item.i == target.i:
            result.append(group)
        elif item.i != dragging.i:
            result.append(item)

    logger.info(
        "Grouped %s onto %s as %s at [%d,%d] %dx%d (%s)",
        dragging.i, target.i, key, plan.x, plan.y, plan.w, plan.h, plan.orientation,
    )
    return result


def add_to_group(
    layout: list[LayoutItem],
    dragging: LayoutItem,
    group: LayoutItem,
    cols: int,
    *,
    wrap_row_height: int | None = 2,
) -> list[LayoutItem]:
    """Append a plain item to an existing group and re-pack its children.

    A child too wide for the columns right of the group shifts the group
    left so the re-packed footprint stays inside the grid.
    """
    members = [*(group.children or []), dragging]
    x = group.x
    children, w, h = pack_group_children(members, x, cols, wrap_row_height)
    if x + w > cols:
        x = max(0, cols - w)
        children, w, h = pack_group_children(members, x, cols, wrap_row_height)
    expanded = group.model_copy(update={"x": x, "children": children, "w": w, "h": h})

    result: list[LayoutItem] = []
    for item in layout:
        if item.i == group.i:
            result.append(expanded)
        elif item.i != dragging.i:
            result.append(item)

    logger.info("Added %s to %s, now %dx%d with %d children", dragging.i, group.i, w, h, len(children))
    return result


def merge_items(
    layout: list[LayoutItem],
    dragged_key: str,
    target_key: str,
    cols: int,
    *,
    compact_type: CompactType | None = CompactType.VERTICAL,
    policy: GroupLayoutPolicy = GroupLayoutPolicy.FIT_FIRST,
    wrap_row_height: int | None = 2,
    key_prefix: str = "group-",
) -> list[LayoutItem]:
    """Drop ``dragged_key`` onto ``target_key``.

    Plain onto plain creates a group, plain onto a group joins it. Any other
    combination is unsupported and leaves the layout unchanged, as does a
    missing key. Items overlapped by the resulting group are pushed away
    from it; the caller compacts afterwards.
    """
    dragging = get_layout_item(layout, dragged_key)
    target = get_layout_item(layout, target_key)
    if dragging is None or target is None or dragging.i == target.i:
        logger.debug("Merge ignored: %s onto %s", dragged_key, target_key)
        return layout

    if not dragging.is_group and not target.is_group:
        group_key = new_group_key(layout, key_prefix)
        merged = create_group(layout, dragging, target, cols, key=group_key, policy=policy)
    elif not dragging.is_group and target.is_group:
        group_key = target.i
        merged = add_to_group(layout, dragging, target, cols, wrap_row_height=wrap_row_height)
    else:
        logger.warning(
            "Merging %s onto %s is not supported (group onto %s)",
            dragged_key, target_key, "group" if target.is_group else "item",
        )
        return layout

    group = get_layout_item(merged, group_key)
    return displace_collisions(merged, group, compact_type=compact_type, cols=cols)


def _without_child(group: LayoutItem, child_key: str) -> LayoutItem | None:
    """What is left of ``group`` once ``child_key`` is gone.

    A single survivor replaces the group at its origin; nothing left means
    the group disappears.
    """
    remaining = [c for c in group.children or [] if c.i != child_key]
    if len(remaining) == 1:
        logger.info("Dissolved %s; %s returns to [%d,%d]", group.i, remaining[0].i, group.x, group.y)
        return _as_child(remaining[0], group.x, group.y)
    if remaining:
        return group.model_copy(
            update={"children": remaining, "w": max(1, right(remaining)), "h": max(1, bottom(remaining))}
        )
    return None


def remove_from_group(layout: list[LayoutItem], group_key: str, child_key: str) -> list[LayoutItem]:
    """Delete a child outright; the group shrinks or dissolves as on detach."""
    group = get_layout_item(layout, group_key)
    if group is None or not group.is_group or get_layout_item(group.children or [], child_key) is None:
        return layout

    replacement = _without_child(group, child_key)
    result: list[LayoutItem] = []
    for item in layout:
        if item.i != group.i:
            result.append(item)
        elif replacement is not None:
            result.append(replacement)
    logger.info("Removed %s from %s", child_key, group_key)
    return result


def detach_from_group(
    layout: list[LayoutItem],
    group_key: str,
    child_key: str,
    cols: int,
    *,
    compact_type: CompactType | None = CompactType.VERTICAL,
) -> list[LayoutItem]:
    """Take ``child_key`` out of its group and put it back on the parent grid.

    The detached item lands directly under what remains of the group. A
    group left with a single child dissolves: that child returns to the
    group's origin, which is where the merge target originally stood.
    """
    group = get_layout_item(layout, group_key)
    if group is None or not group.is_group:
        return layout
    child = get_layout_item(group.children or [], child_key)
    if child is None:
        return layout

    replacement = _without_child(group, child_key)
    base_h = replacement.h if replacement is not None else 0
    detached = _as_child(child, max(0, min(group.x, cols - child.w)), group.y + base_h)

    result: list[LayoutItem] = []
    for item in layout:
        if item.i == group.i:
            if replacement is not None:
                result.append(replacement)
            result.append(detached)
        else:
            result.append(item)

    logger.info("Detached %s from %s to [%d,%d]", child_key, group_key, detached.x, detached.y)
    return displace_collisions(result, detached, compact_type=compact_type, cols=cols)


def replace_group_children(
    layout: list[LayoutItem],
    group_key: str,
    children: list[LayoutItem],
    *,
    cols: int,
    compact_type: CompactType | None = CompactType.VERTICAL,
) -> list[LayoutItem]:
    """Store an edited sub-layout back into its group.

    The group keeps its width (the sub-grid's column count); its height
    follows the children's bottom edge.
    """
    group = get_layout_item(layout, group_key)
    if group is None or not group.is_group:
        return layout

    updated = group.model_copy(
        update={"children": [clone_item(c) for c in children], "h": max(1, bottom(children))}
    )
    result = [updated if item.i == group_key else item for item in layout]
    if updated.h > group.h:
        return displace_collisions(result, updated, compact_type=compact_type, cols=cols)
    return result
