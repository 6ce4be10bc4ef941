"""Gravity compaction: remove gaps along one axis without overlapping items.

Algorithm:
1. Static items seed the set of obstacles; they never move.
2. Movable items are visited in row-major (vertical) or column-major
   (horizontal) order.
3. Each item slides toward the origin while it stays clear of the
   obstacles, then is pushed back out of any obstacle it still overlaps,
   shoving later items along the axis first.
4. The settled item becomes an obstacle for the items after it.
"""

from __future__ import annotations

import logging

from gridflow.layout.geometry import bottom, collides, get_first_collision, get_statics
from gridflow.layout.models import CompactType, LayoutItem, clone_layout
from gridflow.layout.sorting import sort_layout_items

logger = logging.getLogger(__name__)

_SPAN_FOR_AXIS = {"x": "w", "y": "h"}


def compact(
    layout: list[LayoutItem],
    compact_type: CompactType | None,
    cols: int,
    allow_overlap: bool = False,
) -> list[LayoutItem]:
    """Return a compacted copy of ``layout`` in the input order.

    Input items are not mutated. Every ``moved`` flag is cleared on the way
    out. Without an axis, overlaps are still pushed apart (downward) unless
    ``allow_overlap`` is set, in which case items pass through unchanged.
    """
    if not layout:
        return []

    working = clone_layout(layout)
    compare_with = get_statics(working)

    ordered = sort_layout_items(working, compact_type)
    for item in ordered:
        if not item.static:
            compact_item(compare_with, item, compact_type, cols, ordered, allow_overlap)
            compare_with.append(item)
        item.moved = False

    logger.debug("Compacted %d items (axis=%s, cols=%d)", len(working), compact_type, cols)
    return working


def compact_item(
    compare_with: list[LayoutItem],
    item: LayoutItem,
    compact_type: CompactType | None,
    cols: int,
    full_layout: list[LayoutItem],
    allow_overlap: bool = False,
) -> LayoutItem:
    """Settle one item against ``compare_with``. Mutates ``item``."""
    vertical = compact_type == CompactType.VERTICAL
    horizontal = compact_type == CompactType.HORIZONTAL

    if vertical:
        # A huge y means "append at the bottom"
        item.y = min(bottom(compare_with), item.y)
        while item.y > 0 and get_first_collision(compare_with, item) is None:
            item.y -= 1
    elif horizontal:
        while item.x > 0 and get_first_collision(compare_with, item) is None:
            item.x -= 1

    while not (compact_type is None and allow_overlap):
        collision = get_first_collision(compare_with, item)
        if collision is None:
            break
        if horizontal:
            resolve_compaction_collision(full_layout, item, collision.x + collision.w, "x")
        else:
            resolve_compaction_collision(full_layout, item, collision.y + collision.h, "y")

        # Rows cannot grow sideways forever: wrap to the next row and retry
        if horizontal and item.x + item.w > cols:
            item.x = cols - item.w
            item.y += 1
            while item.x > 0 and get_first_collision(compare_with, item) is None:
                item.x -= 1

    item.y = max(item.y, 0)
    item.x = max(item.x, 0)
    return item


def resolve_compaction_collision(
    layout: list[LayoutItem],
    item: LayoutItem,
    move_to: int,
    axis: str,
) -> None:
    """Move ``item`` to ``move_to`` on ``axis``, first shoving later items it would hit.

    ``layout`` must be sorted along the compaction axis; only items after
    ``item`` in that order are considered.
    """
    span = _SPAN_FOR_AXIS[axis]
    setattr(item, axis, getattr(item, axis) + 1)
    index = next((idx for idx, other in enumerate(layout) if other.i == item.i), -1)

    for other in layout[index + 1:]:
        if other.static:
            continue
        if collides(item, other):
            resolve_compaction_collision(layout, other, move_to + getattr(item, span), axis)

    setattr(item, axis, move_to)
