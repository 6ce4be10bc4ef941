"""Clamp items back inside the grid's columns."""

from __future__ import annotations

from gridflow.layout.geometry import get_first_collision, get_statics
from gridflow.layout.models import LayoutItem


def correct_bounds(
    layout: list[LayoutItem],
    cols: int,
    *,
    legacy_full_width: bool = False,
) -> list[LayoutItem]:
    """Pull every item inside ``[0, cols)``. Mutates and returns ``layout``.

    Right overflow shifts the item left. Left overflow pins it to column 0;
    the width is kept (capped at ``cols``) unless ``legacy_full_width`` asks
    for the old behaviour of stretching it across the whole grid.

    Statics that land on an earlier obstacle step down a row at a time until
    clear. Movable overlaps are left for the next compaction pass.
    """
    collides_with = get_statics(layout)
    for item in layout:
        if item.x + item.w > cols:
            item.x = cols - item.w
        if item.x < 0:
            item.x = 0
            item.w = cols if legacy_full_width else min(item.w, cols)

        if not item.static:
            collides_with.append(item)
        else:
            while get_first_collision(collides_with, item) is not None:
                item.y += 1
    return layout
