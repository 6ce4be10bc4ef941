"""Rectangle primitives shared by every layout operation."""

from __future__ import annotations

from collections.abc import Iterable

from gridflow.layout.models import ItemGeometry, LayoutItem


def collides(a: LayoutItem, b: LayoutItem) -> bool:
    """True when two different items overlap on both axes.

    Touching edges (``a.x + a.w == b.x``) do not count.
    """
    if a.i == b.i:
        return False
    if a.x + a.w <= b.x:
        return False  # a is left of b
    if a.x >= b.x + b.w:
        return False  # a is right of b
    if a.y + a.h <= b.y:
        return False  # a is above b
    if a.y >= b.y + b.h:
        return False  # a is below b
    return True


def get_first_collision(layout: Iterable[LayoutItem], item: LayoutItem) -> LayoutItem | None:
    for other in layout:
        if collides(other, item):
            return other
    return None


def get_all_collisions(layout: Iterable[LayoutItem], item: LayoutItem) -> list[LayoutItem]:
    return [other for other in layout if collides(other, item)]


def get_statics(layout: Iterable[LayoutItem]) -> list[LayoutItem]:
    return [item for item in layout if item.static]


def get_layout_item(layout: Iterable[LayoutItem], key: str) -> LayoutItem | None:
    for item in layout:
        if item.i == key:
            return item
    return None


def bottom(layout: Iterable[ItemGeometry]) -> int:
    """Lowest occupied row edge (``max(y + h)``), 0 for an empty layout."""
    return max((item.y + item.h for item in layout), default=0)


def right(layout: Iterable[ItemGeometry]) -> int:
    """Rightmost occupied column edge (``max(x + w)``), 0 for an empty layout."""
    return max((item.x + item.w for item in layout), default=0)


def within_columns(item: ItemGeometry, cols: int) -> bool:
    return item.x >= 0 and item.x + item.w <= cols
