"""Move one item to a target cell and push colliding neighbours out of the way.

The cascade is recursive: every displaced item may in turn displace others.
A visited set scoped to one top-level call keeps an item from being pushed
back and forth forever; it is discarded when the call returns.
"""

from __future__ import annotations

import logging

from gridflow.layout.geometry import get_all_collisions, get_first_collision, get_layout_item
from gridflow.layout.models import CompactType, LayoutItem, Toggle, clone_layout
from gridflow.layout.sorting import sort_layout_items

logger = logging.getLogger(__name__)

_PROBE_KEY = "__probe__"


def move_element(
    layout: list[LayoutItem],
    item: LayoutItem,
    x: int | None,
    y: int | None,
    *,
    is_user_action: bool = False,
    prevent_collision: bool = False,
    compact_type: CompactType | None = CompactType.VERTICAL,
    cols: int = 12,
    allow_overlap: bool = False,
) -> list[LayoutItem]:
    """Move ``item`` to ``(x, y)`` and cascade collisions.

    ``x`` or ``y`` may be ``None`` to keep that coordinate. The input layout
    is never mutated. The input list itself is returned when nothing
    changes: the item is static and not explicitly draggable, the target is
    its current cell, the key is not in the layout, or ``prevent_collision``
    rejected the move.
    """
    moving = get_layout_item(layout, item.i)
    if moving is None:
        logger.debug("Move ignored: %s is not in the layout", item.i)
        return layout
    if _is_pinned(moving) or (x is None and y is None) or (moving.x == x and moving.y == y):
        return layout

    working = clone_layout(layout)
    moving = get_layout_item(working, item.i)
    cascade = _Cascade(compact_type, cols)
    result = cascade.move(
        working, moving, x, y,
        is_user_action=is_user_action,
        prevent_collision=prevent_collision,
        allow_overlap=allow_overlap,
    )
    if result is None:
        return layout
    return result


def move_element_away_from_collision(
    layout: list[LayoutItem],
    collides_with: LayoutItem,
    item_to_move: LayoutItem,
    *,
    is_user_action: bool = False,
    compact_type: CompactType | None = CompactType.VERTICAL,
    cols: int = 12,
) -> list[LayoutItem]:
    """Displace ``item_to_move`` out of ``collides_with``.

    Operates on a copy; both items are looked up by key in it.
    """
    working = clone_layout(layout)
    target = get_layout_item(working, collides_with.i)
    moving = get_layout_item(working, item_to_move.i)
    if target is None or moving is None:
        return layout
    cascade = _Cascade(compact_type, cols)
    return cascade.move_away(working, target, moving, is_user_action)


def displace_collisions(
    layout: list[LayoutItem],
    item: LayoutItem,
    *,
    compact_type: CompactType | None = CompactType.VERTICAL,
    cols: int = 12,
) -> list[LayoutItem]:
    """Push everything overlapping ``item`` away from it, as if it had just been dropped there.

    Used after a merge, when a group's new footprint covers its neighbours.
    """
    working = clone_layout(layout)
    placed = get_layout_item(working, item.i)
    if placed is None:
        return layout
    cascade = _Cascade(compact_type, cols)
    placed.moved = True
    cascade.visited.add(placed.i)
    collisions = get_all_collisions(sort_layout_items(working, compact_type), placed)
    return cascade.resolve(working, placed, collisions, is_user_action=False)


def _is_pinned(item: LayoutItem) -> bool:
    return item.static and item.is_draggable is not Toggle.ENABLED


class _Cascade:
    """State of one top-level move: axis, grid width, and the visited keys."""

    def __init__(self, compact_type: CompactType | None, cols: int):
        self.compact_type = compact_type
        self.cols = cols
        self.visited: set[str] = set()

    @property
    def vertical(self) -> bool:
        return self.compact_type == CompactType.VERTICAL

    @property
    def horizontal(self) -> bool:
        return self.compact_type == CompactType.HORIZONTAL

    def move(
        self,
        layout: list[LayoutItem],
        item: LayoutItem,
        x: int | None,
        y: int | None,
        *,
        is_user_action: bool,
        prevent_collision: bool,
        allow_overlap: bool = False,
    ) -> list[LayoutItem] | None:
        """Mutating move inside the working copy.

        Returns ``None`` when ``prevent_collision`` reverted the move.
        """
        if _is_pinned(item):
            return layout
        if item.x == x and item.y == y:
            return layout

        logger.debug("Moving %s to [%s,%s] from [%d,%d]", item.i, x, y, item.x, item.y)
        old_x, old_y = item.x, item.y
        if x is not None:
            item.x = x
        if y is not None:
            item.y = y
        item.moved = True
        self.visited.add(item.i)

        # Nearest obstacle first: walk the sorted layout backwards when moving up
        ordered = sort_layout_items(layout, self.compact_type)
        if self._moving_up(old_x, old_y, x, y):
            ordered.reverse()
        collisions = get_all_collisions(ordered, item)

        if collisions and allow_overlap:
            # layout is already a private copy
            return layout
        if collisions and prevent_collision:
            logger.debug("Collision prevented on %s, reverting", item.i)
            item.x, item.y = old_x, old_y
            item.moved = False
            self.visited.discard(item.i)
            return None

        return self.resolve(layout, item, collisions, is_user_action=is_user_action)

    def resolve(
        self,
        layout: list[LayoutItem],
        item: LayoutItem,
        collisions: list[LayoutItem],
        *,
        is_user_action: bool,
    ) -> list[LayoutItem]:
        for collision in collisions:
            if collision.i in self.visited:
                continue
            logger.debug(
                "Resolving collision between %s at [%d,%d] and %s at [%d,%d]",
                item.i, item.x, item.y, collision.i, collision.x, collision.y,
            )
            # Statics hold their ground: the moving item gets pushed instead
            if collision.static:
                layout = self.move_away(layout, collision, item, is_user_action)
            else:
                layout = self.move_away(layout, item, collision, is_user_action)
        return layout

    def move_away(
        self,
        layout: list[LayoutItem],
        collides_with: LayoutItem,
        item_to_move: LayoutItem,
        is_user_action: bool,
    ) -> list[LayoutItem]:
        prevent_collision = collides_with.static

        # Only the primary collision tries the far side; further down the
        # cascade it produces unwanted swaps.
        if is_user_action:
            is_user_action = False
            if self.compact_type is None:
                return self._shove_aside(layout, collides_with, item_to_move)

            probe = LayoutItem(
                i=_PROBE_KEY,
                x=max(collides_with.x - item_to_move.w, 0) if self.horizontal else item_to_move.x,
                y=max(collides_with.y - item_to_move.h, 0) if self.vertical else item_to_move.y,
                w=item_to_move.w,
                h=item_to_move.h,
            )
            first_collision = get_first_collision(layout, probe)
            if first_collision is None:
                logger.debug("Reverse collision on %s up to [%d,%d]", item_to_move.i, probe.x, probe.y)
                return self._step(
                    layout, item_to_move,
                    probe.x if self.horizontal else None,
                    probe.y if self.vertical else None,
                    is_user_action, prevent_collision,
                )
            collision_north = first_collision.y + first_collision.h > collides_with.y
            collision_west = collides_with.x + collides_with.w > first_collision.x
            if collision_north and self.vertical:
                return self._step(
                    layout, item_to_move, None, collides_with.y + 1, is_user_action, prevent_collision
                )
            if collision_west and self.horizontal:
                return self._step(
                    layout, collides_with, item_to_move.x, None, is_user_action, prevent_collision
                )

        # One cell along the axis; free placement steps down a row
        if self.horizontal:
            return self._step(layout, item_to_move, item_to_move.x + 1, None, is_user_action, prevent_collision)
        return self._step(layout, item_to_move, None, item_to_move.y + 1, is_user_action, prevent_collision)

    def _shove_aside(
        self,
        layout: list[LayoutItem],
        collides_with: LayoutItem,
        item_to_move: LayoutItem,
    ) -> list[LayoutItem]:
        """Free placement: slide past ``collides_with`` sideways, else swap rows."""
        prevent_collision = collides_with.static
        if 2 * item_to_move.x + item_to_move.w >= 2 * collides_with.x + collides_with.w:
            x = collides_with.x + collides_with.w
        else:
            x = collides_with.x - item_to_move.w

        probe = item_to_move.model_copy(update={"x": x})
        if 0 <= x and x + item_to_move.w <= self.cols and get_first_collision(layout, probe) is None:
            logger.debug("Shoving %s aside to [%d,%d]", item_to_move.i, x, item_to_move.y)
            return self._step(layout, item_to_move, x, None, False, prevent_collision)

        if collides_with.static:
            return self._step(layout, item_to_move, None, item_to_move.y + 1, False, prevent_collision)

        logger.debug("Swapping rows of %s and %s", collides_with.i, item_to_move.i)
        collides_with.y = item_to_move.y
        item_to_move.y = item_to_move.y + item_to_move.h
        return layout

    def _step(
        self,
        layout: list[LayoutItem],
        item: LayoutItem,
        x: int | None,
        y: int | None,
        is_user_action: bool,
        prevent_collision: bool,
    ) -> list[LayoutItem]:
        result = self.move(
            layout, item, x, y,
            is_user_action=is_user_action,
            prevent_collision=prevent_collision,
        )
        return layout if result is None else result

    def _moving_up(self, old_x: int, old_y: int, x: int | None, y: int | None) -> bool:
        if self.vertical and y is not None:
            return old_y >= y
        if self.horizontal and x is not None:
            return old_x >= x
        return False
