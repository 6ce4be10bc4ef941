"""Stateful front door for interactive layout editing.

``GridEngine`` holds the authoritative layout between gestures and turns
drag, resize, drop and remove intents into calls on the pure layout
functions. Every intent returns a ``LayoutChange``; ``changed`` tells the
host whether the committed layout differs from what it was before.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from gridflow.config import GridSettings, get_settings
from gridflow.exceptions import LayoutValidationError
from gridflow.interaction.grouping_state import GroupingPhase, GroupingTracker
from gridflow.interaction.scheduler import ManualScheduler, Scheduler
from gridflow.layout.bounds import correct_bounds
from gridflow.layout.compactor import compact
from gridflow.layout.geometry import get_all_collisions, get_layout_item
from gridflow.layout.grouping import (
    find_group_of,
    group_columns,
    merge_items,
    remove_from_group,
    replace_group_children,
)
from gridflow.layout.models import (
    ItemDescriptor,
    LayoutItem,
    ResizeHandle,
    clone_item,
    clone_layout,
    is_item_bounded,
    is_item_draggable,
    is_item_resizable,
    make_item,
)
from gridflow.layout.mover import displace_collisions, move_element
from gridflow.layout.synchronizer import synchronize_layout
from gridflow.layout.validator import validate_layout

logger = logging.getLogger(__name__)


@dataclass
class LayoutChange:
    """Result of one intent: the current layout and whether it changed."""

    layout: list[LayoutItem] = field(default_factory=list)
    changed: bool = False


@dataclass
class _Gesture:
    key: str
    original: LayoutItem
    layout_before: list[LayoutItem]
    placeholder: LayoutItem | None = None


def layouts_equal(a: list[LayoutItem], b: list[LayoutItem]) -> bool:
    """Deep equality over every field, children included."""
    return [item.model_dump() for item in a] == [item.model_dump() for item in b]


class GridEngine:
    """Interactive editor over one grid.

    Args:
        layout: Initial items. Validated, bounds-corrected and compacted.
        settings: Grid settings; defaults to the process-wide settings.
        scheduler: Timer source for hover-to-group. Defaults to a
            ``ManualScheduler`` that only fires when advanced.
    """

    def __init__(
        self,
        layout: list[LayoutItem],
        settings: GridSettings | None = None,
        scheduler: Scheduler | None = None,
    ):
        self.settings = settings or get_settings()
        self.scheduler = scheduler or ManualScheduler()
        self.grouping = GroupingTracker(self.scheduler, self.settings.group_merge_delay_ms)

        validate_layout(layout)
        initial = clone_layout(layout)
        correct_bounds(initial, self.cols)
        self.layout: list[LayoutItem] = self._settle(initial)

        self._drag: _Gesture | None = None
        self._resize: _Gesture | None = None

    @property
    def cols(self) -> int:
        return self.settings.cols

    @property
    def placeholder(self) -> LayoutItem | None:
        """Where the active drag or resize would land, for display."""
        gesture = self._drag or self._resize
        return gesture.placeholder if gesture else None

    @property
    def grouping_phase(self) -> GroupingPhase:
        return self.grouping.phase

    # -- Dragging ----------------------------------------------------------

    def start_drag(self, key: str) -> LayoutChange:
        item = get_layout_item(self.layout, key)
        if item is None or not is_item_draggable(item, self.settings.is_draggable):
            logger.debug("Drag of %s ignored", key)
            return self._unchanged()

        self.grouping.reset()
        self._drag = _Gesture(key, clone_item(item), self.layout, placeholder=clone_item(item))
        return self._unchanged()

    def drag_to(self, key: str, x: int, y: int) -> LayoutChange:
        """Track the pointer; the layout itself only changes on release."""
        if self._drag is None or self._drag.key != key:
            return self._unchanged()

        x, y = self._clamp_position(self._drag.original, x, y)
        self._drag.placeholder = self._drag.original.model_copy(update={"x": x, "y": y})
        self.grouping.update(self.layout, key, x, y)
        return self._unchanged()

    def end_drag(self, key: str, x: int, y: int) -> LayoutChange:
        """Release: merge into the hovered item when droppable, otherwise move."""
        if self._drag is None or self._drag.key != key:
            return self._unchanged()

        gesture = self._drag
        target = self.grouping.merge_target
        self._drag = None
        self.grouping.reset()

        item = get_layout_item(self.layout, key)
        if item is None:
            return self._unchanged()
        x, y = self._clamp_position(item, x, y)

        new_layout = self.layout
        if target is not None and get_layout_item(self.layout, target) is not None:
            new_layout = merge_items(
                self.layout, key, target, self.cols,
                compact_type=self.settings.compact_type,
                policy=self.settings.group_layout_policy,
                wrap_row_height=self.settings.group_wrap_row_height,
                key_prefix=self.settings.group_key_prefix,
            )
        if new_layout is self.layout:
            new_layout = move_element(
                self.layout, item, x, y,
                is_user_action=True,
                prevent_collision=self.settings.prevent_collision,
                compact_type=self.settings.compact_type,
                cols=self.cols,
                allow_overlap=self.settings.allow_overlap,
            )
        return self._commit(self._settle(new_layout), gesture.layout_before)

    def cancel_drag(self) -> LayoutChange:
        """Abandon the drag; only the grouping timer is cleared."""
        self._drag = None
        self.grouping.reset()
        return self._unchanged()

    # -- Resizing ----------------------------------------------------------

    def start_resize(self, key: str) -> LayoutChange:
        item = get_layout_item(self.layout, key)
        if item is None or not is_item_resizable(item, self.settings.is_resizable):
            logger.debug("Resize of %s ignored", key)
            return self._unchanged()

        self._resize = _Gesture(key, clone_item(item), self.layout, placeholder=clone_item(item))
        return self._unchanged()

    def resize_to(self, key: str, w: int, h: int, handle: ResizeHandle | str = ResizeHandle.SE) -> LayoutChange:
        """Resize live from ``handle``; west and north handles move the origin."""
        if self._resize is None or self._resize.key != key:
            return self._unchanged()
        item = get_layout_item(self.layout, key)
        if item is None:
            return self._unchanged()

        handle = ResizeHandle(handle)
        w, h = self._clamp_size(item, w, h, handle)
        x, y = item.x, item.y
        if handle.moves_x:
            x = item.x + item.w - w
            if x < 0:
                x, w = 0, item.w
        if handle.moves_y:
            y = item.y + item.h - h
            if y < 0:
                y, h = 0, item.h
        should_move = handle.moves_x or handle.moves_y

        if self.settings.prevent_collision and not self.settings.allow_overlap:
            probe = item.model_copy(update={"x": x, "y": y, "w": w, "h": h})
            if get_all_collisions(self.layout, probe):
                logger.debug("Resize of %s would collide, keeping %dx%d", key, item.w, item.h)
                x, y, w, h = item.x, item.y, item.w, item.h
                should_move = False

        resized = item.model_copy(update={"w": w, "h": h})
        new_layout = [resized if other.i == key else other for other in self.layout]
        if should_move:
            new_layout = move_element(
                new_layout, resized, x, y,
                is_user_action=True,
                prevent_collision=self.settings.prevent_collision,
                compact_type=self.settings.compact_type,
                cols=self.cols,
                allow_overlap=self.settings.allow_overlap,
            )
        new_layout = self._settle(new_layout)
        self._resize.placeholder = get_layout_item(new_layout, key)
        return self._commit(new_layout, self.layout)

    def end_resize(self, key: str) -> LayoutChange:
        if self._resize is None or self._resize.key != key:
            return self._unchanged()
        gesture = self._resize
        self._resize = None
        return self._commit(self._settle(self.layout), gesture.layout_before)

    # -- Structural changes ------------------------------------------------

    def drop_external_item(self, descriptor: ItemDescriptor, x: int, y: int) -> LayoutChange:
        """Insert a new item dragged in from outside the grid at ``(x, y)``.

        Raises:
            LayoutValidationError: if the key is already in use.
        """
        if get_layout_item(self.layout, descriptor.key) or find_group_of(self.layout, descriptor.key):
            raise LayoutValidationError("Dropped item", [f"key '{descriptor.key}' is already in the layout"])

        item = make_item(descriptor.grid, descriptor.key)
        if item.w > self.cols:
            logger.debug("Capping %s width %d at %d columns", item.i, item.w, self.cols)
            item = item.model_copy(update={"w": self.cols})
        x, y = self._clamp_position(item, x, y)
        item = item.model_copy(update={"x": x, "y": y})
        new_layout = [*self.layout, item]
        if not self.settings.allow_overlap:
            new_layout = displace_collisions(
                new_layout, item, compact_type=self.settings.compact_type, cols=self.cols
            )
        logger.debug("Dropped %s at [%d,%d]", item.i, x, y)
        return self._commit(self._settle(new_layout), self.layout)

    def remove_item(self, key: str) -> LayoutChange:
        """Delete an item; a group child leaves its group, which may dissolve."""
        if get_layout_item(self.layout, key) is not None:
            new_layout = [item for item in self.layout if item.i != key]
        else:
            group = find_group_of(self.layout, key)
            if group is None:
                logger.debug("Remove ignored: %s is not in the layout", key)
                return self._unchanged()
            new_layout = remove_from_group(self.layout, group.i, key)
        return self._commit(self._settle(new_layout), self.layout)

    def synchronize(self, descriptors: list[ItemDescriptor]) -> LayoutChange:
        new_layout = synchronize_layout(
            self.layout, descriptors, self.cols,
            compact_type=self.settings.compact_type,
            allow_overlap=self.settings.allow_overlap,
        )
        return self._commit(new_layout, self.layout)

    # -- Groups ------------------------------------------------------------

    def for_group(self, group_key: str) -> GridEngine | None:
        """Engine over a group's children, in the group's own coordinates.

        Write the edited children back with ``update_group``.
        """
        group = get_layout_item(self.layout, group_key)
        if group is None or not group.is_group:
            return None
        settings = self.settings.model_copy(update={"cols": group_columns(group)})
        return GridEngine(group.children or [], settings=settings, scheduler=self.scheduler)

    def update_group(self, group_key: str, children: list[LayoutItem]) -> LayoutChange:
        new_layout = replace_group_children(
            self.layout, group_key, children,
            cols=self.cols, compact_type=self.settings.compact_type,
        )
        return self._commit(self._settle(new_layout), self.layout)

    # -- Helpers -----------------------------------------------------------

    def _settle(self, layout: list[LayoutItem]) -> list[LayoutItem]:
        if self.settings.allow_overlap:
            return layout
        return compact(layout, self.settings.compact_type, self.cols)

    def _commit(self, new_layout: list[LayoutItem], before: list[LayoutItem]) -> LayoutChange:
        self.layout = new_layout
        return LayoutChange(layout=new_layout, changed=not layouts_equal(before, new_layout))

    def _unchanged(self) -> LayoutChange:
        return LayoutChange(layout=self.layout, changed=False)

    def _clamp_position(self, item: LayoutItem, x: int, y: int) -> tuple[int, int]:
        """Keep the item inside the columns and, when bounded, above ``max_rows``."""
        x = max(0, min(x, self.cols - item.w))
        max_rows = self.settings.max_rows
        if max_rows is not None and is_item_bounded(item, self.settings.is_bounded, self.settings.is_draggable):
            y = min(y, max_rows - item.h)
        return x, max(0, y)

    def _clamp_size(self, item: LayoutItem, w: int, h: int, handle: ResizeHandle) -> tuple[int, int]:
        min_w = item.min_w or 1
        max_w = min(item.max_w or self.cols, self.cols)
        if not handle.moves_x:
            max_w = min(max_w, self.cols - item.x)
        w = max(min_w, min(w, max_w))
        h = max(item.min_h or 1, h)
        if item.max_h is not None:
            h = min(h, item.max_h)
        return w, h
