"""Hover-to-group state machine driven during a drag.

Idle -> Targeting when the dragged item overlaps another non-static item,
arming the merge timer. Targeting -> Droppable when the timer fires. A new
target cancels the running timer and starts over; losing the overlap goes
back to Idle. At most one timer is ever live.
"""

from __future__ import annotations

import logging
from enum import Enum

from gridflow.config import DEFAULT_GROUP_MERGE_DELAY_MS
from gridflow.interaction.scheduler import Scheduler, TimerHandle
from gridflow.layout.geometry import collides, get_layout_item
from gridflow.layout.models import LayoutItem

logger = logging.getLogger(__name__)


class GroupingPhase(str, Enum):
    IDLE = "idle"
    TARGETING = "targeting"
    DROPPABLE = "droppable"


class GroupingTracker:
    """Tracks which item a drag hovers over and whether it has hovered long enough."""

    def __init__(self, scheduler: Scheduler, delay_ms: int = DEFAULT_GROUP_MERGE_DELAY_MS):
        self.scheduler = scheduler
        self.delay_ms = delay_ms
        self.target_key: str | None = None
        self.droppable = False
        self._timer: TimerHandle | None = None

    @property
    def phase(self) -> GroupingPhase:
        if self.target_key is None:
            return GroupingPhase.IDLE
        return GroupingPhase.DROPPABLE if self.droppable else GroupingPhase.TARGETING

    @property
    def merge_target(self) -> str | None:
        """Key to merge into on release, or ``None`` when not droppable."""
        return self.target_key if self.droppable else None

    def update(self, layout: list[LayoutItem], dragged_key: str, x: int, y: int) -> GroupingPhase:
        """Feed the dragged item's current cell; returns the resulting phase."""
        dragged = get_layout_item(layout, dragged_key)
        if dragged is None:
            self.reset()
            return self.phase

        placeholder = dragged.model_copy(update={"x": x, "y": y})
        target = next(
            (item for item in layout if item.i != dragged_key and not item.static and collides(placeholder, item)),
            None,
        )

        if target is None:
            if self.target_key is not None:
                logger.debug("Drag of %s left %s", dragged_key, self.target_key)
            self.reset()
        elif target.i != self.target_key:
            logger.debug("Drag of %s now over %s, arming %dms timer", dragged_key, target.i, self.delay_ms)
            self._cancel_timer()
            self.target_key = target.i
            self.droppable = False
            self._timer = self.scheduler.call_later(self.delay_ms, self._on_timer)
        return self.phase

    def reset(self) -> None:
        """Back to Idle, cancelling any pending timer."""
        self._cancel_timer()
        self.target_key = None
        self.droppable = False

    def _on_timer(self) -> None:
        self._timer = None
        if self.target_key is not None:
            logger.debug("Hover over %s held; drop will merge", self.target_key)
            self.droppable = True

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
