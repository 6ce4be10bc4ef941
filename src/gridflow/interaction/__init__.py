"""Gesture handling on top of the pure layout functions."""

from gridflow.interaction.engine import GridEngine, LayoutChange
from gridflow.interaction.grouping_state import GroupingPhase, GroupingTracker
from gridflow.interaction.scheduler import AsyncioScheduler, ManualScheduler

__all__ = [
    "AsyncioScheduler",
    "GridEngine",
    "GroupingPhase",
    "GroupingTracker",
    "LayoutChange",
    "ManualScheduler",
]
