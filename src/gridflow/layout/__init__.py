"""Pure layout algorithms: collisions, compaction, moves, bounds, grouping and sync."""

from gridflow.layout.bounds import correct_bounds
from gridflow.layout.compactor import compact
from gridflow.layout.grouping import detach_from_group, merge_items
from gridflow.layout.models import CompactType, ItemDescriptor, LayoutItem, Toggle, make_item
from gridflow.layout.mover import move_element
from gridflow.layout.synchronizer import synchronize_layout
from gridflow.layout.validator import parse_layout, validate_layout

__all__ = [
    "CompactType",
    "ItemDescriptor",
    "LayoutItem",
    "Toggle",
    "compact",
    "correct_bounds",
    "detach_from_group",
    "make_item",
    "merge_items",
    "move_element",
    "parse_layout",
    "synchronize_layout",
    "validate_layout",
]
