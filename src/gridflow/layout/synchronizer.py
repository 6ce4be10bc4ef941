"""Reconcile a live layout with an externally supplied list of items."""

from __future__ import annotations

import logging

from gridflow.layout.bounds import correct_bounds
from gridflow.layout.compactor import compact
from gridflow.layout.geometry import bottom
from gridflow.layout.models import CompactType, ItemDescriptor, LayoutItem, clone_item, make_item
from gridflow.layout.validator import validate_layout

logger = logging.getLogger(__name__)


def synchronize_layout(
    existing: list[LayoutItem],
    descriptors: list[ItemDescriptor],
    cols: int,
    compact_type: CompactType | None = CompactType.VERTICAL,
    allow_overlap: bool = False,
) -> list[LayoutItem]:
    """Build the layout for ``descriptors``, keeping placements the user already made.

    For each descriptor, in order:

    - explicit ``grid`` geometry wins for a key outside any group;
    - a key already in ``existing`` keeps its current geometry;
    - a new key becomes a 1x1 item at ``(0, bottom)`` of the layout so far.

    A key living inside a group stays in that group, and any ``grid`` it
    carries is ignored. Groups keep only the children still described and
    disappear once none are left. The result is bounds-corrected and then
    compacted, unless overlap is allowed.

    Raises:
        LayoutValidationError: if the resulting keys are not unique.
    """
    by_key = {item.i: item for item in existing}
    group_of: dict[str, LayoutItem] = {}
    for item in existing:
        if item.is_group:
            for child in item.children or []:
                group_of[child.i] = item

    described = {descriptor.key for descriptor in descriptors}
    placed_groups: set[str] = set()
    result: list[LayoutItem] = []

    for descriptor in descriptors:
        key = descriptor.key
        group = group_of.get(key)
        if group is None and key in by_key and by_key[key].is_group:
            group = by_key[key]

        if group is not None:
            if descriptor.grid is not None:
                logger.debug("Ignoring grid for %s; group %s keeps its placement", key, group.i)
            if group.i in placed_groups:
                continue
            placed_groups.add(group.i)
            children = [clone_item(c) for c in group.children or [] if c.i in described]
            if not children:
                logger.debug("Dropping emptied group %s", group.i)
                continue
            result.append(group.model_copy(update={"children": children}))
        elif descriptor.grid is not None:
            result.append(make_item(descriptor.grid, key))
        elif key in by_key:
            result.append(clone_item(by_key[key]))
        else:
            logger.debug("Adding new item %s at [0,%d]", key, bottom(result))
            result.append(make_item(None, key, x=0, y=bottom(result), w=1, h=1))

    validate_layout(result, context="Synchronized layout")

    correct_bounds(result, cols)
    if allow_overlap:
        return result
    return compact(result, compact_type, cols)
