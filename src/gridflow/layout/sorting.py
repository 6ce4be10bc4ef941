"""Deterministic item ordering for compaction and collision passes."""

from __future__ import annotations

from gridflow.layout.models import CompactType, LayoutItem


def sort_layout_items(layout: list[LayoutItem], compact_type: CompactType | None) -> list[LayoutItem]:
    """Order items for a pass along ``compact_type``.

    Vertical sorts row-major (y, then x), horizontal column-major (x, then
    y). Items with identical coordinates keep their input order; keys are
    never used as a tie-break. Without an axis the input order is kept.
    Always returns a new list.
    """
    if compact_type == CompactType.HORIZONTAL:
        return sort_by_col_row(layout)
    if compact_type == CompactType.VERTICAL:
        return sort_by_row_col(layout)
    return list(layout)


def sort_by_row_col(layout: list[LayoutItem]) -> list[LayoutItem]:
    return sorted(layout, key=lambda item: (item.y, item.x))


def sort_by_col_row(layout: list[LayoutItem]) -> list[LayoutItem]:
    return sorted(layout, key=lambda item: (item.x, item.y))
