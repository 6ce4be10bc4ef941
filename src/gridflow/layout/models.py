"""Core data models for grid layouts.

These Pydantic models represent the items that flow through every layout
operation: the compactor, the mover, the bounds corrector, the grouping
engine and the synchronizer all take and return lists of ``LayoutItem``.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator, model_validator

GridInt = Annotated[int, Field(strict=True)]
SpanInt = Annotated[int, Field(strict=True, ge=1)]


class CompactType(str, Enum):
    """Axis along which gravity is applied. ``None`` disables compaction."""

    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


class GroupLayoutPolicy(str, Enum):
    """How a brand-new two-item group arranges its children."""

    FIT_FIRST = "fit_first"  # side by side whenever it fits the grid
    MIN_AREA = "min_area"  # smaller bounding box wins


class ResizeHandle(str, Enum):
    """Compass direction of a resize handle."""

    S = "s"
    W = "w"
    E = "e"
    N = "n"
    SW = "sw"
    NW = "nw"
    SE = "se"
    NE = "ne"

    @property
    def moves_x(self) -> bool:
        return "w" in self.value

    @property
    def moves_y(self) -> bool:
        return "n" in self.value


class Toggle(str, Enum):
    """Per-item flag that may defer to the container default."""

    INHERIT = "inherit"
    ENABLED = "enabled"
    DISABLED = "disabled"

    @classmethod
    def from_flag(cls, value: bool | None) -> Toggle:
        if value is None:
            return cls.INHERIT
        return cls.ENABLED if value else cls.DISABLED

    def to_flag(self) -> bool | None:
        if self is Toggle.INHERIT:
            return None
        return self is Toggle.ENABLED

    def resolve(self, default: bool) -> bool:
        if self is Toggle.INHERIT:
            return default
        return self is Toggle.ENABLED


def _coerce_toggle(v: Any) -> Any:
    if v is None or isinstance(v, bool):
        return Toggle.from_flag(v)
    return v


class ItemGeometry(BaseModel):
    """Position, span, constraints and flags of an item, without its key.

    Used on its own as the explicit geometry of an ``ItemDescriptor``.
    Accepts camelCase keys (``minW``, ``isDraggable``) as well as snake_case.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    x: GridInt = 0
    y: GridInt = 0
    w: SpanInt = 1
    h: SpanInt = 1
    min_w: SpanInt | None = Field(default=None, alias="minW")
    min_h: SpanInt | None = Field(default=None, alias="minH")
    max_w: SpanInt | None = Field(default=None, alias="maxW")
    max_h: SpanInt | None = Field(default=None, alias="maxH")
    static: bool = False
    is_draggable: Toggle = Field(default=Toggle.INHERIT, alias="isDraggable")
    is_resizable: Toggle = Field(default=Toggle.INHERIT, alias="isResizable")
    is_bounded: Toggle = Field(default=Toggle.INHERIT, alias="isBounded")
    resize_handles: list[ResizeHandle] | None = Field(default=None, alias="resizeHandles")

    @field_validator("is_draggable", "is_resizable", "is_bounded", mode="before")
    @classmethod
    def _toggle_from_flag(cls, v: Any) -> Any:
        return _coerce_toggle(v)

    @model_validator(mode="after")
    def validate_constraints(self) -> ItemGeometry:
        if self.min_w is not None and self.max_w is not None and self.min_w > self.max_w:
            raise ValueError(f"minW ({self.min_w}) exceeds maxW ({self.max_w})")
        if self.min_h is not None and self.max_h is not None and self.min_h > self.max_h:
            raise ValueError(f"minH ({self.min_h}) exceeds maxH ({self.max_h})")
        return self

    @property
    def rect(self) -> tuple[int, int, int, int]:
        return (self.x, self.y, self.w, self.h)


class LayoutItem(ItemGeometry):
    """A positioned rectangle on the grid, or a group of child items.

    ``moved`` is transient bookkeeping: the mover sets it and every
    compaction pass clears it. Children of a group use coordinates relative
    to the group's own sub-grid.
    """

    i: StrictStr
    moved: bool = False
    is_group: bool = Field(default=False, alias="isGroup")
    children: list[LayoutItem] | None = None

    @model_validator(mode="after")
    def validate_group(self) -> LayoutItem:
        if self.is_group and self.children is None:
            self.children = []
        if not self.is_group and self.children:
            raise ValueError(f"Item '{self.i}' has children but is not a group")
        return self


class ItemDescriptor(BaseModel):
    """An externally supplied item: a key plus optional explicit geometry."""

    key: StrictStr
    grid: ItemGeometry | None = None


def make_item(base: ItemGeometry | None, key: str, **overrides: Any) -> LayoutItem:
    """Build a fully populated, validated ``LayoutItem``.

    Starts from the fields of ``base`` (or the model defaults), applies the
    sparse ``overrides`` on top and stamps the key.
    """
    data: dict[str, Any] = base.model_dump() if base is not None else {}
    data.update(overrides)
    data["i"] = key
    return LayoutItem.model_validate(data)


def clone_item(item: LayoutItem) -> LayoutItem:
    """Shallow copy; a group's children list is shared, never mutated in place."""
    return item.model_copy()


def clone_layout(layout: list[LayoutItem]) -> list[LayoutItem]:
    return [clone_item(item) for item in layout]


def is_item_draggable(item: ItemGeometry, default: bool = True) -> bool:
    """Explicit toggle wins; otherwise statics are fixed and the rest follow the container."""
    return item.is_draggable.resolve(not item.static and default)


def is_item_resizable(item: ItemGeometry, default: bool = True) -> bool:
    return item.is_resizable.resolve(not item.static and default)


def is_item_bounded(item: ItemGeometry, container_bounded: bool, default_draggable: bool = True) -> bool:
    """Bounded when draggable, bounded by the container, and not explicitly unbounded."""
    return (
        is_item_draggable(item, default_draggable)
        and container_bounded
        and item.is_bounded is not Toggle.DISABLED
    )
