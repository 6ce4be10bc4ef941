"""Configuration management for gridflow.

Loads grid settings from environment variables, .env files, or explicit
constructor arguments with a clear priority chain.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gridflow.exceptions import ConfigurationError
from gridflow.layout.models import CompactType, GroupLayoutPolicy

DEFAULT_COLS = 12
DEFAULT_GROUP_MERGE_DELAY_MS = 1000
DEFAULT_GROUP_WRAP_ROW_HEIGHT = 2


class GridSettings(BaseSettings):
    """Grid settings loaded from environment variables and .env files.

    Priority (highest to lowest):
      1. Explicit constructor arguments
      2. Environment variables (GRIDFLOW_COLS, GRIDFLOW_COMPACT_TYPE, etc.)
      3. .env file in current directory

    The pixel settings (row height, margin, container padding) are not used
    by the layout math; they are carried for the rendering layer that turns
    grid units into pixels.
    """

    model_config = SettingsConfigDict(
        env_prefix="GRIDFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Grid geometry
    cols: Annotated[int, Field(ge=1, description="Column count of the grid")] = DEFAULT_COLS
    compact_type: Annotated[
        CompactType | None,
        Field(description="Compaction axis: vertical, horizontal or none"),
    ] = CompactType.VERTICAL
    max_rows: Annotated[int | None, Field(ge=1, description="Caller-enforced row ceiling")] = None

    # Collision policy
    allow_overlap: Annotated[bool, Field(description="Accept overlapping items")] = False
    prevent_collision: Annotated[
        bool, Field(description="Reject moves that would collide instead of displacing")
    ] = False

    # Container defaults for items whose flags are left to inherit
    is_draggable: bool = True
    is_resizable: bool = True
    is_bounded: bool = False

    # Presentation pass-through
    row_height_px: Annotated[int, Field(ge=1)] = 150
    margin_px: tuple[int, int] = (10, 10)
    container_padding_px: tuple[int, int] | None = None

    # Grouping
    group_merge_delay_ms: Annotated[
        int, Field(ge=0, description="Hover time before a drop merges into a group")
    ] = DEFAULT_GROUP_MERGE_DELAY_MS
    group_wrap_row_height: Annotated[
        int, Field(ge=1, description="Rows advanced per wrap when re-packing a group")
    ] = DEFAULT_GROUP_WRAP_ROW_HEIGHT
    group_layout_policy: GroupLayoutPolicy = GroupLayoutPolicy.FIT_FIRST
    group_key_prefix: Annotated[str, Field(min_length=1)] = "group-"

    @field_validator("compact_type", mode="before")
    @classmethod
    def normalize_compact_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            if v in ("", "none", "null"):
                return None
        return v

    @model_validator(mode="after")
    def validate_pixels(self) -> GridSettings:
        if min(self.margin_px) < 0:
            raise ValueError(f"margin_px must be non-negative, got {self.margin_px}")
        if self.container_padding_px is not None and min(self.container_padding_px) < 0:
            raise ValueError(
                f"container_padding_px must be non-negative, got {self.container_padding_px}"
            )
        return self

    @property
    def padding_px(self) -> tuple[int, int]:
        """Container padding, falling back to the margin when unset."""
        return self.container_padding_px if self.container_padding_px is not None else self.margin_px


_settings: GridSettings | None = None


def get_settings(**overrides: Any) -> GridSettings:
    """Get or create the settings singleton.

    Raises:
        ConfigurationError: if the resulting settings fail validation.
    """
    global _settings
    if _settings is None or overrides:
        try:
            _settings = GridSettings(**overrides)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid grid settings: {e}") from e
    return _settings


def reset_settings() -> None:
    """Reset cached settings (useful for testing)."""
    global _settings
    _settings = None
