"""Serialize layouts to/from JSON and YAML documents."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from gridflow.exceptions import LayoutFileError, LayoutValidationError
from gridflow.layout.models import ItemDescriptor, LayoutItem, Toggle
from gridflow.layout.validator import parse_descriptors, parse_layout

_YAML_SUFFIXES = (".yaml", ".yml")
_JSON_SUFFIXES = (".json",)


def item_to_dict(item: LayoutItem) -> dict[str, Any]:
    """Plain camelCase mapping of an item, omitting fields left at their defaults.

    The transient ``moved`` flag is never written.
    """
    data: dict[str, Any] = {"i": item.i, "x": item.x, "y": item.y, "w": item.w, "h": item.h}
    for name in ("min_w", "min_h", "max_w", "max_h"):
        value = getattr(item, name)
        if value is not None:
            data[LayoutItem.model_fields[name].alias] = value
    if item.static:
        data["static"] = True
    for name in ("is_draggable", "is_resizable", "is_bounded"):
        toggle: Toggle = getattr(item, name)
        if toggle is not Toggle.INHERIT:
            data[LayoutItem.model_fields[name].alias] = toggle.to_flag()
    if item.resize_handles is not None:
        data["resizeHandles"] = [handle.value for handle in item.resize_handles]
    if item.is_group:
        data["isGroup"] = True
        data["children"] = [item_to_dict(child) for child in item.children or []]
    return data


def _unwrap(data: Any, key: str) -> Any:
    # Accept either a bare list or a mapping with a top-level list under ``key``
    if isinstance(data, dict):
        return data.get(key)
    return data


class LayoutSerializer:
    """Convert layouts to/from JSON and YAML text."""

    @staticmethod
    def to_dicts(layout: list[LayoutItem]) -> list[dict[str, Any]]:
        return [item_to_dict(item) for item in layout]

    @staticmethod
    def to_json(layout: list[LayoutItem]) -> str:
        return json.dumps({"layout": LayoutSerializer.to_dicts(layout)}, indent=2)

    @staticmethod
    def to_yaml(layout: list[LayoutItem]) -> str:
        data = {"layout": LayoutSerializer.to_dicts(layout)}
        return yaml.dump(data, default_flow_style=False, sort_keys=False, width=120)

    @staticmethod
    def from_json(text: str, context: str = "Layout") -> list[LayoutItem]:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise LayoutValidationError(context, [f"invalid JSON: {e}"]) from e
        return parse_layout(_unwrap(data, "layout"), context)

    @staticmethod
    def from_yaml(text: str, context: str = "Layout") -> list[LayoutItem]:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise LayoutValidationError(context, [f"invalid YAML: {e}"]) from e
        if not data:
            raise LayoutValidationError(context, ["empty document"])
        return parse_layout(_unwrap(data, "layout"), context)


def _read_document(path: Path) -> Any:
    suffix = path.suffix.lower()
    if suffix not in _JSON_SUFFIXES + _YAML_SUFFIXES:
        raise LayoutFileError(str(path), f"unsupported file type '{suffix}' (use .json, .yaml or .yml)")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise LayoutFileError(str(path), f"cannot read file: {e.strerror or e}") from e
    try:
        if suffix in _YAML_SUFFIXES:
            return yaml.safe_load(text)
        return json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise LayoutFileError(str(path), f"cannot parse file: {e}") from e


def load_layout(path: str | Path) -> list[LayoutItem]:
    """Read and validate a layout file (JSON or YAML, chosen by extension)."""
    path = Path(path)
    return parse_layout(_unwrap(_read_document(path), "layout"), context=f"Layout '{path.name}'")


def load_descriptors(path: str | Path) -> list[ItemDescriptor]:
    """Read a list of item descriptors (bare keys or ``{key, grid}`` mappings)."""
    path = Path(path)
    return parse_descriptors(_unwrap(_read_document(path), "items"), context=f"Descriptors '{path.name}'")


def dump_layout(layout: list[LayoutItem], path: str | Path) -> Path:
    """Write ``layout`` to ``path``, formatted by its extension."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix in _YAML_SUFFIXES:
        text = LayoutSerializer.to_yaml(layout)
    elif suffix in _JSON_SUFFIXES:
        text = LayoutSerializer.to_json(layout)
    else:
        raise LayoutFileError(str(path), f"unsupported file type '{suffix}' (use .json, .yaml or .yml)")
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise LayoutFileError(str(path), f"cannot write file: {e.strerror or e}") from e
    return path
