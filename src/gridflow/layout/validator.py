"""Boundary validation for caller-supplied layouts.

Malformed input is rejected with every problem listed at once, before any
layout operation sees it. Checks that the numeric fields exist and are real
integers (no NaN, no strings, no booleans), that keys are strings, and that
keys are unique across the whole tree, group children included.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from gridflow.exceptions import LayoutValidationError
from gridflow.layout.models import ItemDescriptor, LayoutItem

REQUIRED_FIELDS = ("x", "y", "w", "h")


def _numeric_error(name: str, value: Any) -> str | None:
    if value is None:
        return f"'{name}' is missing"
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return f"'{name}' must be a number, got {type(value).__name__}"
    if isinstance(value, float):
        if math.isnan(value):
            return f"'{name}' is NaN"
        if not value.is_integer():
            return f"'{name}' must be a whole number, got {value}"
    return None


def _as_mapping(item: Any) -> Mapping[str, Any] | None:
    if isinstance(item, LayoutItem):
        return item.model_dump(by_alias=True)
    if isinstance(item, Mapping):
        return item
    return None


def _collect_errors(items: Iterable[Any], seen: dict[str, str], errors: list[str], path: str) -> None:
    for index, item in enumerate(items):
        where = f"{path}[{index}]"
        data = _as_mapping(item)
        if data is None:
            errors.append(f"{where}: expected a mapping, got {type(item).__name__}")
            continue

        key = data.get("i")
        if key is not None and not isinstance(key, str):
            errors.append(f"{where}: key 'i' must be a string, got {type(key).__name__}")
            key = None
        if key is not None:
            where = f"{where} '{key}'"
            if key in seen:
                errors.append(f"{where}: duplicate key, first used at {seen[key]}")
            else:
                seen[key] = where

        for name in REQUIRED_FIELDS:
            problem = _numeric_error(name, data.get(name))
            if problem:
                errors.append(f"{where}: {problem}")

        children = data.get("children")
        if children:
            _collect_errors(children, seen, errors, f"{where}.children")


def validate_layout(items: Iterable[Any], context: str = "Layout") -> None:
    """Raise ``LayoutValidationError`` listing every problem in ``items``.

    Accepts raw mappings (as loaded from JSON/YAML) or ``LayoutItem``
    instances.
    """
    errors: list[str] = []
    _collect_errors(items, {}, errors, "items")
    if errors:
        raise LayoutValidationError(context, errors)


def _format_pydantic_errors(exc: ValidationError, prefix: str) -> list[str]:
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"])
        messages.append(f"{prefix}{'.' + loc if loc else ''}: {err['msg']}")
    return messages


def parse_layout(raw: Any, context: str = "Layout") -> list[LayoutItem]:
    """Validate raw data and build ``LayoutItem`` models from it."""
    if not isinstance(raw, list):
        raise LayoutValidationError(context, [f"expected a list of items, got {type(raw).__name__}"])

    validate_layout(raw, context)

    layout: list[LayoutItem] = []
    errors: list[str] = []
    for index, entry in enumerate(raw):
        if isinstance(entry, LayoutItem):
            layout.append(entry)
            continue
        try:
            layout.append(LayoutItem.model_validate(entry))
        except ValidationError as e:
            errors.extend(_format_pydantic_errors(e, f"items[{index}]"))
    if errors:
        raise LayoutValidationError(context, errors)
    return layout


def parse_descriptors(raw: Any, context: str = "Descriptors") -> list[ItemDescriptor]:
    """Build ``ItemDescriptor`` models from raw data.

    Each entry is either a bare key string or a mapping with ``key`` and an
    optional ``grid`` geometry.
    """
    if not isinstance(raw, list):
        raise LayoutValidationError(context, [f"expected a list of descriptors, got {type(raw).__name__}"])

    descriptors: list[ItemDescriptor] = []
    errors: list[str] = []
    seen: set[str] = set()
    for index, entry in enumerate(raw):
        if isinstance(entry, str):
            entry = {"key": entry}
        try:
            descriptor = ItemDescriptor.model_validate(entry)
        except ValidationError as e:
            errors.extend(_format_pydantic_errors(e, f"descriptors[{index}]"))
            continue
        if descriptor.key in seen:
            errors.append(f"descriptors[{index}] '{descriptor.key}': duplicate key")
        seen.add(descriptor.key)
        descriptors.append(descriptor)
    if errors:
        raise LayoutValidationError(context, errors)
    return descriptors
