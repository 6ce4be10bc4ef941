"""Custom exception hierarchy for gridflow."""

from __future__ import annotations


class GridFlowError(Exception):
    """Base exception for all gridflow errors."""


class LayoutValidationError(GridFlowError):
    """A layout or item descriptor is malformed.

    Raised before any layout operation runs; malformed input is never
    silently coerced.
    """

    def __init__(self, context: str, errors: list[str]):
        self.context = context
        self.errors = errors
        error_list = "\n  - ".join(errors)
        super().__init__(f"{context} is invalid:\n  - {error_list}")


class ConfigurationError(GridFlowError):
    """Grid settings are missing or inconsistent."""


class LayoutFileError(GridFlowError):
    """Error reading or parsing a layout file."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")
