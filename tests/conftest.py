"""Shared test fixtures for gridflow tests."""

from __future__ import annotations

import pytest

from gridflow.config import GridSettings, reset_settings
from gridflow.interaction.scheduler import ManualScheduler
from gridflow.layout.models import LayoutItem


@pytest.fixture(autouse=True)
def _reset_settings(monkeypatch):
    """Reset settings singleton between tests and keep the environment out of it."""
    for var in ("GRIDFLOW_COLS", "GRIDFLOW_COMPACT_TYPE", "GRIDFLOW_ALLOW_OVERLAP", "GRIDFLOW_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def six_col_settings() -> GridSettings:
    return GridSettings(cols=6, compact_type="vertical")


@pytest.fixture
def row_of_three() -> list[LayoutItem]:
    """Three 2x2 items filling the top row of a 6-column grid, plus one below."""
    return [
        LayoutItem(i="a", x=0, y=0, w=2, h=2),
        LayoutItem(i="b", x=2, y=0, w=2, h=2),
        LayoutItem(i="c", x=4, y=0, w=2, h=2),
        LayoutItem(i="d", x=0, y=2, w=2, h=2),
    ]
