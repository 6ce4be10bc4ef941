"""Tests for gridflow.interaction.engine — gestures end to end."""

from __future__ import annotations

import pytest

from gridflow.config import GridSettings
from gridflow.exceptions import LayoutValidationError
from gridflow.interaction.engine import GridEngine, layouts_equal
from gridflow.interaction.grouping_state import GroupingPhase
from gridflow.layout.geometry import get_layout_item
from gridflow.layout.models import ItemDescriptor, ItemGeometry, LayoutItem


def _item(i: str, x: int, y: int, w: int = 1, h: int = 1, **kwargs) -> LayoutItem:
    return LayoutItem(i=i, x=x, y=y, w=w, h=h, **kwargs)


def _rect(engine: GridEngine, key: str) -> tuple[int, int, int, int]:
    return get_layout_item(engine.layout, key).rect


@pytest.fixture
def engine(row_of_three, six_col_settings, scheduler) -> GridEngine:
    return GridEngine(row_of_three, settings=six_col_settings, scheduler=scheduler)


class TestConstruction:
    def test_initial_layout_is_compacted(self, six_col_settings):
        engine = GridEngine([_item("a", 0, 5)], settings=six_col_settings)
        assert _rect(engine, "a") == (0, 0, 1, 1)

    def test_initial_layout_is_bounds_corrected(self, six_col_settings):
        engine = GridEngine([_item("a", 5, 0, 3, 1)], settings=six_col_settings)
        assert _rect(engine, "a") == (3, 0, 3, 1)

    def test_invalid_layout_rejected(self, six_col_settings):
        with pytest.raises(LayoutValidationError, match="duplicate key"):
            GridEngine([_item("a", 0, 0), _item("a", 1, 0)], settings=six_col_settings)

    def test_allow_overlap_keeps_positions(self):
        settings = GridSettings(cols=6, allow_overlap=True)
        engine = GridEngine([_item("a", 0, 5), _item("b", 0, 5)], settings=settings)
        assert _rect(engine, "a") == (0, 5, 1, 1)
        assert _rect(engine, "b") == (0, 5, 1, 1)

    def test_defaults_to_global_settings(self, monkeypatch):
        monkeypatch.setenv("GRIDFLOW_COLS", "4")
        engine = GridEngine([_item("a", 0, 0)])
        assert engine.cols == 4

    def test_input_not_mutated(self, six_col_settings):
        layout = [_item("a", 0, 5)]
        GridEngine(layout, settings=six_col_settings)
        assert layout[0].y == 5


class TestDrag:
    def test_release_before_timer_moves(self, engine):
        engine.start_drag("a")
        engine.drag_to("a", 2, 0)
        assert engine.grouping_phase is GroupingPhase.TARGETING
        change = engine.end_drag("a", 2, 0)

        assert change.changed is True
        assert _rect(engine, "a") == (2, 0, 2, 2)
        assert _rect(engine, "b") == (2, 2, 2, 2)
        assert _rect(engine, "d") == (0, 0, 2, 2)
        assert engine.grouping_phase is GroupingPhase.IDLE

    def test_hover_then_release_merges(self, engine, scheduler):
        engine.start_drag("a")
        engine.drag_to("a", 2, 0)
        scheduler.advance(1000)
        assert engine.grouping_phase is GroupingPhase.DROPPABLE

        change = engine.end_drag("a", 2, 0)
        assert change.changed is True
        group = get_layout_item(engine.layout, "group-1")
        assert group.rect == (2, 0, 4, 2)
        assert [c.i for c in group.children] == ["a", "b"]
        assert _rect(engine, "c") == (4, 2, 2, 2)
        assert _rect(engine, "d") == (0, 0, 2, 2)

    def test_layout_unchanged_while_dragging(self, engine):
        before = [item.model_dump() for item in engine.layout]
        engine.start_drag("a")
        change = engine.drag_to("a", 2, 0)
        assert change.changed is False
        assert [item.model_dump() for item in engine.layout] == before
        assert engine.placeholder.rect == (2, 0, 2, 2)

    def test_drag_position_clamped_to_grid(self, engine):
        engine.start_drag("a")
        engine.drag_to("a", 10, -3)
        assert engine.placeholder.rect == (4, 0, 2, 2)

    def test_bounded_drag_stays_above_max_rows(self):
        settings = GridSettings(cols=6, max_rows=4, is_bounded=True)
        engine = GridEngine([_item("a", 0, 0, 2, 2)], settings=settings)
        engine.start_drag("a")
        engine.drag_to("a", 0, 9)
        assert engine.placeholder.rect == (0, 2, 2, 2)

    def test_unbounded_item_ignores_max_rows(self):
        settings = GridSettings(cols=6, max_rows=4, is_bounded=True)
        engine = GridEngine([_item("a", 0, 0, 2, 2, is_bounded=False)], settings=settings)
        engine.start_drag("a")
        engine.drag_to("a", 0, 9)
        assert engine.placeholder.rect == (0, 9, 2, 2)

    def test_cancel_restores_idle(self, engine, scheduler):
        engine.start_drag("a")
        engine.drag_to("a", 2, 0)
        change = engine.cancel_drag()
        assert change.changed is False
        assert engine.placeholder is None
        assert scheduler.pending == 0
        assert _rect(engine, "a") == (0, 0, 2, 2)

    def test_static_item_cannot_be_dragged(self, six_col_settings):
        engine = GridEngine([_item("s", 0, 0, static=True)], settings=six_col_settings)
        engine.start_drag("s")
        assert engine.placeholder is None
        assert engine.end_drag("s", 3, 0).changed is False

    def test_container_can_disable_dragging(self):
        engine = GridEngine([_item("a", 0, 0)], settings=GridSettings(cols=6, is_draggable=False))
        engine.start_drag("a")
        assert engine.placeholder is None

    def test_release_for_other_key_ignored(self, engine):
        engine.start_drag("a")
        assert engine.end_drag("b", 4, 4).changed is False
        assert engine.placeholder is not None

    def test_prevent_collision_rejects_drop(self, row_of_three):
        settings = GridSettings(cols=6, prevent_collision=True)
        engine = GridEngine(row_of_three, settings=settings)
        engine.start_drag("a")
        change = engine.end_drag("a", 1, 0)
        assert change.changed is False
        assert _rect(engine, "a") == (0, 0, 2, 2)

    def test_drop_in_place_is_unchanged(self, engine):
        engine.start_drag("a")
        assert engine.end_drag("a", 0, 0).changed is False


class TestResize:
    def test_resize_is_live(self, engine):
        engine.start_resize("a")
        change = engine.resize_to("a", 4, 2)
        assert change.changed is True
        assert _rect(engine, "a") == (0, 0, 4, 2)
        assert _rect(engine, "b") == (2, 2, 2, 2)
        assert _rect(engine, "d") == (0, 2, 2, 2)
        assert engine.placeholder.rect == (0, 0, 4, 2)

    def test_end_resize_reports_whole_gesture(self, engine):
        engine.start_resize("a")
        engine.resize_to("a", 4, 2)
        assert engine.end_resize("a").changed is True
        assert engine.placeholder is None

    def test_west_handle_moves_origin(self, six_col_settings):
        engine = GridEngine([_item("a", 0, 0, 2, 2), _item("c", 4, 0, 2, 2)], settings=six_col_settings)
        engine.start_resize("c")
        engine.resize_to("c", 3, 2, handle="w")
        assert _rect(engine, "c") == (3, 0, 3, 2)

    def test_west_handle_at_left_edge_keeps_width(self, six_col_settings):
        engine = GridEngine([_item("c", 0, 0, 2, 2)], settings=six_col_settings)
        engine.start_resize("c")
        change = engine.resize_to("c", 4, 2, handle="w")
        assert change.changed is False
        assert _rect(engine, "c") == (0, 0, 2, 2)

    def test_north_handle_moves_origin(self, six_col_settings):
        settings = six_col_settings.model_copy(update={"compact_type": None})
        engine = GridEngine([_item("a", 0, 3, 2, 2)], settings=settings)
        engine.start_resize("a")
        engine.resize_to("a", 2, 3, handle="n")
        assert _rect(engine, "a") == (0, 2, 2, 3)

    def test_size_constraints(self, six_col_settings):
        engine = GridEngine([_item("a", 0, 0, 2, 2, min_w=2, max_h=3)], settings=six_col_settings)
        engine.start_resize("a")
        engine.resize_to("a", 1, 5)
        assert _rect(engine, "a") == (0, 0, 2, 3)

    def test_width_limited_by_grid_edge(self, six_col_settings):
        engine = GridEngine([_item("a", 4, 0, 2, 2)], settings=six_col_settings)
        engine.start_resize("a")
        engine.resize_to("a", 5, 2)
        assert _rect(engine, "a") == (4, 0, 2, 2)

    def test_prevent_collision_keeps_size(self):
        settings = GridSettings(cols=6, prevent_collision=True)
        engine = GridEngine([_item("a", 0, 0, 2, 2), _item("b", 2, 0, 2, 2)], settings=settings)
        engine.start_resize("a")
        assert engine.resize_to("a", 3, 2).changed is False
        assert _rect(engine, "a") == (0, 0, 2, 2)

    def test_static_item_cannot_be_resized(self, six_col_settings):
        engine = GridEngine([_item("s", 0, 0, static=True)], settings=six_col_settings)
        engine.start_resize("s")
        assert engine.resize_to("s", 3, 3).changed is False

    def test_explicitly_resizable_static(self, six_col_settings):
        engine = GridEngine([_item("s", 0, 0, static=True, is_resizable=True)], settings=six_col_settings)
        engine.start_resize("s")
        assert engine.resize_to("s", 3, 3).changed is True


class TestStructural:
    def test_drop_external_item_displaces(self, six_col_settings):
        engine = GridEngine([_item("a", 0, 0, 2, 2)], settings=six_col_settings)
        change = engine.drop_external_item(ItemDescriptor(key="n", grid=ItemGeometry(w=2, h=2)), 0, 0)
        assert change.changed is True
        assert _rect(engine, "n") == (0, 0, 2, 2)
        assert _rect(engine, "a") == (0, 2, 2, 2)

    def test_drop_without_geometry_is_one_cell(self, engine):
        engine.drop_external_item(ItemDescriptor(key="n"), 10, 9)
        assert _rect(engine, "n")[2:] == (1, 1)
        assert _rect(engine, "n")[0] == 5

    def test_drop_wider_than_grid_is_capped(self):
        engine = GridEngine([], settings=GridSettings(cols=4))
        engine.drop_external_item(ItemDescriptor(key="n", grid=ItemGeometry(w=6, h=1)), 3, 0)
        assert _rect(engine, "n") == (0, 0, 4, 1)

    def test_drop_duplicate_key(self, engine):
        with pytest.raises(LayoutValidationError, match="already in the layout"):
            engine.drop_external_item(ItemDescriptor(key="a"), 0, 0)

    def test_drop_key_of_group_child(self, six_col_settings):
        group = LayoutItem(i="g", w=2, is_group=True, children=[_item("x", 0, 0), _item("y", 1, 0)])
        engine = GridEngine([group], settings=six_col_settings)
        with pytest.raises(LayoutValidationError):
            engine.drop_external_item(ItemDescriptor(key="y"), 3, 0)

    def test_remove_item_compacts(self, engine):
        change = engine.remove_item("a")
        assert change.changed is True
        assert get_layout_item(engine.layout, "a") is None
        assert _rect(engine, "d") == (0, 0, 2, 2)

    def test_remove_group_child_dissolves_group(self, six_col_settings):
        group = LayoutItem(i="g", x=2, w=4, h=2, is_group=True, children=[_item("x", 0, 0, 2, 2), _item("y", 2, 0, 2, 2)])
        engine = GridEngine([group], settings=six_col_settings)
        engine.remove_item("x")
        assert [item.i for item in engine.layout] == ["y"]
        assert _rect(engine, "y") == (2, 0, 2, 2)

    def test_remove_unknown_is_unchanged(self, engine):
        assert engine.remove_item("ghost").changed is False

    def test_synchronize(self, engine):
        change = engine.synchronize([ItemDescriptor(key="c"), ItemDescriptor(key="new")])
        assert [item.i for item in change.layout] == ["c", "new"]
        assert _rect(engine, "c") == (4, 0, 2, 2)
        assert _rect(engine, "new") == (0, 0, 1, 1)


class TestGroups:
    def _engine(self, settings: GridSettings) -> GridEngine:
        group = LayoutItem(
            i="g", w=4, h=2, is_group=True,
            children=[_item("x", 0, 0, 2, 2), _item("y", 2, 0, 2, 2)],
        )
        return GridEngine([group, _item("d", 0, 2, 4, 1)], settings=settings)

    def test_sub_engine_uses_group_columns(self, six_col_settings):
        sub = self._engine(six_col_settings).for_group("g")
        assert sub.cols == 4
        assert [item.i for item in sub.layout] == ["x", "y"]

    def test_edit_children_and_store_back(self, six_col_settings):
        engine = self._engine(six_col_settings)
        sub = engine.for_group("g")
        sub.start_resize("x")
        sub.resize_to("x", 2, 3)
        change = engine.update_group("g", sub.layout)

        assert change.changed is True
        assert _rect(engine, "g") == (0, 0, 4, 3)
        assert _rect(engine, "d") == (0, 3, 4, 1)
        assert get_layout_item(engine.layout, "g").children[0].rect == (0, 0, 2, 3)

    def test_for_group_on_plain_item(self, six_col_settings):
        assert self._engine(six_col_settings).for_group("d") is None


class TestLayoutsEqual:
    def test_deep_equality(self):
        assert layouts_equal([_item("a", 0, 0)], [_item("a", 0, 0)])
        assert not layouts_equal([_item("a", 0, 0)], [_item("a", 0, 1)])
        assert not layouts_equal([_item("a", 0, 0)], [])
