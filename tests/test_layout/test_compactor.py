"""Tests for gridflow.layout.compactor — gravity compaction."""

from __future__ import annotations

from gridflow.layout.compactor import compact
from gridflow.layout.geometry import collides
from gridflow.layout.models import CompactType, LayoutItem


def _item(i: str, x: int, y: int, w: int = 1, h: int = 1, **kwargs) -> LayoutItem:
    return LayoutItem(i=i, x=x, y=y, w=w, h=h, **kwargs)


def _positions(layout: list[LayoutItem]) -> dict[str, tuple[int, int]]:
    return {item.i: (item.x, item.y) for item in layout}


def _assert_no_overlap(layout: list[LayoutItem]) -> None:
    for index, a in enumerate(layout):
        for b in layout[index + 1:]:
            assert not collides(a, b), f"{a.i} overlaps {b.i}"


class TestVertical:
    def test_empty(self):
        assert compact([], CompactType.VERTICAL, 12) == []

    def test_floats_to_top(self):
        result = compact([_item("a", 0, 5)], CompactType.VERTICAL, 12)
        assert _positions(result) == {"a": (0, 0)}

    def test_stacks_under_obstacle(self):
        result = compact([_item("a", 0, 0, 2, 2), _item("b", 0, 5, 2, 2)], CompactType.VERTICAL, 12)
        assert _positions(result) == {"a": (0, 0), "b": (0, 2)}

    def test_side_by_side_both_rise(self):
        result = compact([_item("a", 0, 3, 2, 2), _item("b", 2, 7, 2, 2)], CompactType.VERTICAL, 12)
        assert _positions(result) == {"a": (0, 0), "b": (2, 0)}

    def test_huge_y_appends_at_bottom(self):
        result = compact([_item("a", 0, 0, 1, 3), _item("b", 0, 10_000)], CompactType.VERTICAL, 12)
        assert _positions(result)["b"] == (0, 3)

    def test_overlap_pushed_down(self):
        result = compact([_item("a", 0, 0, 2, 2), _item("b", 1, 1, 2, 2)], CompactType.VERTICAL, 12)
        assert _positions(result) == {"a": (0, 0), "b": (1, 2)}

    def test_static_never_moves(self):
        layout = [_item("s", 0, 3, 2, 2, static=True), _item("a", 0, 0, 2, 2)]
        result = compact(layout, CompactType.VERTICAL, 12)
        assert _positions(result)["s"] == (0, 3)
        _assert_no_overlap(result)

    def test_movable_settles_under_static(self):
        layout = [_item("a", 0, 6, 2, 1), _item("s", 0, 0, 2, 2, static=True)]
        result = compact(layout, CompactType.VERTICAL, 12)
        assert _positions(result) == {"a": (0, 2), "s": (0, 0)}


class TestHorizontal:
    def test_slides_left(self):
        result = compact([_item("a", 5, 0)], CompactType.HORIZONTAL, 12)
        assert _positions(result) == {"a": (0, 0)}

    def test_packs_against_neighbour(self):
        result = compact([_item("a", 0, 0, 2, 1), _item("b", 7, 0, 2, 1)], CompactType.HORIZONTAL, 12)
        assert _positions(result) == {"a": (0, 0), "b": (2, 0)}

    def test_overflow_wraps_to_next_row(self):
        layout = [_item("a", 0, 0, 3, 1), _item("b", 1, 0, 2, 1)]
        result = compact(layout, CompactType.HORIZONTAL, 4)
        assert _positions(result) == {"a": (0, 0), "b": (0, 1)}


class TestNoAxis:
    def test_overlap_allowed_passes_through(self):
        layout = [_item("a", 0, 0, 2, 2), _item("b", 1, 1, 2, 2)]
        result = compact(layout, None, 12, allow_overlap=True)
        assert _positions(result) == {"a": (0, 0), "b": (1, 1)}
        assert result[0] is not layout[0]

    def test_collisions_pushed_down_without_gravity(self):
        layout = [_item("a", 0, 4, 2, 2), _item("b", 1, 5, 2, 2), _item("c", 6, 9)]
        result = compact(layout, None, 12)
        assert _positions(result) == {"a": (0, 4), "b": (1, 6), "c": (6, 9)}


class TestContract:
    def test_input_not_mutated(self):
        layout = [_item("a", 0, 5, moved=True)]
        compact(layout, CompactType.VERTICAL, 12)
        assert layout[0].y == 5
        assert layout[0].moved is True

    def test_output_keeps_input_order(self):
        layout = [_item("b", 0, 4), _item("a", 0, 0)]
        result = compact(layout, CompactType.VERTICAL, 12)
        assert [i.i for i in result] == ["b", "a"]
        assert _positions(result) == {"b": (0, 1), "a": (0, 0)}

    def test_moved_flags_cleared(self):
        layout = [_item("a", 0, 0, moved=True), _item("s", 1, 0, static=True, moved=True)]
        result = compact(layout, CompactType.VERTICAL, 12)
        assert all(item.moved is False for item in result)

    def test_idempotent(self):
        layout = [
            _item("a", 0, 3, 2, 2),
            _item("b", 1, 1, 3, 1),
            _item("c", 4, 8, 2, 3),
            _item("s", 2, 4, 2, 2, static=True),
            _item("d", 0, 0, 1, 4),
        ]
        for axis in (CompactType.VERTICAL, CompactType.HORIZONTAL, None):
            once = compact(layout, axis, 8)
            twice = compact(once, axis, 8)
            assert [i.model_dump() for i in once] == [i.model_dump() for i in twice]

    def test_no_overlap_after_compaction(self):
        layout = [
            _item("a", 0, 0, 4, 2),
            _item("b", 2, 1, 4, 2),
            _item("c", 3, 0, 2, 5),
            _item("s", 6, 0, 2, 2, static=True),
            _item("d", 5, 1, 3, 1),
        ]
        for axis in (CompactType.VERTICAL, CompactType.HORIZONTAL, None):
            _assert_no_overlap(compact(layout, axis, 8))
