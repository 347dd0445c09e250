import pytest

from dashboard_layout.model.geometry import intersects
from dashboard_layout.model.layout_engine import GridEngine
from conftest import item


def _no_overlaps(items):
    return GridEngine.detect_overlaps(items) == []


def test_find_free_position_empty_grid():
    assert GridEngine.find_free_position([], 4, 2, 12) == (0, 0)


def test_find_free_position_row_major():
    existing = [item("a", 0, 0, 4, 2), item("b", 4, 0, 4, 2)]
    assert GridEngine.find_free_position(existing, 4, 2, 12) == (8, 0)
    existing.append(item("c", 8, 0, 4, 2))
    assert GridEngine.find_free_position(existing, 4, 2, 12) == (0, 2)


def test_find_free_position_fills_gaps():
    existing = [item("a", 0, 0, 4, 2), item("b", 8, 0, 4, 2)]
    assert GridEngine.find_free_position(existing, 4, 2, 12) == (4, 0)


def test_find_free_position_below_tall_item():
    existing = [item("a", 0, 0, 12, 5)]
    assert GridEngine.find_free_position(existing, 3, 1, 12) == (0, 5)


def test_find_free_position_start_row():
    assert GridEngine.find_free_position([], 2, 2, 12, start_y=3) == (0, 3)


@pytest.mark.parametrize("w,h,cols", [(0, 1, 12), (13, 1, 12), (1, 0, 12), (1, 1, 0)])
def test_find_free_position_invalid(w, h, cols):
    with pytest.raises(ValueError):
        GridEngine.find_free_position([], w, h, cols)


def test_compact_closes_gap():
    items = [item("a", 0, 0, 6, 4), item("b", 0, 10, 6, 4)]
    compacted = GridEngine.compact(items)
    assert compacted[0] == items[0]
    assert (compacted[1].x, compacted[1].y, compacted[1].w, compacted[1].h) == (0, 4, 6, 4)


def test_compact_moves_to_top_without_blocker():
    compacted = GridEngine.compact([item("a", 0, 0, 6, 4), item("b", 6, 7, 6, 2)])
    assert compacted[1].y == 0


def test_compact_keeps_input_order():
    items = [item("low", 0, 9, 2, 2), item("high", 0, 3, 2, 2)]
    compacted = GridEngine.compact(items)
    assert [i.id for i in compacted] == ["low", "high"]
    assert compacted[1].y == 0
    assert compacted[0].y == 2


def test_compact_is_idempotent():
    items = [
        item("a", 0, 3, 4, 2), item("b", 2, 7, 6, 3), item("c", 8, 1, 4, 4),
        item("d", 5, 15, 2, 1), item("e", 0, 20, 12, 2),
    ]
    once = GridEngine.compact(items)
    assert GridEngine.compact(once) == once
    assert _no_overlaps(once)


def test_convert_breakpoint_halves():
    converted = GridEngine.convert_breakpoint([item("a", 8, 0, 4, 2)], 12, 6)[0]
    assert (converted.x, converted.w) == (4, 2)


def test_convert_breakpoint_rounds_half_up():
    # 3 * 10/12 = 2.5
    converted = GridEngine.convert_breakpoint([item("a", 3, 0, 3, 1)], 12, 10)[0]
    assert (converted.x, converted.w) == (3, 3)


def test_convert_breakpoint_shrinks_width_before_x():
    converted = GridEngine.convert_breakpoint([item("a", 9, 0, 3, 1)], 12, 10)[0]
    # x = round(7.5) = 8, w = round(2.5) = 3, shrunk to 2
    assert (converted.x, converted.w) == (8, 2)


def test_convert_breakpoint_min_width_moves_x():
    converted = GridEngine.convert_breakpoint([item("a", 10, 0, 2, 1, min_w=2)], 12, 2)[0]
    assert converted.w == 2
    assert converted.x == 0


def test_convert_breakpoint_keeps_rows_and_ids():
    converted = GridEngine.convert_breakpoint([item("a", 4, 7, 4, 3)], 12, 6)[0]
    assert (converted.id, converted.y, converted.h) == ("a", 7, 3)


def test_convert_breakpoint_invalid_cols():
    with pytest.raises(ValueError):
        GridEngine.convert_breakpoint([], 0, 6)


def test_detect_overlaps():
    items = [item("a", 0, 0, 4, 2), item("b", 3, 1, 4, 2), item("c", 8, 0, 4, 2)]
    assert GridEngine.detect_overlaps(items) == [("a", "b")]


def test_resolve_collisions():
    items = [item("a", 0, 0, 4, 2), item("b", 2, 0, 4, 2), item("c", 20, 0, 4, 2)]
    resolved = GridEngine.resolve_collisions(items, 12)
    assert resolved[0] == items[0]
    assert (resolved[1].x, resolved[1].y) == (4, 0)
    assert resolved[2].x == 8
    assert _no_overlaps(resolved)


def test_move_item_pushes_down_cascading():
    items = [item("a", 0, 0, 4, 2), item("b", 0, 2, 4, 2), item("c", 0, 4, 4, 2)]
    moved = GridEngine.move_item(items, "c", 0, 0, 12)
    by_id = {i.id: i for i in moved}
    assert by_id["c"].y == 0
    assert by_id["a"].y == 2
    assert by_id["b"].y == 4
    assert _no_overlaps(moved)


def test_move_item_clamps_target():
    moved = GridEngine.move_item([item("a", 0, 0, 4, 2)], "a", 11, -2, 12)
    assert (moved[0].x, moved[0].y) == (8, 0)


def test_move_item_unknown_id():
    with pytest.raises(ValueError):
        GridEngine.move_item([item("a", 0, 0, 4, 2)], "missing", 0, 0, 12)


def test_placed_items_never_overlap():
    placed = []
    for w, h in [(4, 2), (6, 3), (3, 1), (12, 2), (5, 4), (2, 2), (7, 1)]:
        x, y = GridEngine.find_free_position(placed, w, h, 12)
        new = item(f"i{len(placed)}", x, y, w, h)
        assert not any(intersects(new, p) for p in placed)
        placed.append(new)
    assert _no_overlaps(GridEngine.compact(placed))
