import pytest

from dashboard_layout.app.store import DesignerState, LayoutStore
from dashboard_layout.config import DesignerConfig
from dashboard_layout.model.data_model import Component, LayoutItem, Snapshot
from dashboard_layout.model.errors import (
    ComponentNotFoundError, ComponentValidationError, UnknownBreakpointError,
)
from dashboard_layout.model.layout_engine import GridEngine
from dashboard_layout.utils.templates import default_registry
from conftest import text


def _rect(component, bp="lg"):
    item = component.layout[bp]
    return item.x, item.y, item.w, item.h


def test_four_text_components_wrap_at_twelve_columns(store):
    placed = [store.add_component(text()) for _ in range(4)]
    assert [_rect(c) for c in placed] == [(0, 0, 4, 2), (4, 0, 4, 2), (8, 0, 4, 2), (0, 2, 4, 2)]


def test_added_component_has_every_breakpoint_without_overlaps(store):
    for _ in range(6):
        store.add_component(text())
    store.add_component({"type": "table"})
    for bp in store.breakpoints:
        items = store.items_for(bp.name)
        assert len(items) == 7
        assert GridEngine.detect_overlaps(items) == []
        assert all(i.x + i.w <= bp.cols for i in items)


def test_add_uses_template_sizes(store):
    component = store.add_component(default_registry().get("line"))
    assert _rect(component) == (0, 0, 6, 4)
    assert component.layout["lg"].min_w == 3
    assert component.config["chart_type"] == "line"


def test_add_fallback_size_for_unknown_type(store):
    component = store.add_component({"type": "custom-widget"})
    assert _rect(component) == (0, 0, 4, 4)


def test_add_assigns_id_and_selects(store):
    component = store.add_component(text())
    assert component.id.startswith("text-")
    assert store.selected_id == component.id


def test_add_keeps_given_id(store):
    assert store.add_component(text(id="headline")).id == "headline"


def test_add_zero_width_leaves_history_untouched(store):
    store.add_component(text())
    before = store.history
    with pytest.raises(ComponentValidationError) as exc:
        store.add_component({"type": "text", "w": 0})
    assert len(exc.value.errors) >= 1
    assert store.history is before


def test_add_rejects_duplicate_id(store):
    store.add_component(text(id="a"))
    with pytest.raises(ComponentValidationError):
        store.add_component(text(id="a"))
    assert len(store.snapshot.components) == 1


def test_add_rejects_unknown_fields(store):
    with pytest.raises(ComponentValidationError) as exc:
        store.add_component({"type": "text", "colour": "red"})
    assert exc.value.errors[0].field == "colour"


def test_add_rejects_missing_type(store):
    with pytest.raises(ComponentValidationError):
        store.add_component({"w": 2, "h": 2})
    assert not store.can_undo


@pytest.mark.parametrize("field", ["default_size", "min_size", "max_size"])
def test_add_rejects_malformed_size(store, field):
    with pytest.raises(ComponentValidationError) as exc:
        store.add_component({"type": "text", field: 5})
    assert [e.field for e in exc.value.errors] == [field]
    assert not store.can_undo


def test_add_at_position(store):
    component = store.add_component(text(), position=(6, 3))
    assert _rect(component) == (6, 3, 4, 2)


def test_add_at_position_is_clamped(store):
    component = store.add_component(text(), position={"x": 11, "y": 0})
    assert _rect(component) == (8, 0, 4, 2)


def test_add_at_taken_position_falls_back(store):
    store.add_component(text(), position=(0, 0))
    component = store.add_component(text(), position=(2, 0))
    assert _rect(component) == (4, 0, 4, 2)


def test_add_rejects_non_integer_position(store):
    with pytest.raises(ComponentValidationError):
        store.add_component(text(), position=(1.5, 0))


def test_update_merges_layout_per_breakpoint(store):
    component = store.add_component(text())
    lg_before = component.layout["lg"]
    updated = store.update_component(component.id, {"layout": {"md": {"x": 2}}, "title": "Revenue"})
    assert updated.layout["md"].x == 2
    assert updated.layout["lg"] == lg_before
    assert updated.title == "Revenue"
    assert store.get_component(component.id) == updated


def test_update_unknown_component(store):
    with pytest.raises(ComponentNotFoundError):
        store.update_component("missing", {"title": "x"})


def test_update_rejects_invalid_layout(store):
    component = store.add_component(text())
    before = store.history
    with pytest.raises(ComponentValidationError):
        store.update_component(component.id, {"layout": {"lg": {"x": 10}}})
    with pytest.raises(ComponentValidationError):
        store.update_component(component.id, {"layout": {"nope": {"x": 0}}})
    with pytest.raises(ComponentValidationError):
        store.update_component(component.id, {"id": "renamed"})
    assert store.history is before


def test_update_copies_config(store):
    component = store.add_component(text())
    config = {"content": "hello"}
    store.update_component(component.id, {"config": config})
    config["content"] = "changed"
    assert store.get_component(component.id).config == {"content": "hello"}


def test_snapshot_contents_are_read_only(store):
    component = store.add_component(text(config={"content": "a"}))
    store.update_component(component.id, {"layout": {"lg": {"x": 2}}})
    current = store.snapshot.components[0]
    with pytest.raises(TypeError):
        current.config["content"] = "mutated"
    with pytest.raises(TypeError):
        del current.layout["lg"]
    earlier = store.history.past[-1].components[0]
    assert earlier.config == {"content": "a"}
    assert earlier.layout["lg"].x == 0


def test_components_do_not_share_config_between_snapshots(store):
    component = store.add_component(text(config={"series": [1, 2]}))
    store.update_component(component.id, {"title": "Renamed"})
    current = store.snapshot.components[0]
    earlier = store.history.past[-1].components[0]
    current.config["series"].append(3)
    assert earlier.config["series"] == [1, 2]


def test_remove_component_clears_selection(store):
    component = store.add_component(text())
    assert store.remove_component(component.id)
    assert store.selected_id is None
    assert store.snapshot.components == ()


def test_remove_unknown_is_noop(store):
    store.add_component(text())
    before = store.history
    assert store.remove_component("missing") is False
    assert store.history is before


def test_update_layout_ignores_stale_ids(store):
    a = store.add_component(text())
    b = store.add_component(text())
    changed = store.update_layout("lg", [
        {"i": a.id, "x": 0, "y": 2, "w": 4, "h": 2},
        {"i": "gone", "x": 0, "y": 0, "w": 4, "h": 2},
    ])
    assert changed
    assert _rect(store.get_component(a.id)) == (0, 2, 4, 2)
    assert store.get_component(b.id).layout["lg"] == b.layout["lg"]
    # other breakpoints untouched
    assert store.get_component(a.id).layout["md"] == a.layout["md"]


def test_update_layout_accepts_layout_items(store):
    a = store.add_component(text())
    store.update_layout("lg", [LayoutItem(id=a.id, x=8, y=0, w=4, h=2)])
    assert _rect(store.get_component(a.id)) == (8, 0, 4, 2)


def test_update_layout_unknown_breakpoint(store):
    with pytest.raises(UnknownBreakpointError):
        store.update_layout("xl", [])


def test_update_layout_without_change_records_nothing(store):
    a = store.add_component(text())
    before = store.history
    assert store.update_layout("lg", [a.layout["lg"]]) is False
    assert store.history is before


def test_vertical_compaction_setting():
    store = LayoutStore(DesignerConfig(vertical_compact=True))
    component = store.add_component(text(), position=(0, 7))
    assert _rect(component) == (0, 0, 4, 2)


def test_compact_layout(store):
    a = store.add_component(text(), position=(0, 0))
    b = store.add_component(text(), position=(0, 9))
    assert store.compact_layout()
    assert store.get_component(b.id).layout["lg"].y == 2
    assert store.get_component(a.id).layout["lg"].y == 0


def test_undo_redo_symmetry(store):
    store.add_component(text())
    b = store.add_component(text())
    store.update_component(b.id, {"layout": {"lg": {"y": 5}}})
    present = store.snapshot
    assert store.undo()
    assert store.snapshot != present
    assert store.redo()
    assert store.snapshot == present


def test_undo_redo_empty_stacks(store):
    assert store.undo() is False
    assert store.redo() is False


def test_undo_drops_stale_selection(store):
    component = store.add_component(text())
    assert store.selected_id == component.id
    store.undo()
    assert store.selected_id is None


def test_new_edit_discards_redo(store):
    store.add_component(text())
    store.add_component(text())
    store.undo()
    assert store.can_redo
    store.add_component(text())
    assert not store.can_redo
    assert store.history.future == ()


def test_history_is_bounded(small_history_store):
    for _ in range(3 + 2):
        small_history_store.add_component(text())
    assert len(small_history_store.history.past) == 3


def test_selection_is_not_recorded(store):
    a = store.add_component(text())
    store.add_component(text())
    before = store.history
    store.select_component(a.id)
    assert store.selected_id == a.id
    assert store.selected_component == store.get_component(a.id)
    store.select_component(None)
    assert store.history is before


def test_select_unknown_component(store):
    with pytest.raises(ComponentNotFoundError):
        store.select_component("missing")


def test_subscribers_receive_state(store):
    received = []
    unsubscribe = store.subscribe(received.append)
    component = store.add_component(text())
    store.select_component(None)
    unsubscribe()
    store.add_component(text())
    assert len(received) == 2
    assert isinstance(received[0], DesignerState)
    assert received[0].selected_id == component.id
    assert received[0].can_undo and not received[0].can_redo
    assert received[1].selected_id is None


def test_rejected_operation_does_not_notify(store):
    received = []
    store.subscribe(received.append)
    with pytest.raises(ComponentValidationError):
        store.add_component({"type": "text", "h": -1})
    assert received == []


def test_set_breakpoint_synthesizes_from_larger(store):
    component = Component(id="a", type="text", layout={"lg": LayoutItem(id="a", x=8, y=0, w=4, h=2)})
    store.load_snapshot(Snapshot(components=(component,), breakpoint="lg"))
    assert store.set_breakpoint("sm")
    assert store.snapshot.breakpoint == "sm"
    item = store.get_component("a").layout["sm"]
    assert (item.x, item.w) == (4, 2)
    assert store.can_undo
    store.undo()
    assert store.snapshot.breakpoint == "lg"


def test_set_breakpoint_falls_back_to_smaller(store):
    component = Component(id="a", type="text", layout={"xs": LayoutItem(id="a", x=2, y=1, w=2, h=2)})
    store.load_snapshot(Snapshot(components=(component,), breakpoint="xs"))
    store.set_breakpoint("lg")
    item = store.get_component("a").layout["lg"]
    assert (item.x, item.y, item.w) == (6, 1, 6)


def test_set_breakpoint_synthesized_items_do_not_overlap(store):
    components = tuple(
        Component(id=cid, type="text", layout={"lg": LayoutItem(id=cid, x=x, y=0, w=1, h=1)})
        for cid, x in (("a", 0), ("b", 1), ("c", 2))
    )
    store.load_snapshot(Snapshot(components=components, breakpoint="lg"))
    store.set_breakpoint("xxs")
    assert GridEngine.detect_overlaps(store.items_for("xxs")) == []


def test_set_unknown_breakpoint(store):
    with pytest.raises(UnknownBreakpointError):
        store.set_breakpoint("xl")


def test_set_viewport_width(store):
    store.set_viewport_width(500)
    assert store.snapshot.breakpoint == "xs"
    assert store.active_cols == 4


def test_update_settings(store):
    assert store.update_settings(title="Sales")
    assert store.snapshot.settings.title == "Sales"
    with pytest.raises(ComponentValidationError):
        store.update_settings(colour="red")


def test_load_snapshot_resets_history(store):
    store.add_component(text())
    store.load_snapshot(Snapshot(breakpoint="md"))
    assert not store.can_undo
    assert store.snapshot.breakpoint == "md"
    assert store.selected_id is None


def test_reset(store):
    store.add_component(text())
    store.reset()
    assert store.snapshot == Snapshot(breakpoint="lg")
