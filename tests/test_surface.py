"""End-to-end tests for the canvas surface: placement, links, gestures and history."""

from __future__ import annotations

import pytest

from mongodv.canvas.surface import CanvasSurface, PlacedDocument
from mongodv.canvas.viewport import Point
from tests.helpers import OID_A, OID_B, OID_C


def _assert_near(p, q):
    assert p.x == pytest.approx(q.x)
    assert p.y == pytest.approx(q.y)


@pytest.fixture
def linked(surface):
    """A references B through ``ownerOf``."""
    surface.add_document({"_id": OID_A, "ownerOf": OID_B}, "users", Point(100, 100))
    surface.add_document({"_id": OID_B}, "items", Point(500, 300))
    return surface


class TestConnections:
    def test_single_line_between_reference_and_definition(self, linked):
        (seg,) = linked.frame()
        assert seg.value == OID_B
        assert seg.start == linked.layout.leaf_bounds(OID_A, "ownerOf").center
        assert seg.end == linked.layout.leaf_bounds(OID_B, "_id").center

    def test_line_follows_live_drag(self, linked):
        before = linked.frame()[0]
        assert linked.on_pointer_down(Point(200, 120)) == "drag"
        linked.on_pointer_move(Point(250, 170))
        during = linked.frame()[0]
        _assert_near(during.start, before.start + Point(50, 50))
        assert during.end == before.end
        linked.on_pointer_up(Point(250, 170))
        assert linked.get(OID_A).position == Point(150, 150)
        assert linked.frame()[0].start == during.start

    def test_line_follows_pan_and_zoom(self, linked):
        before = linked.frame()[0]
        assert linked.on_pointer_down(Point(1000, 50)) == "pan"
        linked.on_pointer_move(Point(1030, 90))
        linked.on_pointer_up(Point(1030, 90))
        after = linked.frame()[0]
        _assert_near(after.start, before.start + Point(30, 40))
        linked.on_wheel(Point(0, 0), -1000)
        zoomed = linked.frame()[0]
        assert zoomed.start == linked.layout.leaf_bounds(OID_A, "ownerOf").center

    def test_no_line_without_definition(self, surface):
        surface.add_document({"_id": OID_A, "ownerOf": OID_C})
        assert surface.frame() == ()

    def test_clone_fans_out(self, linked):
        clone = linked.clone(OID_B)
        assert clone.id.startswith(OID_B + "-")
        assert clone.position == Point(520, 320)
        assert clone.payload == {"_id": OID_B}
        segments = linked.frame()
        assert len(segments) == 2
        assert len({s.definition for s in segments}) == 2

    def test_delete_unregisters(self, linked):
        entries = len(linked.registry)
        assert linked.delete(OID_B)
        assert len(linked.registry) == entries - 1
        assert linked.frame() == ()
        assert not linked.delete(OID_B)

    def test_card_bounds_follow_viewport(self, linked):
        box = linked.layout.card_bounds(OID_B)
        assert (box.left, box.top, box.width) == (500, 300, 350)
        linked.viewport.zoom = 2.0
        box = linked.layout.card_bounds(OID_B)
        assert (box.left, box.top, box.width) == (1000, 600, 700)
        assert linked.layout.card_bounds("missing") is None

    def test_update_payload_reregisters(self, linked):
        linked.update_payload(OID_A, {"_id": OID_A, "ownerOf": OID_C})
        assert linked.frame() == ()
        assert OID_C in linked.registry.values()
        assert OID_B in linked.registry.values()


class TestExpandCollapse:
    def test_collapsed_leaves_not_registered(self, surface):
        surface.add_document({"_id": OID_B, "meta": {"owner": OID_A}}, position=Point(100, 100))
        assert len(surface.registry) == 1
        surface.toggle_expand(OID_B, "meta")
        assert len(surface.registry) == 2
        surface.toggle_expand(OID_B, "meta")
        assert len(surface.registry) == 1

    def test_click_on_section_toggles(self, surface):
        surface.add_document({"_id": OID_B, "meta": {"owner": OID_A}}, position=Point(100, 100))
        assert surface.on_click(Point(130, 185)) == "meta"
        assert surface.expanded_paths(OID_B) == {"meta"}
        assert surface.on_click(Point(130, 185)) == "meta"
        assert surface.expanded_paths(OID_B) == set()

    def test_nested_link_appears_when_expanded(self, surface):
        surface.add_document({"_id": OID_B, "meta": {"owner": OID_A}}, position=Point(100, 100))
        surface.add_document({"_id": OID_A}, position=Point(600, 100))
        assert surface.frame() == ()
        surface.expand_all(OID_B)
        (seg,) = surface.frame()
        assert seg.start == surface.layout.leaf_bounds(OID_B, "meta.owner").center
        surface.collapse_all(OID_B)
        assert surface.frame() == ()

    def test_expand_all_opens_every_section(self, surface):
        surface.add_document({"_id": OID_A, "a": {"b": {"c": 1}}, "l": [[1]]})
        surface.expand_all(OID_A)
        assert surface.expanded_paths(OID_A) == {"a", "a.b", "l", "l.0"}


class TestPointerRouting:
    def test_hud_press_is_not_a_pan(self, surface):
        assert surface.hud_rect.left == 940
        assert surface.on_pointer_down(Point(1000, 760)) == "hud"
        assert not surface.is_panning
        assert surface.arbiter.is_idle

    def test_body_press_does_not_pan(self, linked):
        assert linked.on_pointer_down(Point(200, 200)) == "body"
        linked.on_pointer_move(Point(300, 300))
        assert linked.viewport.pan == Point(0, 0)
        assert not linked.is_panning

    def test_background_press_pans(self, linked):
        assert linked.on_pointer_down(Point(1000, 50)) == "pan"
        assert linked.is_panning
        linked.on_pointer_up(Point(1000, 50))
        assert not linked.is_panning

    def test_restore_mid_pan_ends_the_pan(self, linked):
        blob = linked.snapshot()
        assert linked.on_pointer_down(Point(1000, 50)) == "pan"
        linked.restore(blob)
        assert linked.arbiter.is_idle
        assert not linked.is_panning
        linked.on_pointer_move(Point(1100, 150))
        assert linked.viewport.pan == Point(0, 0)
        # a fresh pan can start straight away
        assert linked.on_pointer_down(Point(1000, 50)) == "pan"

    def test_undo_mid_pan_ends_the_pan(self, linked):
        linked.on_pointer_down(Point(1000, 50))
        assert linked.undo()
        assert not linked.is_panning
        assert linked.arbiter.is_idle

    def test_right_button_on_handle_ignored(self, linked):
        assert linked.on_pointer_down(Point(200, 120), button=2) == "ignored"
        assert linked.arbiter.is_idle

    def test_drag_at_zoom_commits_canvas_units(self, linked):
        linked.viewport.zoom = 2.0
        # A's handle now spans screen y 200..312
        assert linked.on_pointer_down(Point(250, 220)) == "drag"
        linked.on_pointer_up(Point(290, 260))
        assert linked.get(OID_A).position == Point(120, 120)

    def test_pressed_card_is_raised(self, surface):
        surface.add_document({"_id": OID_A}, position=Point(100, 100))
        surface.add_document({"_id": OID_B}, position=Point(120, 110))
        # overlapping handles: B is on top until A is pressed
        assert surface.layout.hit_test(Point(200, 130))[0] == OID_B
        surface.on_pointer_down(Point(200, 105))
        surface.on_pointer_up(Point(200, 105))
        assert surface.layout.hit_test(Point(200, 130))[0] == OID_A

    def test_hud_controls(self, surface):
        surface.hud_zoom_in()
        assert surface.hud_label() == "110%"
        surface.hud_reset()
        assert surface.hud_label() == "100%"

    def test_grid_follows_viewport(self, surface):
        surface.viewport.zoom = 2.0
        surface.viewport.pan = Point(5, 7)
        assert surface.grid() == {"spacing": 40.0, "offset": {"x": 5, "y": 7}}


class TestPlacement:
    def test_cascade(self, surface):
        positions = [surface.add_document({"_id": f"doc{i}"}).position for i in range(6)]
        assert positions[:3] == [Point(100, 100), Point(140, 140), Point(180, 180)]
        assert positions[5] == Point(100, 100)

    def test_duplicate_id_rejected(self, surface):
        assert surface.add_document({"_id": OID_A}) is not None
        assert surface.add_document({"_id": OID_A, "other": 1}) is None
        assert len(surface) == 1

    def test_missing_id_gets_random_token(self, surface):
        a = surface.add_document({"name": "x"})
        b = surface.add_document({"name": "x"})
        assert a.id != b.id
        assert len(surface) == 2

    def test_add_documents_dedupes_and_staggers(self, surface):
        surface.add_document({"_id": OID_A})
        added = surface.add_documents(
            [{"_id": OID_A}, {"_id": OID_B}, {"_id": OID_B}, {"_id": OID_C}], "items"
        )
        assert [d.id for d in added] == [OID_B, OID_C]
        assert [d.position for d in added] == [Point(240, 240), Point(260, 260)]
        assert all(d.collection_label == "items" for d in added)

    def test_add_documents_nothing_new(self, surface):
        surface.add_document({"_id": OID_A})
        assert surface.add_documents([{"_id": OID_A}]) == []
        assert surface.history.can_undo
        surface.undo()
        assert len(surface) == 0

    def test_clear(self, linked):
        linked.clear()
        assert len(linked) == 0
        assert len(linked.registry) == 0


class TestHistory:
    def test_undo_redo_placement(self, linked):
        assert linked.undo()
        assert OID_B not in linked
        assert linked.frame() == ()
        assert linked.redo()
        assert OID_B in linked
        assert len(linked.frame()) == 1

    def test_undo_move(self, linked):
        linked.update_position(OID_A, 10, 10)
        linked.undo()
        assert linked.get(OID_A).position == Point(100, 100)

    def test_nothing_to_undo(self, surface):
        assert not surface.undo()
        assert not surface.redo()

    def test_new_action_clears_redo(self, linked):
        linked.undo()
        linked.add_document({"_id": OID_C})
        assert not linked.redo()

    def test_history_bounded(self):
        surface = CanvasSurface(history_limit=3)
        for i in range(10):
            surface.add_document({"_id": f"d{i}"})
        undone = 0
        while surface.undo():
            undone += 1
        assert undone == 3
        assert len(surface) == 7


class TestSnapshots:
    def test_snapshot_restore(self, linked):
        linked.viewport.zoom = 1.5
        linked.colors.randomize(OID_B)
        blob = linked.snapshot()
        other = CanvasSurface()
        other.restore(blob)
        assert [d.id for d in other.documents] == [OID_A, OID_B]
        assert other.get(OID_A).collection_label == "users"
        assert other.viewport.zoom == 1.5
        (seg,) = other.frame()
        assert seg.color == linked.frame()[0].color
        assert not other.history.can_undo

    def test_placed_document_dict(self):
        doc = PlacedDocument(OID_A, {"_id": OID_A}, Point(1, 2), "users")
        assert doc.to_dict() == {"_id": OID_A, "data": {"_id": OID_A}, "collection": "users", "x": 1, "y": 2}
        assert PlacedDocument.from_dict(doc.to_dict()) == doc
