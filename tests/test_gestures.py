"""Tests for card drags, background pans and the gesture arbiter."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from mongodv.canvas.gestures import (
    MIDDLE_BUTTON,
    PRIMARY_BUTTON,
    Drag,
    DragController,
    DragState,
    GestureArbiter,
    Pan,
    PanController,
)
from mongodv.canvas.viewport import Point, Viewport


@pytest.fixture
def arbiter():
    return GestureArbiter()


def _drag(arbiter, viewport=None, card_id="card1"):
    commit = MagicMock()
    ctl = DragController(card_id, arbiter, viewport or Viewport(), commit)
    return ctl, commit


class TestArbiter:
    def test_single_active_gesture(self, arbiter):
        assert arbiter.try_begin(Drag("a"))
        assert not arbiter.try_begin(Pan())
        assert not arbiter.try_begin(Drag("b"))
        assert arbiter.active == Drag("a")

    def test_end_only_once(self, arbiter):
        arbiter.try_begin(Pan())
        assert arbiter.end(Pan())
        assert not arbiter.end(Pan())
        assert arbiter.is_idle

    def test_end_wrong_gesture(self, arbiter):
        arbiter.try_begin(Drag("a"))
        assert not arbiter.end(Drag("b"))
        assert arbiter.active == Drag("a")


class TestDragController:
    def test_result_depends_only_on_press_and_release(self, arbiter):
        ctl, commit = _drag(arbiter, Viewport(zoom=2.0))
        assert ctl.press(Point(10, 10), PRIMARY_BUTTON, Point(100, 100))
        for p in (Point(500, -40), Point(0, 0), Point(33, 77)):
            ctl.move(p)
        final = ctl.release(Point(50, 70))
        assert final == Point(120, 130)
        commit.assert_called_once_with("card1", 120, 130)

    def test_live_position_during_move(self, arbiter):
        ctl, _ = _drag(arbiter, Viewport(zoom=0.5))
        ctl.press(Point(0, 0), PRIMARY_BUTTON, Point(10, 10))
        assert ctl.move(Point(5, 5)) == Point(20, 20)
        assert ctl.live_position == Point(20, 20)

    def test_non_primary_button_ignored(self, arbiter):
        ctl, commit = _drag(arbiter)
        assert not ctl.press(Point(0, 0), MIDDLE_BUTTON, Point(0, 0))
        assert not ctl.press(Point(0, 0), 2, Point(0, 0))
        assert ctl.state is DragState.IDLE
        assert arbiter.is_idle
        assert ctl.release(Point(5, 5)) is None
        commit.assert_not_called()

    def test_move_without_press_does_nothing(self, arbiter):
        ctl, _ = _drag(arbiter)
        assert ctl.move(Point(5, 5)) is None

    def test_release_ends_the_gesture_once(self, arbiter):
        ctl, commit = _drag(arbiter)
        ctl.press(Point(0, 0), PRIMARY_BUTTON, Point(0, 0))
        assert arbiter.active == Drag("card1")
        ctl.release(Point(1, 1))
        assert arbiter.is_idle
        assert ctl.release(Point(2, 2)) is None
        assert commit.call_count == 1

    def test_second_card_cannot_start_while_dragging(self, arbiter):
        first, _ = _drag(arbiter, card_id="a")
        second, _ = _drag(arbiter, card_id="b")
        assert first.press(Point(0, 0), PRIMARY_BUTTON, Point(0, 0))
        assert not second.press(Point(0, 0), PRIMARY_BUTTON, Point(0, 0))

    def test_drag_blocks_pan(self, arbiter):
        viewport = Viewport()
        ctl, _ = _drag(arbiter, viewport)
        pan = PanController(arbiter, viewport)
        ctl.press(Point(0, 0), PRIMARY_BUTTON, Point(0, 0))
        assert not pan.press(Point(0, 0), PRIMARY_BUTTON)
        pan.move(Point(50, 50))
        assert viewport.pan == Point(0, 0)


class TestPanController:
    def test_incremental_deltas(self, arbiter):
        viewport = Viewport()
        pan = PanController(arbiter, viewport)
        assert pan.press(Point(100, 100), PRIMARY_BUTTON)
        pan.move(Point(110, 105))
        pan.move(Point(120, 100))
        assert viewport.pan == Point(20, 0)
        pan.release()
        assert not pan.is_panning
        assert arbiter.is_idle

    def test_middle_button_pans(self, arbiter):
        pan = PanController(arbiter, Viewport())
        assert pan.press(Point(0, 0), MIDDLE_BUTTON)
        assert pan.is_panning

    def test_right_button_ignored(self, arbiter):
        pan = PanController(arbiter, Viewport())
        assert not pan.press(Point(0, 0), 2)
        assert arbiter.is_idle

    def test_pan_ignores_zoom(self, arbiter):
        viewport = Viewport(zoom=3.0)
        pan = PanController(arbiter, viewport)
        pan.press(Point(0, 0), PRIMARY_BUTTON)
        pan.move(Point(10, 0))
        assert viewport.pan == Point(10, 0)

    def test_move_after_release_ignored(self, arbiter):
        viewport = Viewport()
        pan = PanController(arbiter, viewport)
        pan.press(Point(0, 0), PRIMARY_BUTTON)
        pan.release()
        pan.release()
        pan.move(Point(50, 50))
        assert viewport.pan == Point(0, 0)
