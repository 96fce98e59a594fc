"""Pointer gestures on the canvas: card drags and background pans.

At most one gesture is active at a time. The arbiter owns that fact, so a
card drag and a background pan can never both be live, and a press that a
card or the HUD has already claimed never reaches the pan handler.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from mongodv.canvas.viewport import Point, Viewport

PRIMARY_BUTTON = 0
MIDDLE_BUTTON = 1


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass(frozen=True)
class Drag:
    card_id: str


@dataclass(frozen=True)
class Pan:
    pass


Gesture = Drag | Pan


class GestureArbiter:
    def __init__(self) -> None:
        self.active: Gesture | None = None

    def try_begin(self, gesture: Gesture) -> bool:
        if self.active is not None:
            return False
        self.active = gesture
        return True

    def end(self, gesture: Gesture) -> bool:
        """Clear ``gesture`` if it is the active one. False on a second call."""
        if self.active != gesture:
            return False
        self.active = None
        return True

    @property
    def is_idle(self) -> bool:
        return self.active is None


class DragController:
    """Idle -> Dragging -> Idle for one document card.

    While dragging, the card's live position is
    ``position_at_press + (pointer - press_point) / zoom``; the same formula
    produces the committed position on release, so the result depends only on
    the press and release points, not on how many moves happened in between.
    """

    def __init__(
        self,
        card_id: str,
        arbiter: GestureArbiter,
        viewport: Viewport,
        commit: Callable[[str, float, float], None],
    ) -> None:
        self.card_id = card_id
        self._arbiter = arbiter
        self._viewport = viewport
        self._commit = commit
        self.state = DragState.IDLE
        self._press_point: Point | None = None
        self._start: Point | None = None
        self.live_position: Point | None = None

    def press(self, screen_point: Point, button: int, position: Point) -> bool:
        if button != PRIMARY_BUTTON or self.state is DragState.DRAGGING:
            return False
        if not self._arbiter.try_begin(Drag(self.card_id)):
            return False
        self.state = DragState.DRAGGING
        self._press_point = screen_point
        self._start = position
        self.live_position = position
        return True

    def _position_for(self, screen_point: Point) -> Point:
        assert self._press_point is not None and self._start is not None
        return self._start + (screen_point - self._press_point) / self._viewport.zoom

    def move(self, screen_point: Point) -> Point | None:
        if self.state is not DragState.DRAGGING:
            return None
        self.live_position = self._position_for(screen_point)
        return self.live_position

    def release(self, screen_point: Point) -> Point | None:
        if self.state is not DragState.DRAGGING:
            return None
        final = self._position_for(screen_point)
        self.state = DragState.IDLE
        self._press_point = None
        self._start = None
        self.live_position = None
        self._arbiter.end(Drag(self.card_id))
        self._commit(self.card_id, final.x, final.y)
        return final


class PanController:
    """Background drag that moves the viewport by the incremental pointer delta."""

    def __init__(self, arbiter: GestureArbiter, viewport: Viewport) -> None:
        self._arbiter = arbiter
        self._viewport = viewport
        self._last: Point | None = None

    @property
    def is_panning(self) -> bool:
        return self._last is not None

    def press(self, screen_point: Point, button: int) -> bool:
        if button not in (PRIMARY_BUTTON, MIDDLE_BUTTON):
            return False
        if not self._arbiter.try_begin(Pan()):
            return False
        self._last = screen_point
        return True

    def move(self, screen_point: Point) -> None:
        if self._last is None:
            return
        self._viewport.pan_by(screen_point - self._last)
        self._last = screen_point

    def release(self) -> None:
        if self._last is None:
            return
        self._last = None
        self._arbiter.end(Pan())
