"""Retained-mode scene layout for document cards.

Cards are laid out as fixed-metric text rows: a header (the drag handle)
followed by one row per visible line of the rendered tree. Mounting a card
registers each identifier leaf it shows; unmounting unregisters them. The
layout answers bounds queries in screen space, which is what the link
reconciler needs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from mongodv.canvas.classify import Kind
from mongodv.canvas.reconciler import Rect
from mongodv.canvas.registry import ReferenceRegistry
from mongodv.canvas.tree import EmptyMarker, Leaf, Section, VisualNode, iter_rows
from mongodv.canvas.viewport import Point, Viewport
from mongodv.errors import DetachedHandleError

CARD_WIDTH = 350.0
CARD_PADDING = 16.0
HEADER_HEIGHT = 40.0
ROW_HEIGHT = 20.0
INDENT = 15.0
CHAR_WIDTH = 7.2
LABEL_GAP = 6.0
TOGGLE_WIDTH = 14.0


class Region(str, Enum):
    HANDLE = "handle"
    BODY = "body"


@dataclass
class _MountedLeaf:
    path: str
    local: Rect
    handle: int | None


@dataclass
class _Card:
    card_id: str
    position: Point
    height: float
    leaves: dict[str, _MountedLeaf] = field(default_factory=dict)
    sections: dict[str, Rect] = field(default_factory=dict)


def _label_width(label: str | None) -> float:
    if label is None:
        return 0.0
    return (len(label) + 1) * CHAR_WIDTH + LABEL_GAP


def measure(node: VisualNode) -> tuple[dict[str, Rect], dict[str, Rect], float]:
    """Card-local rects for leaves and section toggles, plus the card height."""
    leaves: dict[str, Rect] = {}
    sections: dict[str, Rect] = {}
    y = CARD_PADDING + HEADER_HEIGHT
    for depth, row in iter_rows(node):
        x = CARD_PADDING + depth * INDENT
        if isinstance(row, Section):
            width = TOGGLE_WIDTH + _label_width(row.label) + len(row.type_label) * CHAR_WIDTH
            sections[row.path] = Rect(x, y, width, ROW_HEIGHT)
        elif isinstance(row, Leaf):
            x += _label_width(row.label)
            leaves[row.path] = Rect(x, y, len(row.text) * CHAR_WIDTH, ROW_HEIGHT)
        elif isinstance(row, EmptyMarker):
            pass
        y += ROW_HEIGHT
    return leaves, sections, y + CARD_PADDING


class SceneLayout:
    """Geometry for every mounted card; implements ``BoundsProvider``."""

    def __init__(self, registry: ReferenceRegistry, viewport: Viewport) -> None:
        self._registry = registry
        self._viewport = viewport
        self._cards: dict[str, _Card] = {}
        self._handles: dict[int, tuple[str, str]] = {}

    # ── Mount / unmount ──

    def mount(self, card_id: str, node: VisualNode, position: Point) -> None:
        """Mount a rendered card, registering each identifier leaf it shows."""
        self.unmount(card_id)
        leaf_rects, section_rects, height = measure(node)
        card = _Card(card_id=card_id, position=position, height=height, sections=section_rects)
        for _, row in iter_rows(node):
            if not isinstance(row, Leaf):
                continue
            handle = None
            if row.kind is Kind.IDENTIFIER_STRING:
                handle = self._registry.issue_token()
                self._registry.register(handle, row.value, row.role)
                self._handles[handle] = (card_id, row.path)
            card.leaves[row.path] = _MountedLeaf(row.path, leaf_rects[row.path], handle)
        self._cards[card_id] = card

    def unmount(self, card_id: str) -> None:
        card = self._cards.pop(card_id, None)
        if card is None:
            return
        for leaf in card.leaves.values():
            if leaf.handle is not None:
                self._registry.unregister(leaf.handle)
                self._handles.pop(leaf.handle, None)

    def unmount_all(self) -> None:
        for card_id in list(self._cards):
            self.unmount(card_id)

    def move_card(self, card_id: str, position: Point) -> None:
        card = self._cards.get(card_id)
        if card is not None:
            card.position = position

    # ── Queries ──

    def _to_screen(self, card: _Card, local: Rect) -> Rect:
        zoom = self._viewport.zoom
        origin = self._viewport.to_screen(
            Point(card.position.x + local.left, card.position.y + local.top)
        )
        return Rect(origin.x, origin.y, local.width * zoom, local.height * zoom)

    def get_bounds(self, handle: int) -> Rect | None:
        try:
            card_id, path = self._handles[handle]
        except KeyError:
            raise DetachedHandleError(handle) from None
        card = self._cards[card_id]
        return self._to_screen(card, card.leaves[path].local)

    def leaf_bounds(self, card_id: str, path: str) -> Rect | None:
        card = self._cards.get(card_id)
        if card is None or path not in card.leaves:
            return None
        return self._to_screen(card, card.leaves[path].local)

    def card_bounds(self, card_id: str) -> Rect | None:
        card = self._cards.get(card_id)
        if card is None:
            return None
        return self._to_screen(card, Rect(0.0, 0.0, CARD_WIDTH, card.height))

    def hit_test(self, screen_point: Point) -> tuple[str, Region, str | None] | None:
        """Topmost card under the point, the region hit, and any section toggle path."""
        for card in reversed(list(self._cards.values())):
            whole = self._to_screen(card, Rect(0.0, 0.0, CARD_WIDTH, card.height))
            if not whole.contains(screen_point):
                continue
            handle = self._to_screen(card, Rect(0.0, 0.0, CARD_WIDTH, CARD_PADDING + HEADER_HEIGHT))
            if handle.contains(screen_point):
                return card.card_id, Region.HANDLE, None
            for path, local in card.sections.items():
                if self._to_screen(card, local).contains(screen_point):
                    return card.card_id, Region.BODY, path
            return card.card_id, Region.BODY, None
        return None

    def raise_card(self, card_id: str) -> None:
        """Move a card to the top of the hit-test order."""
        card = self._cards.pop(card_id, None)
        if card is not None:
            self._cards[card_id] = card
