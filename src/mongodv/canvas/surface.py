"""Canvas surface: placed documents, viewport, gestures and the connection overlay."""

from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Iterable

from mongodv.canvas.colors import ColorOverrides
from mongodv.canvas.gestures import DragController, Drag, GestureArbiter, Pan, PanController
from mongodv.canvas.history import CanvasHistory
from mongodv.canvas.layout import Region, SceneLayout
from mongodv.canvas.reconciler import ConnectionSegment, LinkReconciler, Rect
from mongodv.canvas.registry import ReferenceRegistry
from mongodv.canvas.tree import all_section_paths, render
from mongodv.canvas.viewport import Point, Viewport

logger = logging.getLogger(__name__)

GRID_SPACING = 20.0
HUD_WIDTH = 320.0
HUD_HEIGHT = 36.0
HUD_MARGIN = 20.0
CLONE_OFFSET = 20.0


def random_token() -> str:
    return uuid.uuid4().hex[:9]


def doc_id_for(payload: Any) -> str:
    """The payload's own ``_id`` as text, or a random token when it has none."""
    if isinstance(payload, dict) and payload.get("_id"):
        return str(payload["_id"])
    return random_token()


@dataclass
class PlacedDocument:
    id: str
    payload: Any
    position: Point
    collection_label: str = "Unknown"

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "data": self.payload,
            "collection": self.collection_label,
            "x": self.position.x,
            "y": self.position.y,
        }

    @classmethod
    def from_dict(cls, d: dict) -> PlacedDocument:
        payload = d.get("data", {})
        return cls(
            id=str(d.get("_id") or doc_id_for(payload)),
            payload=payload,
            position=Point(float(d.get("x", 0)), float(d.get("y", 0))),
            collection_label=d.get("collection") or "Unknown",
        )


class CanvasSurface:
    """Owns every placed document and everything drawn over them.

    Pointer coordinates passed to the ``on_*`` handlers are screen points
    relative to the canvas element's top-left corner, which is also the
    origin of the connection overlay.
    """

    def __init__(self, width: float = 1280.0, height: float = 800.0,
                 history_limit: int = 50) -> None:
        self.width = width
        self.height = height
        self.viewport = Viewport()
        self.registry = ReferenceRegistry()
        self.arbiter = GestureArbiter()
        self.colors = ColorOverrides()
        self.layout = SceneLayout(self.registry, self.viewport)
        self.reconciler = LinkReconciler(self.registry, self.layout, self.colors)
        self.history = CanvasHistory(history_limit)
        self._pan = PanController(self.arbiter, self.viewport)
        self._docs: dict[str, PlacedDocument] = {}
        self._drags: dict[str, DragController] = {}
        self._expanded: dict[str, set[str]] = {}

    # ── Documents ──

    @property
    def documents(self) -> list[PlacedDocument]:
        return list(self._docs.values())

    def get(self, doc_id: str) -> PlacedDocument | None:
        return self._docs.get(doc_id)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._docs

    def __len__(self) -> int:
        return len(self._docs)

    def _mount(self, doc: PlacedDocument) -> None:
        node = render(doc.payload, "", doc.id, self._expanded.setdefault(doc.id, set()))
        self.layout.mount(doc.id, node, doc.position)

    def _place(self, doc: PlacedDocument) -> PlacedDocument:
        self._docs[doc.id] = doc
        self._mount(doc)
        return doc

    def add_document(self, payload: Any, collection: str = "Unknown",
                     position: Point | None = None) -> PlacedDocument | None:
        """Place a document, cascading from (100, 100). None if already placed."""
        doc_id = doc_id_for(payload)
        if doc_id in self._docs:
            return None
        self.history.record(self._state())
        if position is None:
            step = (len(self._docs) % 5) * 40
            position = Point(100.0 + step, 100.0 + step)
        doc = self._place(PlacedDocument(doc_id, payload, position, collection or "Unknown"))
        logger.debug("Placed %s from %s at (%.0f, %.0f)", doc_id, collection, position.x, position.y)
        return doc

    def add_documents(self, payloads: Iterable[Any], collection: str = "Unknown") -> list[PlacedDocument]:
        """Place the results of a connect traversal, skipping ids already on the canvas."""
        fresh: list[tuple[str, Any]] = []
        seen = set(self._docs)
        for payload in payloads:
            doc_id = doc_id_for(payload)
            if doc_id in seen:
                continue
            seen.add(doc_id)
            fresh.append((doc_id, payload))
        if not fresh:
            return []
        self.history.record(self._state())
        base = (len(self._docs) % 5) * 40
        added = []
        for idx, (doc_id, payload) in enumerate(fresh):
            offset = base + idx * 20
            position = Point(200.0 + offset, 200.0 + offset)
            added.append(self._place(PlacedDocument(doc_id, payload, position, collection or "Unknown")))
        logger.debug("Placed %d documents from %s", len(added), collection)
        return added

    def update_position(self, doc_id: str, x: float, y: float) -> None:
        doc = self._docs.get(doc_id)
        if doc is None:
            return
        self.history.record(self._state())
        doc.position = Point(x, y)
        self.layout.move_card(doc_id, doc.position)

    def update_payload(self, doc_id: str, payload: Any) -> None:
        """Swap a card's payload; its identifier leaves re-register from scratch."""
        doc = self._docs.get(doc_id)
        if doc is None:
            return
        self.history.record(self._state())
        doc.payload = payload
        self._mount(doc)

    def clone(self, doc_id: str) -> PlacedDocument | None:
        src = self._docs.get(doc_id)
        if src is None:
            return None
        self.history.record(self._state())
        base = src.payload.get("_id") if isinstance(src.payload, dict) else None
        new_id = f"{base or 'doc'}-{random_token()}"
        position = src.position + Point(CLONE_OFFSET, CLONE_OFFSET)
        return self._place(PlacedDocument(
            new_id, copy.deepcopy(src.payload), position, src.collection_label
        ))

    def delete(self, doc_id: str) -> bool:
        if doc_id not in self._docs:
            return False
        self.history.record(self._state())
        self._remove(doc_id)
        return True

    def _remove(self, doc_id: str) -> None:
        self.layout.unmount(doc_id)
        del self._docs[doc_id]
        self._expanded.pop(doc_id, None)
        drag = self._drags.pop(doc_id, None)
        if drag is not None:
            self.arbiter.end(Drag(doc_id))

    def clear(self) -> None:
        if not self._docs:
            return
        self.history.record(self._state())
        for doc_id in list(self._docs):
            self._remove(doc_id)

    # ── Expand / collapse ──

    def expanded_paths(self, doc_id: str) -> set[str]:
        return set(self._expanded.get(doc_id, ()))

    def toggle_expand(self, doc_id: str, path: str) -> bool:
        """Open or close a section. Returns the new open state."""
        doc = self._docs.get(doc_id)
        if doc is None:
            return False
        paths = self._expanded.setdefault(doc_id, set())
        if path in paths:
            paths.discard(path)
        else:
            paths.add(path)
        self._mount(doc)
        return path in paths

    def expand_all(self, doc_id: str) -> None:
        doc = self._docs.get(doc_id)
        if doc is None:
            return
        self._expanded[doc_id] = set(all_section_paths(doc.payload))
        self._mount(doc)

    def collapse_all(self, doc_id: str) -> None:
        doc = self._docs.get(doc_id)
        if doc is None:
            return
        self._expanded[doc_id] = set()
        self._mount(doc)

    # ── Pointer input ──

    @property
    def hud_rect(self) -> Rect:
        return Rect(
            self.width - HUD_MARGIN - HUD_WIDTH,
            self.height - HUD_MARGIN - HUD_HEIGHT,
            HUD_WIDTH,
            HUD_HEIGHT,
        )

    def _drag_for(self, doc_id: str) -> DragController:
        if doc_id not in self._drags:
            self._drags[doc_id] = DragController(
                doc_id, self.arbiter, self.viewport, self.update_position
            )
        return self._drags[doc_id]

    def on_pointer_down(self, point: Point, button: int = 0) -> str:
        """Route a press to its owner: ``hud``, ``drag``, ``body``, ``pan`` or ``ignored``."""
        if self.hud_rect.contains(point):
            return "hud"
        hit = self.layout.hit_test(point)
        if hit is not None:
            doc_id, region, _ = hit
            if region is Region.HANDLE:
                doc = self._docs[doc_id]
                if self._drag_for(doc_id).press(point, button, doc.position):
                    self.layout.raise_card(doc_id)
                    return "drag"
                return "ignored"
            return "body"
        if self._pan.press(point, button):
            return "pan"
        return "ignored"

    def on_pointer_move(self, point: Point) -> None:
        active = self.arbiter.active
        if isinstance(active, Drag):
            live = self._drags[active.card_id].move(point)
            if live is not None:
                self.layout.move_card(active.card_id, live)
        elif isinstance(active, Pan):
            self._pan.move(point)

    def on_pointer_up(self, point: Point) -> None:
        active = self.arbiter.active
        if isinstance(active, Drag):
            self._drags[active.card_id].release(point)
        elif isinstance(active, Pan):
            self._pan.release()

    def on_click(self, point: Point) -> str | None:
        """Toggle the section header under ``point``; returns its path if one was hit."""
        hit = self.layout.hit_test(point)
        if hit is None:
            return None
        doc_id, region, section = hit
        if region is Region.BODY and section is not None:
            self.toggle_expand(doc_id, section)
            return section
        return None

    def on_wheel(self, point: Point, delta_y: float) -> None:
        self.viewport.wheel(point, delta_y)

    @property
    def is_panning(self) -> bool:
        return self._pan.is_panning

    # ── HUD ──

    def hud_zoom_in(self) -> None:
        self.viewport.zoom_in()

    def hud_zoom_out(self) -> None:
        self.viewport.zoom_out()

    def hud_reset(self) -> None:
        self.viewport.reset()

    def hud_label(self) -> str:
        return f"{self.viewport.zoom_percent}%"

    # ── Rendering ──

    def grid(self) -> dict:
        """Background dot grid: scaled spacing, offset by the pan."""
        return {
            "spacing": GRID_SPACING * self.viewport.zoom,
            "offset": self.viewport.pan.to_dict(),
        }

    def frame(self) -> tuple[ConnectionSegment, ...]:
        return self.reconciler.reconcile_once()

    @property
    def segments(self) -> tuple[ConnectionSegment, ...]:
        return self.reconciler.segments

    # ── Snapshots ──

    def _state(self) -> list[dict]:
        return [d.to_dict() for d in self._docs.values()]

    def _restore_documents(self, docs: list[dict]) -> None:
        self.layout.unmount_all()
        self._docs.clear()
        self._drags.clear()
        self._pan.release()
        self.arbiter.active = None
        for raw in docs:
            doc = PlacedDocument.from_dict(raw)
            self._expanded.setdefault(doc.id, set())
            self._place(doc)
        for stale in set(self._expanded) - set(self._docs):
            del self._expanded[stale]

    def undo(self) -> bool:
        if not self.history.can_undo:
            return False
        self._restore_documents(self.history.undo(self._state()))
        return True

    def redo(self) -> bool:
        if not self.history.can_redo:
            return False
        self._restore_documents(self.history.redo(self._state()))
        return True

    def snapshot(self) -> dict:
        return {
            "documents": self._state(),
            "viewport": self.viewport.to_dict(),
            "colors": self.colors.to_dict(),
        }

    def restore(self, blob: dict) -> None:
        """Replace the whole canvas with a saved snapshot."""
        restored = Viewport.from_dict(blob.get("viewport"))
        self.viewport.pan = restored.pan
        self.viewport.zoom = restored.zoom
        self.colors.load(blob.get("colors"))
        self._expanded.clear()
        self._restore_documents(blob.get("documents") or [])
        self.history.clear()
