"""Link reconciler: turns registry entries into connection segments every frame."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable

from mongodv.canvas.colors import ColorOverrides
from mongodv.canvas.registry import ReferenceRegistry, RegistryEntry, Role
from mongodv.canvas.viewport import Point

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    width: float
    height: float

    @property
    def center(self) -> Point:
        return Point(self.left + self.width / 2, self.top + self.height / 2)

    def contains(self, p: Point) -> bool:
        return (
            self.left <= p.x <= self.left + self.width
            and self.top <= p.y <= self.top + self.height
        )


@runtime_checkable
class BoundsProvider(Protocol):
    """Whatever renders the nodes: answers "where is this handle on screen now"."""

    def get_bounds(self, handle: int) -> Rect | None: ...


@dataclass(frozen=True)
class ConnectionSegment:
    start: Point
    end: Point
    value: str
    color: str
    reference: int
    definition: int


def group_by_value(
    entries: tuple[RegistryEntry, ...],
) -> dict[str, tuple[list[RegistryEntry], list[RegistryEntry]]]:
    """``value -> (definitions, references)`` in registration order."""
    groups: dict[str, tuple[list[RegistryEntry], list[RegistryEntry]]] = defaultdict(
        lambda: ([], [])
    )
    for entry in entries:
        defs, refs = groups[entry.value]
        if entry.role is Role.DEFINITION:
            defs.append(entry)
        else:
            refs.append(entry)
    return dict(groups)


def _visible_bounds(bounds: BoundsProvider, handle: int) -> Rect | None:
    try:
        rect = bounds.get_bounds(handle)
    except Exception:
        # Detached mid-frame; the unmount will unregister it shortly.
        return None
    if rect is None or rect.width == 0:
        return None
    return rect


def compute_segments(
    entries: tuple[RegistryEntry, ...],
    bounds: BoundsProvider,
    colors: ColorOverrides | None = None,
) -> tuple[ConnectionSegment, ...]:
    """Join every reference to every definition that shares its value.

    Rects come back in screen space already, so centres are used as-is.
    """
    colors = colors or ColorOverrides()
    segments: list[ConnectionSegment] = []
    for value, (defs, refs) in group_by_value(entries).items():
        if not defs or not refs:
            continue
        def_rects = [(d, _visible_bounds(bounds, d.handle)) for d in defs]
        color = colors.color_for(value)
        for ref in refs:
            ref_rect = _visible_bounds(bounds, ref.handle)
            if ref_rect is None:
                continue
            for d, def_rect in def_rects:
                if def_rect is None:
                    continue
                segments.append(ConnectionSegment(
                    start=ref_rect.center,
                    end=def_rect.center,
                    value=value,
                    color=color,
                    reference=ref.handle,
                    definition=d.handle,
                ))
    return tuple(segments)


class LinkReconciler:
    """Recomputes and publishes connection segments on a fixed cadence."""

    def __init__(
        self,
        registry: ReferenceRegistry,
        bounds: BoundsProvider,
        colors: ColorOverrides | None = None,
    ) -> None:
        self._registry = registry
        self._bounds = bounds
        self.colors = colors or ColorOverrides()
        self._segments: tuple[ConnectionSegment, ...] = ()
        self.frames = 0

    @property
    def segments(self) -> tuple[ConnectionSegment, ...]:
        return self._segments

    def reconcile_once(self) -> tuple[ConnectionSegment, ...]:
        snapshot = self._registry.snapshot()
        # single assignment: readers see the old tuple or the new one
        self._segments = compute_segments(snapshot, self._bounds, self.colors)
        self.frames += 1
        return self._segments

    async def run(
        self,
        stop: asyncio.Event,
        interval: float | None = None,
        on_frame: Callable[[tuple[ConnectionSegment, ...]], None] | None = None,
    ) -> None:
        """Reconcile once per frame until ``stop`` is set."""
        if interval is None:
            from mongodv import config
            interval = config.FRAME_INTERVAL
        logger.debug("Link reconciler started (interval=%.4fs)", interval)
        while not stop.is_set():
            segments = self.reconcile_once()
            if on_frame is not None:
                on_frame(segments)
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
        logger.debug("Link reconciler stopped after %d frames", self.frames)
