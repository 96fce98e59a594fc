"""Canvas core: re-exports the surface and its building blocks."""

from mongodv.canvas.classify import Kind, classify  # noqa: F401
from mongodv.canvas.reconciler import ConnectionSegment, LinkReconciler, Rect  # noqa: F401
from mongodv.canvas.registry import ReferenceRegistry, Role  # noqa: F401
from mongodv.canvas.surface import CanvasSurface, PlacedDocument  # noqa: F401
from mongodv.canvas.viewport import Point, Viewport  # noqa: F401
