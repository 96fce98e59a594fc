"""Shared fixtures: canvas surface, registry and a fresh canvas store per test."""

import pytest

from mongodv.canvas.registry import ReferenceRegistry
from mongodv.canvas.surface import CanvasSurface
from mongodv.storage.canvas_store import CanvasStore


@pytest.fixture
def store(tmp_path):
    """Create a fresh CanvasStore with schema initialized."""
    s = CanvasStore(tmp_path / "test.db")
    s.init_db()
    return s


@pytest.fixture
def registry():
    return ReferenceRegistry()


@pytest.fixture
def surface():
    """1280x800 canvas at zoom 1, pan (0, 0)."""
    return CanvasSurface(width=1280.0, height=800.0)
