"""Pan/zoom state of the canvas and the canvas <-> screen transforms."""

from __future__ import annotations

from dataclasses import dataclass

MIN_ZOOM = 0.1
MAX_ZOOM = 5.0
WHEEL_SENSITIVITY = 0.001
HUD_ZOOM_STEP = 0.1


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def __mul__(self, k: float) -> Point:
        return Point(self.x * k, self.y * k)

    def __truediv__(self, k: float) -> Point:
        return Point(self.x / k, self.y / k)

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, d: dict) -> Point:
        return cls(float(d.get("x", 0)), float(d.get("y", 0)))


ORIGIN = Point(0.0, 0.0)


def clamp_zoom(zoom: float) -> float:
    return min(max(zoom, MIN_ZOOM), MAX_ZOOM)


class Viewport:
    """Translation (screen pixels) and scale applied to canvas space."""

    def __init__(self, pan: Point = ORIGIN, zoom: float = 1.0) -> None:
        self.pan = pan
        self.zoom = clamp_zoom(zoom)

    def to_screen(self, p: Point) -> Point:
        return p * self.zoom + self.pan

    def to_canvas(self, p: Point) -> Point:
        return (p - self.pan) / self.zoom

    def apply_zoom_at(self, screen_point: Point, delta_zoom: float,
                      sensitivity: float = WHEEL_SENSITIVITY) -> None:
        """Zoom by ``delta_zoom * sensitivity`` keeping ``screen_point`` fixed."""
        old = self.zoom
        new = clamp_zoom(old + delta_zoom * sensitivity)
        self.pan = screen_point - (screen_point - self.pan) * (new / old)
        self.zoom = new

    def wheel(self, screen_point: Point, delta_y: float) -> None:
        # wheel down (positive deltaY) zooms out
        self.apply_zoom_at(screen_point, -delta_y)

    def pan_by(self, delta: Point) -> None:
        self.pan = self.pan + delta

    def zoom_in(self) -> None:
        self.zoom = clamp_zoom(self.zoom + HUD_ZOOM_STEP)

    def zoom_out(self) -> None:
        self.zoom = clamp_zoom(self.zoom - HUD_ZOOM_STEP)

    def reset(self) -> None:
        self.pan = ORIGIN
        self.zoom = 1.0

    @property
    def zoom_percent(self) -> int:
        return round(self.zoom * 100)

    def to_dict(self) -> dict:
        return {"pan": self.pan.to_dict(), "zoom": self.zoom}

    @classmethod
    def from_dict(cls, d: dict | None) -> Viewport:
        if not d:
            return cls()
        return cls(pan=Point.from_dict(d.get("pan") or {}), zoom=float(d.get("zoom", 1.0)))

    def __repr__(self) -> str:
        return f"Viewport(pan=({self.pan.x:.1f}, {self.pan.y:.1f}), zoom={self.zoom:.3f})"
