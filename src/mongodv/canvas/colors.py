"""Stable per-identifier colours for connection lines."""

from __future__ import annotations

DEFAULT_COLOR = "#fbbf24"
GOLDEN_RATIO_CONJUGATE = 0.618033988749895

_FNV_OFFSET = 2166136261
_FNV_PRIME = 16777619


def fnv1a(text: str) -> int:
    """32-bit FNV-1a over the string's code points."""
    h = _FNV_OFFSET
    for ch in text:
        h ^= ord(ch)
        h = (h * _FNV_PRIME) & 0xFFFFFFFF
    return h


def color_from_id(value: str | None, salt: int = 0) -> str:
    """HSL colour for ``value``; bump ``salt`` to pick a different one."""
    if not value:
        return DEFAULT_COLOR
    key = value if salt == 0 else f"{value}:{salt}"
    h = fnv1a(key)
    hue = (h * GOLDEN_RATIO_CONJUGATE * 360) % 360
    saturation = 65 + (h % 15)
    lightness = 55 + (h % 10)
    return f"hsl({abs(hue):g}, {saturation}%, {lightness}%)"


class ColorOverrides:
    """Per-value salts so a user can re-roll a colour that clashes."""

    def __init__(self) -> None:
        self._salts: dict[str, int] = {}

    def randomize(self, value: str) -> str:
        self._salts[value] = self._salts.get(value, 0) + 1
        return self.color_for(value)

    def color_for(self, value: str) -> str:
        return color_from_id(value, self._salts.get(value, 0))

    def to_dict(self) -> dict[str, int]:
        return dict(self._salts)

    def load(self, salts: dict[str, int] | None) -> None:
        self._salts = {k: int(v) for k, v in (salts or {}).items()}
