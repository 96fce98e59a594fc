"""Bounded undo/redo stacks of canvas snapshots."""

from __future__ import annotations

import copy
from typing import Any


class CanvasHistory:
    def __init__(self, max_history: int = 50) -> None:
        self.max_history = max_history
        self._past: list[Any] = []
        self._future: list[Any] = []

    def record(self, state: Any) -> None:
        """Push the state as it was *before* a mutation; clears redo."""
        self._past.append(copy.deepcopy(state))
        if len(self._past) > self.max_history:
            self._past = self._past[-self.max_history:]
        self._future.clear()

    def undo(self, current: Any) -> Any:
        if not self._past:
            return current
        previous = self._past.pop()
        self._future.insert(0, copy.deepcopy(current))
        return previous

    def redo(self, current: Any) -> Any:
        if not self._future:
            return current
        nxt = self._future.pop(0)
        self._past.append(copy.deepcopy(current))
        return nxt

    @property
    def can_undo(self) -> bool:
        return bool(self._past)

    @property
    def can_redo(self) -> bool:
        return bool(self._future)

    def clear(self) -> None:
        self._past.clear()
        self._future.clear()
