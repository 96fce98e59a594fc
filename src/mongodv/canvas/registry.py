"""Reference registry: every mounted identifier leaf, keyed by its mount token."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    DEFINITION = "definition"
    REFERENCE = "reference"


def role_for_path(path: str) -> Role:
    """A leaf defines an identifier iff its own key is exactly ``_id``."""
    last = path.rsplit(".", 1)[-1]
    return Role.DEFINITION if last == "_id" else Role.REFERENCE


@dataclass(frozen=True)
class RegistryEntry:
    handle: int
    value: str
    role: Role


class ReferenceRegistry:
    """Live index of mounted identifier leaves.

    Handles are integer tokens issued at mount time. Several handles may
    carry the same value; duplicates across documents are meaningful.
    """

    def __init__(self) -> None:
        self._entries: dict[int, RegistryEntry] = {}
        self._tokens = itertools.count(1)

    def issue_token(self) -> int:
        return next(self._tokens)

    def register(self, handle: int, value: str, role: Role) -> None:
        self._entries[handle] = RegistryEntry(handle=handle, value=value, role=Role(role))

    def unregister(self, handle: int) -> None:
        self._entries.pop(handle, None)

    def get(self, handle: int) -> RegistryEntry | None:
        return self._entries.get(handle)

    def snapshot(self) -> tuple[RegistryEntry, ...]:
        return tuple(self._entries.values())

    def values(self) -> set[str]:
        return {e.value for e in self._entries.values()}

    def __contains__(self, handle: object) -> bool:
        return handle in self._entries

    def __len__(self) -> int:
        return len(self._entries)
