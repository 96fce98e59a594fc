"""Guess which collection an ID-holding field points at."""

from __future__ import annotations

import re

_ID_SUFFIX = re.compile(r"(_id|id)$", re.IGNORECASE)


def predict_collection_name(field_path: str | None) -> str | None:
    """``"author.userId"`` -> ``"users"``, ``"post_id"`` -> ``"posts"``."""
    if not field_path:
        return None
    field_name = field_path.split(".")[-1].lower()
    base = _ID_SUFFIX.sub("", field_name)
    if base.endswith("_"):
        base = base[:-1]
    if not base:
        return None
    return base if base.endswith("s") else base + "s"


def find_best_match(predicted: str | None, collections: list[dict] | list[str]) -> str | None:
    """Exact, then prefix, then substring match (case-insensitive)."""
    if not predicted or not collections:
        return None
    names = [c["name"] if isinstance(c, dict) else c for c in collections]
    want = predicted.lower()
    for test in (
        lambda n: n == want,
        lambda n: n.startswith(want),
        lambda n: want in n,
    ):
        for name in names:
            if test(name.lower()):
                return name
    return None
