"""Shared test helpers: identifiers, fake bounds and mock pymongo client factories."""

from unittest.mock import MagicMock

from mongodv.canvas.reconciler import Rect
from mongodv.errors import DetachedHandleError

OID_A = "507f1f77bcf86cd799439011"
OID_B = "65a1b2c3d4e5f60718293a4b"
OID_C = "0123456789abcdef01234567"


class FakeBounds:
    """BoundsProvider backed by a dict; unknown handles are detached."""

    def __init__(self, rects: dict[int, Rect] | None = None, broken=()) -> None:
        self.rects = rects if rects is not None else {}
        self.broken: set[int] = set(broken)

    def get_bounds(self, handle: int) -> Rect | None:
        if handle in self.broken:
            raise RuntimeError("node went away")
        if handle not in self.rects:
            raise DetachedHandleError(handle)
        return self.rects[handle]


def _make_mongo_factory(docs=None, dbs=None, collections=None):
    """Create a mock MongoClient factory.

    Returns (factory, client, collection). ``client[db][coll]`` resolves to
    ``collection`` for any names; ``collection.find(...).limit(n)`` yields ``docs``.
    """
    collection = MagicMock()
    collection.find.return_value.limit.side_effect = lambda n: iter(list(docs or [])[:n])

    db = MagicMock()
    db.__getitem__.return_value = collection
    db.list_collections.side_effect = lambda: iter(collections or [])

    client = MagicMock()
    client.__getitem__.return_value = db
    client.list_databases.side_effect = lambda: iter(dbs or [])
    client.admin.command.return_value = {"ok": 1.0}

    factory = MagicMock(return_value=client)
    return factory, client, collection
