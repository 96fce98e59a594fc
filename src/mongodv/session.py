"""Workspace: the glue between the proxy, the canvas and saved canvases."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Protocol

from mongodv import config
from mongodv.canvas.classify import is_object_id
from mongodv.canvas.prediction import find_best_match, predict_collection_name
from mongodv.canvas.surface import CanvasSurface, PlacedDocument
from mongodv.errors import BackendError, ProxyError
from mongodv.storage.canvas_store import CanvasStore

logger = logging.getLogger(__name__)


class Backend(Protocol):
    def connect(self, uri: str) -> dict: ...
    def list_databases(self, uri: str) -> list[dict]: ...
    def list_collections(self, uri: str, db_name: str) -> list[dict]: ...
    def fetch_schema(self, uri: str, db_name: str, collection: str) -> dict: ...
    def fetch_documents(self, uri: str, db_name: str, collection: str,
                        limit: int | None = None, query: dict | None = None) -> dict: ...


def coerce_query_value(raw: Any) -> Any:
    """Numeric-looking text becomes a number; everything else is left alone."""
    if not isinstance(raw, str) or not raw.strip() or is_object_id(raw):
        return raw
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        return raw


class Workspace:
    """One user's session: connection string, list view, canvas and saves.

    Backend failures never touch the canvas. They land in ``error`` as a
    single message until ``dismiss_error()`` is called or the next call
    succeeds.
    """

    def __init__(
        self,
        backend: Backend,
        store: CanvasStore,
        uri: str | None = None,
        surface: CanvasSurface | None = None,
    ) -> None:
        self.backend = backend
        self.store = store
        self.uri = uri or config.MONGO_URI
        self.surface = surface or CanvasSurface(history_limit=config.HISTORY_LIMIT)
        self.error: str | None = None
        self.connected = False
        self.selected: tuple[str, str] | None = None
        self.results: list[Any] = []
        self.schema_keys: list[str] = []
        self.connection_history: dict[str, dict[str, str]] = {}
        self._collections: dict[str, list[dict]] = {}

    # ── Errors ──

    def _call(self, action: str, fn, *args, **kwargs):
        try:
            result = fn(*args, **kwargs)
        except (BackendError, ProxyError) as e:
            logger.warning("%s failed: %s", action, e)
            self.error = str(e)
            return None
        self.error = None
        return result

    def dismiss_error(self) -> None:
        self.error = None

    # ── Browsing ──

    def connect(self) -> list[dict] | None:
        if self._call("connect", self.backend.connect, self.uri) is None:
            self.connected = False
            return None
        dbs = self._call("list databases", self.backend.list_databases, self.uri)
        self.connected = dbs is not None
        return dbs

    def list_collections(self, db_name: str) -> list[dict]:
        if db_name not in self._collections:
            cols = self._call("list collections", self.backend.list_collections, self.uri, db_name)
            if cols is None:
                return []
            self._collections[db_name] = sorted(cols, key=lambda c: c["name"])
        return self._collections[db_name]

    def select_collection(self, db_name: str, collection: str,
                          limit: int | None = None) -> list[Any]:
        self.selected = (db_name, collection)
        docs = self.run_query(db_name, collection, limit)
        if self.error is not None:
            # fetch failed; leave its error in place
            return docs
        schema = self._call("fetch schema", self.backend.fetch_schema, self.uri, db_name, collection)
        self.schema_keys = list(schema.get("keys", [])) if schema else []
        return docs

    def run_query(self, db_name: str, collection: str, limit: int | None = None,
                  query: dict | None = None) -> list[Any]:
        data = self._call(
            "fetch documents", self.backend.fetch_documents,
            self.uri, db_name, collection, limit or config.DEFAULT_LIMIT, query,
        )
        if data is None:
            return self.results
        self.results = list(data.get("documents", []))
        return self.results

    # ── Canvas ──

    def send_to_canvas(self, doc: Any) -> PlacedDocument | None:
        collection = self.selected[1] if self.selected else "Unknown"
        return self.surface.add_document(doc, collection)

    def connect_traversal(self, value: Any, db_name: str, collection: str,
                          field: str = "_id", limit: int | None = None) -> list[PlacedDocument]:
        """Query ``collection`` for ``field == value`` and place what comes back."""
        query = {field: coerce_query_value(value)}
        data = self._call(
            "connect", self.backend.fetch_documents,
            self.uri, db_name, collection, limit or config.DEFAULT_LIMIT, query,
        )
        if data is None:
            return []
        return self.surface.add_documents(data.get("documents", []), collection)

    def remember_connection(self, path: str, db_name: str, collection: str) -> None:
        self.connection_history[path] = {"db": db_name, "collection": collection}

    def quick_connect_target(self, path: str, db_name: str | None = None) -> dict | None:
        """Where a reference field most likely points: remembered first, then predicted."""
        if path in self.connection_history:
            return {"type": "remembered", **self.connection_history[path]}
        predicted = predict_collection_name(path)
        if not predicted or db_name is None:
            return None
        match = find_best_match(predicted, self.list_collections(db_name))
        if match is None:
            return None
        return {"type": "predicted", "db": db_name, "collection": match}

    def quick_connect(self, path: str, value: Any, db_name: str | None = None) -> list[PlacedDocument]:
        target = self.quick_connect_target(path, db_name)
        if target is None:
            return []
        added = self.connect_traversal(value, target["db"], target["collection"])
        if self.error is None:
            self.remember_connection(path, target["db"], target["collection"])
        return added

    def undo(self) -> bool:
        return self.surface.undo()

    def redo(self) -> bool:
        return self.surface.redo()

    # ── Saves ──

    def save(self, name: str) -> str:
        blob = self.surface.snapshot()
        blob["timestamp"] = datetime.now(timezone.utc).isoformat()
        timestamp = self.store.save_blob(name, blob)
        logger.info("Saved canvas %r (%d documents)", name, len(blob["documents"]))
        return timestamp

    def load(self, name: str) -> bool:
        blob = self.store.load_blob(name)
        if blob is None:
            self.error = f"No saved canvas named '{name}'"
            return False
        self.surface.restore(blob)
        return True

    def list_saves(self) -> list[dict]:
        return self.store.list_blobs()

    def delete_save(self, name: str) -> bool:
        return self.store.delete_blob(name)
