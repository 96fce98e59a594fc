"""FastAPI server: MongoDB proxy endpoints and canvas saves."""

from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from mongodv import config
from mongodv.errors import ProxyConnectionError, ProxyError
from mongodv.proxy.mongo import MongoProxy

# Configure logging on import, before anything else logs
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)-5s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger(__name__)

app = FastAPI(title="mongodv", description="Document canvas proxy for MongoDB")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

_proxy = MongoProxy()


def _get_proxy() -> MongoProxy:
    return _proxy


def _get_canvas_store():
    from mongodv.storage.canvas_store import CanvasStore
    store = CanvasStore(config.SQLITE_PATH)
    store.init_db()
    return store


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


class ProxyRequest(BaseModel):
    uri: str | None = None
    db: str | None = None
    collection: str | None = None
    limit: int | None = None
    query: dict[str, Any] | None = None


def _missing(req: ProxyRequest, *fields: str) -> JSONResponse | None:
    labels = {"uri": "Connection string", "db": "Database name", "collection": "Collection name"}
    for name in fields:
        if not getattr(req, name):
            return _error(400, f"{labels[name]} is required")
    return None


@app.get("/health")
def health():
    return {"status": "ok"}


# ── Proxy ──


@app.post("/api/connect")
def connect(req: ProxyRequest):
    resp = _missing(req, "uri")
    if resp is not None:
        return resp
    try:
        return _get_proxy().connect(req.uri)
    except ProxyConnectionError as e:
        logger.warning("Connection error: %s", e)
        return _error(500, f"Failed to connect: {e}")


@app.post("/api/databases")
def databases(req: ProxyRequest):
    resp = _missing(req, "uri")
    if resp is not None:
        return resp
    try:
        return {"databases": _get_proxy().list_databases(req.uri)}
    except ProxyError as e:
        logger.exception("List databases error")
        return _error(500, f"Failed to list databases: {e}")


@app.post("/api/collections")
def collections(req: ProxyRequest):
    resp = _missing(req, "uri", "db")
    if resp is not None:
        return resp
    try:
        return {"collections": _get_proxy().list_collections(req.uri, req.db)}
    except ProxyError as e:
        logger.exception("List collections error")
        return _error(500, f"Failed to list collections: {e}")


@app.post("/api/schema")
def schema(req: ProxyRequest):
    resp = _missing(req, "uri", "db", "collection")
    if resp is not None:
        return resp
    try:
        return _get_proxy().fetch_schema(req.uri, req.db, req.collection)
    except ProxyError as e:
        logger.exception("Fetch schema error")
        return _error(500, f"Failed to fetch schema: {e}")


@app.post("/api/documents")
def documents(req: ProxyRequest):
    resp = _missing(req, "uri", "db", "collection")
    if resp is not None:
        return resp
    logger.info("POST /api/documents %s.%s limit=%s query=%r", req.db, req.collection,
                req.limit, req.query)
    t0 = time.perf_counter()
    try:
        return _get_proxy().fetch_documents(req.uri, req.db, req.collection, req.limit, req.query)
    except ProxyError as e:
        logger.exception("Fetch documents error after %.2fs", time.perf_counter() - t0)
        return _error(500, f"Failed to fetch documents: {e}")


# ── Canvas saves ──


class CanvasBlob(BaseModel):
    documents: list[dict[str, Any]] = []
    viewport: dict[str, Any] | None = None
    colors: dict[str, int] | None = None
    timestamp: str | None = None


@app.get("/api/canvases")
def list_canvases():
    return {"canvases": _get_canvas_store().list_blobs()}


@app.get("/api/canvases/{name}")
def load_canvas(name: str):
    blob = _get_canvas_store().load_blob(name)
    if blob is None:
        return _error(404, f"Canvas '{name}' not found")
    return blob


@app.put("/api/canvases/{name}")
def save_canvas(name: str, blob: CanvasBlob):
    timestamp = _get_canvas_store().save_blob(name, blob.model_dump(exclude_none=True))
    logger.info("Saved canvas %r (%d documents)", name, len(blob.documents))
    return {"name": name, "timestamp": timestamp}


@app.delete("/api/canvases/{name}")
def delete_canvas(name: str):
    if not _get_canvas_store().delete_blob(name):
        return _error(404, f"Canvas '{name}' not found")
    return {"deleted": True, "name": name}
