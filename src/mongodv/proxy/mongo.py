"""Stateless MongoDB proxy: every call opens a client, runs one operation, closes it."""

from __future__ import annotations

import copy
import json
import logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Iterator

from bson import ObjectId, json_util
from bson.errors import InvalidId
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from mongodv import config
from mongodv.canvas.classify import is_object_id
from mongodv.errors import ProxyConnectionError, ProxyError

logger = logging.getLogger(__name__)


def _iso(dt: datetime) -> str:
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def to_jsonable(value: Any) -> Any:
    """BSON document -> plain JSON value (ObjectId as hex, datetimes as ISO-8601 UTC)."""
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return _iso(value)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    # Decimal128, Binary, Timestamp, ... keep their Extended JSON form
    return json.loads(json_util.dumps(value))


def prepare_query(query: dict | None) -> dict:
    """Decode Extended JSON markers and coerce a hex ``_id`` to ObjectId, best-effort."""
    if not query:
        return {}
    try:
        prepared = json_util.loads(json.dumps(query))
    except (TypeError, ValueError, InvalidId) as e:
        logger.debug("Extended JSON decode failed (%s); using raw query", e)
        prepared = copy.deepcopy(query)
    raw_id = prepared.get("_id")
    if is_object_id(raw_id):
        try:
            prepared["_id"] = ObjectId(raw_id)
        except InvalidId:
            pass
    return prepared


class MongoProxy:
    """Forwards browse and query requests to the driver.

    Args:
        client_factory: Callable ``(uri, **kwargs) -> MongoClient``. Tests pass
            a MagicMock factory.
    """

    def __init__(self, client_factory: Callable[..., Any] = MongoClient) -> None:
        self._client_factory = client_factory

    @contextmanager
    def _client(self, uri: str) -> Iterator[Any]:
        try:
            client = self._client_factory(
                uri, serverSelectionTimeoutMS=config.SERVER_SELECTION_TIMEOUT_MS
            )
        except PyMongoError as e:
            raise ProxyConnectionError(str(e)) from e
        try:
            yield client
        finally:
            client.close()

    def connect(self, uri: str) -> dict:
        t0 = time.perf_counter()
        try:
            with self._client(uri) as client:
                client.admin.command("ping")
        except PyMongoError as e:
            raise ProxyConnectionError(str(e)) from e
        logger.info("Ping ok (%.2fs)", time.perf_counter() - t0)
        return {"success": True, "message": "Connected successfully"}

    def list_databases(self, uri: str) -> list[dict]:
        try:
            with self._client(uri) as client:
                dbs = list(client.list_databases())
        except PyMongoError as e:
            raise ProxyError(str(e)) from e
        return [
            {"name": d["name"], "sizeOnDisk": d.get("sizeOnDisk", 0), "empty": d.get("empty", False)}
            for d in dbs
        ]

    def list_collections(self, uri: str, db_name: str) -> list[dict]:
        try:
            with self._client(uri) as client:
                cols = list(client[db_name].list_collections())
        except PyMongoError as e:
            raise ProxyError(str(e)) from e
        return [{"name": c["name"], "type": c.get("type", "collection")} for c in cols]

    def fetch_schema(self, uri: str, db_name: str, collection: str,
                     sample_size: int | None = None) -> dict:
        """Union of top-level field names over the first few documents, first-seen order."""
        n = sample_size or config.SCHEMA_SAMPLE_SIZE
        keys: dict[str, None] = {}
        try:
            with self._client(uri) as client:
                for doc in client[db_name][collection].find({}).limit(n):
                    for key in doc:
                        keys.setdefault(key, None)
        except PyMongoError as e:
            raise ProxyError(str(e)) from e
        return {"keys": list(keys)}

    def fetch_documents(self, uri: str, db_name: str, collection: str,
                        limit: int | None = None, query: dict | None = None) -> dict:
        if not limit or limit <= 0:
            limit = config.DEFAULT_LIMIT
        prepared = prepare_query(query)
        t0 = time.perf_counter()
        try:
            with self._client(uri) as client:
                cursor = client[db_name][collection].find(prepared).limit(limit)
                docs = [to_jsonable(d) for d in cursor]
        except PyMongoError as e:
            raise ProxyError(str(e)) from e
        logger.info(
            "find %s.%s limit=%d -> %d docs (%.2fs)",
            db_name, collection, limit, len(docs), time.perf_counter() - t0,
        )
        # hard cap even if the driver ignored the limit
        return {"documents": docs[:limit]}
