"""HTTP client for the proxy API. Every failure becomes a ``BackendError``."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from mongodv import config
from mongodv.errors import BackendError

logger = logging.getLogger(__name__)


class BackendClient:
    def __init__(self, base_url: str | None = None, timeout: float = 30.0,
                 http: httpx.Client | None = None) -> None:
        self._http = http or httpx.Client(base_url=base_url or config.API_BASE, timeout=timeout)

    def _post(self, path: str, body: dict, action: str) -> dict:
        try:
            resp = self._http.post(path, json=body)
        except httpx.HTTPError as e:
            raise BackendError(f"Failed to {action}: {e}") from e
        if resp.status_code >= 400:
            try:
                payload = resp.json()
            except ValueError:
                payload = {}
            message = None
            if isinstance(payload, dict):
                message = payload.get("error") or payload.get("detail")
            raise BackendError(message or f"Failed to {action}", status_code=resp.status_code)
        return resp.json()

    def connect(self, uri: str) -> dict:
        return self._post("/connect", {"uri": uri}, "connect")

    def list_databases(self, uri: str) -> list[dict]:
        return self._post("/databases", {"uri": uri}, "list databases")["databases"]

    def list_collections(self, uri: str, db_name: str) -> list[dict]:
        return self._post(
            "/collections", {"uri": uri, "db": db_name}, "list collections"
        )["collections"]

    def fetch_schema(self, uri: str, db_name: str, collection: str) -> dict:
        return self._post(
            "/schema", {"uri": uri, "db": db_name, "collection": collection}, "fetch schema"
        )

    def fetch_documents(self, uri: str, db_name: str, collection: str,
                        limit: int | None = None, query: dict | None = None) -> dict:
        body: dict[str, Any] = {"uri": uri, "db": db_name, "collection": collection}
        if limit is not None:
            body["limit"] = limit
        if query:
            body["query"] = query
        return self._post("/documents", body, "fetch documents")

    def close(self) -> None:
        self._http.close()
