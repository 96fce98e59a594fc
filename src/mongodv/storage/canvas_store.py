"""SQLite storage for named canvas saves."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path


class CanvasStore:
    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(db_path))
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")

    def init_db(self) -> None:
        """Create tables and indexes."""
        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS canvases (
                name TEXT PRIMARY KEY,
                blob TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                document_count INTEGER NOT NULL DEFAULT 0
            );
            CREATE INDEX IF NOT EXISTS idx_canvases_timestamp ON canvases(timestamp);
            """
        )
        self._conn.commit()

    def save_blob(self, name: str, blob: dict) -> str:
        """Insert or overwrite a save. Returns the timestamp stored with it."""
        timestamp = blob.get("timestamp") or datetime.now(timezone.utc).isoformat()
        stored = {**blob, "timestamp": timestamp}
        self._conn.execute(
            "INSERT OR REPLACE INTO canvases (name, blob, timestamp, document_count) "
            "VALUES (?, ?, ?, ?)",
            (name, json.dumps(stored), timestamp, len(blob.get("documents") or [])),
        )
        self._conn.commit()
        return timestamp

    def load_blob(self, name: str) -> dict | None:
        cur = self._conn.execute("SELECT blob FROM canvases WHERE name = ?", (name,))
        row = cur.fetchone()
        return json.loads(row["blob"]) if row else None

    def list_blobs(self) -> list[dict]:
        """All saves, newest first."""
        cur = self._conn.execute(
            "SELECT name, timestamp, document_count FROM canvases ORDER BY timestamp DESC"
        )
        return [dict(row) for row in cur.fetchall()]

    def delete_blob(self, name: str) -> bool:
        cur = self._conn.execute("DELETE FROM canvases WHERE name = ?", (name,))
        self._conn.commit()
        return cur.rowcount > 0

    def close(self) -> None:
        self._conn.close()
