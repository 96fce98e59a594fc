"""Configuration loaded from environment variables."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _split_csv(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


# Database
MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
DEFAULT_LIMIT: int = int(os.getenv("DEFAULT_LIMIT", "20"))
SCHEMA_SAMPLE_SIZE: int = int(os.getenv("SCHEMA_SAMPLE_SIZE", "10"))
SERVER_SELECTION_TIMEOUT_MS: int = int(os.getenv("SERVER_SELECTION_TIMEOUT_MS", "5000"))

# Paths
DATA_DIR: Path = Path(os.getenv("DATA_DIR", "./data"))

# Server
HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "3001"))
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS: list[str] = _split_csv(
    os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:5174")
)
API_BASE: str = os.getenv("API_BASE", f"http://localhost:{PORT}/api")

# Canvas
FRAME_INTERVAL: float = float(os.getenv("FRAME_INTERVAL", str(1 / 60)))
HISTORY_LIMIT: int = int(os.getenv("HISTORY_LIMIT", "50"))

# Derived paths
SQLITE_PATH: Path = DATA_DIR / "mongodv.db"
