"""
Tool: State Store
Purpose: Versioned per-user key/value persistence for learning state

Three blobs are stored per user, each under a versioned key:
    vibe-weight-delta-v1:<user>    PersonalDelta document
    vibe-corrections-v1:<user>     Correction log document
    vibe-pattern-cache-v1:<user>   Cached insight snapshot

Reads return a LoadResult so callers can tell "missing" from "corrupt".
Writes return a result dict and never raise for storage failures.

Dependencies:
    - sqlite3 (stdlib)
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, TypeVar

from vibecore import DB_PATH
from vibecore.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DELTA_PREFIX = "vibe-weight-delta-v1"
CORRECTIONS_PREFIX = "vibe-corrections-v1"
PATTERN_CACHE_PREFIX = "vibe-pattern-cache-v1"


def delta_key(user_id: str) -> str:
    return f"{DELTA_PREFIX}:{user_id}"


def corrections_key(user_id: str) -> str:
    return f"{CORRECTIONS_PREFIX}:{user_id}"


def pattern_cache_key(user_id: str) -> str:
    return f"{PATTERN_CACHE_PREFIX}:{user_id}"


def user_keys(user_id: str) -> list[str]:
    return [delta_key(user_id), corrections_key(user_id), pattern_cache_key(user_id)]


@dataclass
class LoadResult(Generic[T]):
    """Outcome of reading one persisted blob.

    ok=True with value=None means the key was simply absent.
    ok=False means the stored data could not be read or parsed; value then
    holds the fallback the caller should use.
    """

    ok: bool
    value: T | None = None
    error: str | None = None

    @property
    def degraded(self) -> bool:
        return not self.ok


def get_connection() -> sqlite3.Connection:
    """Get database connection, creating tables if needed."""
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(DB_PATH))
    conn.row_factory = sqlite3.Row

    cursor = conn.cursor()
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS kv_entries (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
        )
    """)

    conn.commit()
    return conn


def read_json(key: str) -> LoadResult[Any]:
    """Read and decode one JSON blob."""
    try:
        conn = get_connection()
        try:
            row = conn.execute("SELECT value FROM kv_entries WHERE key = ?", (key,)).fetchone()
        finally:
            conn.close()
    except sqlite3.Error as e:
        logger.warning("state_read_failed", key=key, error=str(e))
        return LoadResult(ok=False, error=f"read failed: {e}")

    if row is None:
        return LoadResult(ok=True, value=None)

    try:
        return LoadResult(ok=True, value=json.loads(row["value"]))
    except json.JSONDecodeError as e:
        logger.warning("state_decode_failed", key=key, error=str(e))
        return LoadResult(ok=False, error=f"invalid JSON: {e}")


def write_json(key: str, value: Any) -> dict[str, Any]:
    """Replace the blob stored under key."""
    try:
        payload = json.dumps(value)
    except (TypeError, ValueError) as e:
        return {"success": False, "error": f"Unserializable value: {e}"}

    try:
        conn = get_connection()
        try:
            conn.execute(
                """
                INSERT INTO kv_entries (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """,
                (key, payload, datetime.now().isoformat()),
            )
            conn.commit()
        finally:
            conn.close()
    except sqlite3.Error as e:
        logger.warning("state_write_failed", key=key, error=str(e))
        return {"success": False, "error": str(e)}

    return {"success": True, "key": key, "bytes": len(payload)}


def write_raw(key: str, payload: str) -> dict[str, Any]:
    """Store an already-encoded value as is."""
    try:
        conn = get_connection()
        try:
            conn.execute(
                "INSERT OR REPLACE INTO kv_entries (key, value, updated_at) VALUES (?, ?, ?)",
                (key, payload, datetime.now().isoformat()),
            )
            conn.commit()
        finally:
            conn.close()
    except sqlite3.Error as e:
        logger.warning("state_write_failed", key=key, error=str(e))
        return {"success": False, "error": str(e)}

    return {"success": True, "key": key}


def delete_keys(keys: list[str]) -> dict[str, Any]:
    try:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.executemany("DELETE FROM kv_entries WHERE key = ?", [(k,) for k in keys])
            deleted = cursor.rowcount
            conn.commit()
        finally:
            conn.close()
    except sqlite3.Error as e:
        logger.warning("state_delete_failed", keys=keys, error=str(e))
        return {"success": False, "error": str(e)}

    return {"success": True, "deleted": deleted}
