"""Result cache for the serialized dashboard payload.

SQLite-backed, TTL-bounded, with a maximum entry size. Keys embed a
schema-version token (see readyhub.payload.PAYLOAD_CACHE_KEY); entries
under superseded keys are never read again and simply expire.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cache_entries (
    key         TEXT PRIMARY KEY,
    payload     TEXT NOT NULL,
    expires_at  REAL NOT NULL
);
"""


class CacheError(Exception):
    """Raised when the cache database cannot be opened, read or written."""


class CacheEntryTooLarge(CacheError):
    """The serialized payload exceeds the cache's maximum entry size."""


class ResultCache:
    """Versioned-key, TTL-bounded payload cache.

    Args:
        db_path: SQLite file holding the cache (created if missing).
        max_entry_bytes: Largest UTF-8 payload ``put`` accepts.
        clock: Returns the current time in epoch seconds (injectable for tests).
    """

    def __init__(
        self,
        db_path: Path | str,
        max_entry_bytes: int = 100_000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._max_entry_bytes = max_entry_bytes
        self._clock = clock
        conn: sqlite3.Connection | None = None
        try:
            conn = sqlite3.connect(str(self._db_path))
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(_SCHEMA)
        except sqlite3.Error as exc:
            if conn is not None:
                conn.close()
            raise CacheError(f"Cannot open cache '{self._db_path}': {exc}") from exc
        self._conn = conn

    def get(self, key: str) -> str | None:
        """Return the cached payload for *key*, or None on a miss or expiry.

        Raises:
            CacheError: The cache database could not be read.
        """
        try:
            row = self._conn.execute(
                "SELECT payload, expires_at FROM cache_entries WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise CacheError(f"Cannot read cache entry '{key}': {exc}") from exc
        if row is None:
            return None
        payload, expires_at = row
        if expires_at <= self._clock():
            self.invalidate(key)
            return None
        return payload

    def put(self, key: str, payload: str, ttl_seconds: float) -> None:
        """Store *payload* under *key* for *ttl_seconds* (upsert).

        Raises:
            CacheEntryTooLarge: The payload exceeds ``max_entry_bytes``.
            CacheError: The cache database rejected the write.
        """
        size = len(payload.encode("utf-8"))
        if size > self._max_entry_bytes:
            raise CacheEntryTooLarge(
                f"Payload is {size} bytes; cache entries are limited to "
                f"{self._max_entry_bytes} bytes."
            )
        try:
            self._conn.execute(
                "INSERT OR REPLACE INTO cache_entries (key, payload, expires_at) VALUES (?, ?, ?)",
                (key, payload, self._clock() + ttl_seconds),
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            raise CacheError(f"Cannot store cache entry '{key}': {exc}") from exc

    def invalidate(self, key: str) -> None:
        """Remove the entry for *key* (no-op if absent).

        Raises:
            CacheError: The cache database rejected the delete.
        """
        try:
            self._conn.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
            self._conn.commit()
        except sqlite3.Error as exc:
            raise CacheError(f"Cannot invalidate cache entry '{key}': {exc}") from exc

    def clear(self) -> int:
        """Remove every entry. Returns the number of entries removed."""
        cur = self._conn.execute("DELETE FROM cache_entries")
        self._conn.commit()
        return cur.rowcount

    def expires_at(self, key: str) -> float | None:
        """Epoch expiry of a live entry for *key*, or None."""
        row = self._conn.execute(
            "SELECT expires_at FROM cache_entries WHERE key = ?", (key,)
        ).fetchone()
        if row is None or row[0] <= self._clock():
            return None
        return row[0]

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
