"""FetchPayload — serve the reassembled payload through the result cache.

Cache hit → cached JSON. Cache miss → reassemble from the store, try to
cache (best effort), return. Store-not-ready errors propagate so the
caller can tell the user to run ingest.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from dataclasses import dataclass, field
from pathlib import Path

from readyhub.access_log import AccessLogger
from readyhub.cache import CacheError, ResultCache
from readyhub.config import HubConfig
from readyhub.db.connection import Database
from readyhub.db.models import LogRecord
from readyhub.db.schema import initialize
from readyhub.store.errors import (
    MissingStoreError,
    StoreError,
    StoreNotReadyError,
    StoreUnavailableError,
)
from readyhub.store.reader import Reassembler, ReassemblyResult, SkippedRow

logger = logging.getLogger(__name__)

# Bump whenever the payload shape changes; old entries then age out unread.
PAYLOAD_SCHEMA_VERSION = "v6"
PAYLOAD_CACHE_KEY = f"readiness_payload_{PAYLOAD_SCHEMA_VERSION}"


@dataclass
class FetchResult:
    payload_json: str
    cache_hit: bool
    cached: bool = False
    skipped: list[SkippedRow] = field(default_factory=list)
    missing_keys: list[str] = field(default_factory=list)


def load_payload(cfg: HubConfig, *, cache: ResultCache | None = None) -> FetchResult:
    """Return the payload and how it was produced.

    The cache is best effort in both directions: a cache that cannot be
    opened or read counts as a miss, one that cannot store is skipped.

    Args:
        cfg: Resolved configuration.
        cache: Cache to use; opened from ``cfg.cache`` when None.

    Raises:
        MissingStoreError: The store database or table does not exist.
        EmptyStoreError: The store holds no data rows.
        StoreSchemaError: The store table has unexpected columns.
        StoreUnavailableError: The store database cannot be opened or read.
    """
    started = time.monotonic()
    own_cache = cache is None
    if cache is None:
        try:
            cache = ResultCache(cfg.cache.path, max_entry_bytes=cfg.cache.max_entry_bytes)
        except CacheError as exc:
            logger.warning("Result cache unavailable; reading the store: %s", exc)

    store_path = Path(cfg.store.path)
    open_error: StoreUnavailableError | None = None
    try:
        conn = _open_store(store_path)
    except StoreUnavailableError as exc:
        conn, open_error = None, exc
    access = AccessLogger(conn, max_records=cfg.access_log.max_records)

    try:
        cached = _cache_get(cache)
        if cached is not None:
            access.record(
                LogRecord(operation="fetch", status="cache_hit", duration_ms=_ms(started))
            )
            return FetchResult(payload_json=cached, cache_hit=True, cached=True)

        try:
            if open_error is not None:
                raise open_error
            if conn is None:
                raise MissingStoreError(f"Store database '{store_path}' does not exist.")
            result = _reassemble(conn, cfg.store.table, store_path)
        except StoreError as exc:
            access.record(
                LogRecord(
                    operation="fetch", status="error", detail=str(exc), duration_ms=_ms(started)
                )
            )
            raise

        payload_json = result.payload.to_json()
        stored = False
        if cache is not None:
            try:
                cache.put(PAYLOAD_CACHE_KEY, payload_json, ttl_seconds=cfg.cache.ttl_hours * 3600)
                stored = True
            except CacheError as exc:
                logger.warning("Payload not cached: %s", exc)

        detail = f"{len(result.skipped)} rows skipped" if result.skipped else ""
        access.record(
            LogRecord(operation="fetch", status="ok", detail=detail, duration_ms=_ms(started))
        )
        return FetchResult(
            payload_json=payload_json,
            cache_hit=False,
            cached=stored,
            skipped=result.skipped,
            missing_keys=result.missing_keys,
        )
    finally:
        if conn is not None:
            conn.close()
        if own_cache and cache is not None:
            cache.close()


def _open_store(store_path: Path) -> sqlite3.Connection | None:
    """Open the store if its file exists (None otherwise); never creates it."""
    if not store_path.exists():
        return None
    conn: sqlite3.Connection | None = None
    try:
        conn = Database(store_path).connect()
        initialize(conn)
    except sqlite3.Error as exc:
        if conn is not None:
            conn.close()
        raise StoreUnavailableError(f"Cannot open store '{store_path}': {exc}") from exc
    return conn


def _cache_get(cache: ResultCache | None) -> str | None:
    if cache is None:
        return None
    try:
        return cache.get(PAYLOAD_CACHE_KEY)
    except CacheError as exc:
        logger.warning("Cache read failed; treating as a miss: %s", exc)
        return None


def _reassemble(conn: sqlite3.Connection, table: str, store_path: Path) -> ReassemblyResult:
    try:
        return Reassembler(conn, table).reassemble()
    except sqlite3.Error as exc:
        raise StoreUnavailableError(f"Cannot read store '{store_path}': {exc}") from exc


def fetch_payload(cfg: HubConfig, *, cache: ResultCache | None = None) -> str:
    """Return the serialized payload ``{config, data, meta: {lastUpdated}}``."""
    return load_payload(cfg, cache=cache).payload_json


def error_payload(exc: Exception) -> str:
    """Serialize *exc* as the error payload handed to the dashboard."""
    retryable = isinstance(exc, StoreNotReadyError)
    body = {
        "error": str(exc),
        "retryable": retryable,
        "action": (
            "Run `readyhub ingest` to (re)build the store, then reload."
            if retryable
            else "Check the store configuration and re-run `readyhub ingest`."
        ),
    }
    return json.dumps(body, ensure_ascii=False)


def _ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
