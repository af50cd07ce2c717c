"""Ingest — classify, chunk and bulk-write one export into the store.

Run order:
  1. resolve config (fatal if incomplete; nothing touched yet)
  2. invalidate the cached payload
  3. classify every export file; read matched ones (per-file errors skip the file)
  4. chunk matched files in rule-priority order
  5. replace the store contents in one transaction (fatal on failure)

Runs are not resumable: a failed run is fixed by running again.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from readyhub.access_log import AccessLogger
from readyhub.cache import ResultCache
from readyhub.config import ConfigError, HubConfig
from readyhub.db.connection import Database
from readyhub.db.models import ChunkRow, LogRecord
from readyhub.db.schema import initialize
from readyhub.ingest.chunker import FragmentChunker
from readyhub.ingest.classifier import DEFAULT_CLASSIFIER, ClassifiedFile, Classifier
from readyhub.ingest.sources import ExportSource, SourceReadError, open_source
from readyhub.payload import PAYLOAD_CACHE_KEY
from readyhub.store.errors import WriteFailure
from readyhub.store.writer import StoreWriter, write_order

logger = logging.getLogger(__name__)


@dataclass
class IngestReport:
    """Outcome of one ingestion run.

    Attributes:
        status: ``"ok"`` or ``"no_data"`` (nothing matched; store untouched).
        last_updated: Timestamp stamped on every row of this run.
        files: Matched files, in write order.
        unmatched: Files no rule applies to.
        failed: ``(name, reason)`` for matched files that could not be read.
        rows_written: Rows now in the store.
    """

    status: str = "ok"
    last_updated: str = ""
    files: list[str] = field(default_factory=list)
    unmatched: list[str] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)
    rows_written: int = 0


def format_timestamp(moment: datetime) -> str:
    """Render *moment* as the store's ISO-8601 UTC timestamp."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


def collect(
    source: ExportSource,
    classifier: Classifier,
    report: IngestReport,
) -> list[ClassifiedFile]:
    """Classify and read every export file, recording skips on *report*."""
    matched: list[ClassifiedFile] = []
    for name in source.list_names():
        rule = classifier.classify(name)
        if rule is None:
            report.unmatched.append(name)
            continue
        try:
            file = source.read(name)
        except SourceReadError as exc:
            logger.warning("Skipping %s: %s", name, exc)
            report.failed.append((name, str(exc)))
            continue
        matched.append(ClassifiedFile(name=name, content=file.raw_content, rule=rule))
    return matched


def build_rows(
    files: list[ClassifiedFile],
    chunker: FragmentChunker,
    last_updated: str,
) -> list[ChunkRow]:
    """Chunk *files* in write order: rule priority, then chunk index."""
    rows: list[ChunkRow] = []
    for file in write_order(files):
        rows.extend(chunker.chunk(file, last_updated))
    return rows


def run_ingest(
    cfg: HubConfig,
    *,
    cache: ResultCache | None = None,
    classifier: Classifier | None = None,
    now: datetime | None = None,
) -> IngestReport:
    """Replace the store with the current export.

    Args:
        cfg: Resolved configuration; ``source.location`` is required.
        cache: Result cache to invalidate; opened from ``cfg.cache`` when None.
        classifier: Rule table override (defaults to the built-in table).
        now: Run timestamp override (for testing).

    Returns:
        IngestReport describing what was written and what was skipped.

    Raises:
        ConfigError: Source location missing or not found.
        SourceReadError: The export archive itself cannot be opened.
        CacheError: The cached payload could not be invalidated; the store
            is left untouched.
        WriteFailure: The store could not be opened or the bulk write
            failed; the cache is already invalidated.
    """
    location = cfg.require("source.location")
    try:
        source = open_source(location, encoding=cfg.source.encoding)
    except FileNotFoundError as exc:
        raise ConfigError(f"source.location: {exc}") from exc

    started = time.monotonic()
    report = IngestReport(
        last_updated=format_timestamp(now or datetime.now(timezone.utc))
    )

    own_cache = cache is None
    if cache is None:
        cache = ResultCache(cfg.cache.path, max_entry_bytes=cfg.cache.max_entry_bytes)
    conn: sqlite3.Connection | None = None

    try:
        # Stale payloads must not be served once a run has started.
        cache.invalidate(PAYLOAD_CACHE_KEY)

        try:
            conn = Database(cfg.store.path).connect()
            initialize(conn)
        except sqlite3.Error as exc:
            raise WriteFailure(f"Cannot open store '{cfg.store.path}': {exc}") from exc
        access = AccessLogger(conn, max_records=cfg.access_log.max_records)

        files = collect(source, classifier or DEFAULT_CLASSIFIER, report)
        report.files = [f.name for f in write_order(files)]
        rows = build_rows(
            files, FragmentChunker(cfg.chunking.max_fragment_size), report.last_updated
        )

        if not rows:
            report.status = "no_data"
            logger.warning("No export files matched in %s — store left unchanged", location)
            access.record(
                LogRecord(
                    operation="ingest",
                    status="no_data",
                    detail=f"{len(report.unmatched)} unmatched, {len(report.failed)} failed",
                    duration_ms=_ms(started),
                )
            )
            return report

        try:
            report.rows_written = StoreWriter(conn, cfg.store.table).replace_all(rows)
        except WriteFailure as exc:
            access.record(
                LogRecord(
                    operation="ingest", status="error", detail=str(exc), duration_ms=_ms(started)
                )
            )
            raise

        access.record(
            LogRecord(
                operation="ingest",
                status="ok",
                detail=f"{len(report.files)} files, {report.rows_written} rows",
                duration_ms=_ms(started),
            )
        )
        return report
    finally:
        if conn is not None:
            conn.close()
        if own_cache:
            cache.close()


def _ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
