"""Tests for the bounded access log."""

from __future__ import annotations

import logging
import sqlite3

from readyhub.access_log import AccessLogger
from readyhub.db.models import LogRecord


def _event(status="ok", detail="", operation="fetch"):
    return LogRecord(operation=operation, status=status, detail=detail, duration_ms=3)


def test_record_and_recent(tmp_db):
    log = AccessLogger(tmp_db)
    log.record(_event(detail="first"))
    log.record(_event(detail="second", operation="ingest"))

    records = log.recent()
    assert [r.detail for r in records] == ["second", "first"]
    assert records[0].operation == "ingest"
    assert records[0].duration_ms == 3
    assert records[0].recorded_at.endswith("Z")
    assert records[0].id > records[1].id


def test_recent_limit(tmp_db):
    log = AccessLogger(tmp_db)
    for i in range(5):
        log.record(_event(detail=str(i)))
    assert [r.detail for r in log.recent(limit=2)] == ["4", "3"]


def test_explicit_timestamp_kept(tmp_db):
    log = AccessLogger(tmp_db)
    log.record(LogRecord(operation="ingest", status="ok", recorded_at="2026-10-18T12:00:00Z"))
    assert log.recent()[0].recorded_at == "2026-10-18T12:00:00Z"


def test_prunes_oldest_beyond_max(tmp_db):
    log = AccessLogger(tmp_db, max_records=3)
    for i in range(5):
        log.record(_event(detail=str(i)))

    assert log.count() == 3
    assert [r.detail for r in log.recent()] == ["4", "3", "2"]


def test_record_commits(tmp_db):
    AccessLogger(tmp_db).record(_event())
    assert not tmp_db.in_transaction


def test_none_connection_drops_record(caplog):
    log = AccessLogger(None)
    with caplog.at_level(logging.WARNING, logger="readyhub.access_log"):
        log.record(_event(status="error"))
    assert "dropped fetch/error" in caplog.text
    assert log.recent() == []
    assert log.count() == 0


def test_missing_table_never_raises(tmp_path, caplog):
    conn = sqlite3.connect(tmp_path / "bare.db", isolation_level=None)
    with caplog.at_level(logging.WARNING, logger="readyhub.access_log"):
        AccessLogger(conn).record(_event())
    assert "Failed to record access log entry" in caplog.text
    conn.close()


def test_closed_connection_never_raises(tmp_db, caplog):
    log = AccessLogger(tmp_db)
    tmp_db.close()
    with caplog.at_level(logging.WARNING, logger="readyhub.access_log"):
        log.record(_event())
    assert "Failed to record" in caplog.text
