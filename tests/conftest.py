"""Shared pytest fixtures."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest
import yaml

from readyhub.config import CacheCfg, HubConfig, SourceCfg, StoreCfg
from readyhub.db.connection import Database
from readyhub.db.schema import initialize

FIXED_NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)
FIXED_STAMP = "2026-10-18T12:00:00Z"


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch, tmp_path):
    """Keep the user's global config and READYHUB_* env vars out of tests."""
    for var in ("READYHUB_SOURCE", "READYHUB_STORE", "READYHUB_TABLE", "READYHUB_CACHE"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(
        "readyhub.config._GLOBAL_CONFIG_PATH", tmp_path / "no-global" / "config.yaml"
    )


@pytest.fixture
def tmp_db(tmp_path):
    """File-based store DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / ".readyhub.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def export_dir(tmp_path) -> Path:
    """Empty export folder."""
    path = tmp_path / "export"
    path.mkdir()
    return path


@pytest.fixture
def cfg(tmp_path, export_dir) -> HubConfig:
    """Config pointing every path into tmp_path."""
    return HubConfig(
        source=SourceCfg(location=str(export_dir)),
        store=StoreCfg(path=str(tmp_path / ".readyhub.db"), table="ChunkedData"),
        cache=CacheCfg(path=str(tmp_path / ".readyhub-cache.db")),
    )


def write_export(directory: Path, files: dict[str, str | bytes]) -> None:
    """Write *files* (name → text or raw bytes) into *directory*."""
    for name, content in files.items():
        target = directory / name
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content, encoding="utf-8")


@pytest.fixture
def project_dir(tmp_path, cfg) -> Path:
    """Directory holding a readyhub.yaml that mirrors the ``cfg`` fixture."""
    path = tmp_path / "project"
    path.mkdir()
    data = {
        "source": {"location": cfg.source.location},
        "store": {"path": cfg.store.path, "table": cfg.store.table},
        "cache": {"path": cfg.cache.path},
    }
    (path / "readyhub.yaml").write_text(yaml.safe_dump(data), encoding="utf-8")
    return path
