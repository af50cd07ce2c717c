"""Tests for the readyhub ingest command."""

from __future__ import annotations

from pathlib import Path

import yaml
from typer.testing import CliRunner

from conftest import write_export
from readyhub.cli.main import app
from readyhub.db.connection import Database
from readyhub.store.errors import WriteFailure

runner = CliRunner()


def _rows(cfg) -> list[tuple]:
    with Database(cfg.store.path) as conn:
        return [
            tuple(r)
            for r in conn.execute(f'SELECT Filename, Key, ChunkIndex FROM "{cfg.store.table}"')
        ]


def _ingest(project_dir: Path, *args: str):
    return runner.invoke(app, ["ingest", "--config-dir", str(project_dir), *args])


# ------------------------------------------------------------------
# Success
# ------------------------------------------------------------------


def test_ingest_writes_store(cfg, project_dir, export_dir):
    write_export(export_dir, {"Member.txt": "CAPID\n1\n", "PL_Paths.txt": "p"})
    result = _ingest(project_dir)

    assert result.exit_code == 0, result.output
    assert "2 file(s)" in result.output
    assert _rows(cfg) == [("PL_Paths.txt", "paths", 0), ("Member.txt", "members", 0)]


def test_ingest_lists_unmatched_files(project_dir, export_dir):
    write_export(export_dir, {"Member.txt": "m", "Readme.txt": "r"})
    result = _ingest(project_dir)

    assert result.exit_code == 0
    assert "1 unmatched file(s) skipped" in result.output
    assert "Readme.txt" in result.output


def test_ingest_reports_unreadable_file(project_dir, export_dir):
    write_export(export_dir, {"Member.txt": b"\xff\xfe\xfa", "PL_Paths.txt": "p"})
    result = _ingest(project_dir)

    assert result.exit_code == 0
    assert "✗" in result.output
    assert "1 file(s)" in result.output


def test_source_flag_overrides_config(cfg, project_dir, tmp_path):
    other = tmp_path / "other-export"
    other.mkdir()
    write_export(other, {"Organization.txt": "o"})

    result = _ingest(project_dir, "--source", str(other))

    assert result.exit_code == 0, result.output
    assert _rows(cfg) == [("Organization.txt", "organization", 0)]


def test_no_match_exits_zero_with_warning(project_dir, export_dir):
    write_export(export_dir, {"notes.txt": "x"})
    result = _ingest(project_dir)

    assert result.exit_code == 0
    assert "No export files matched" in result.output


# ------------------------------------------------------------------
# Failures
# ------------------------------------------------------------------


def test_missing_source_location_exits_1(tmp_path):
    project = tmp_path / "bare"
    project.mkdir()
    (project / "readyhub.yaml").write_text(
        yaml.safe_dump({"store": {"path": str(tmp_path / "s.db")}}), encoding="utf-8"
    )
    result = _ingest(project)

    assert result.exit_code == 1
    assert "source.location" in result.output
    assert not (tmp_path / "s.db").exists()


def test_nonexistent_source_exits_1(project_dir, tmp_path):
    result = _ingest(project_dir, "--source", str(tmp_path / "missing"))
    assert result.exit_code == 1
    assert "not found" in result.output


def test_corrupt_archive_exits_1(project_dir, tmp_path):
    archive = tmp_path / "export.zip"
    archive.write_bytes(b"garbage")
    result = _ingest(project_dir, "--source", str(archive))

    assert result.exit_code == 1
    assert "Cannot open export archive" in result.output


def test_write_failure_exits_1(project_dir, export_dir, monkeypatch):
    class _FailingWriter:
        def __init__(self, *args, **kwargs):
            pass

        def replace_all(self, rows):
            raise WriteFailure("quota exceeded")

    monkeypatch.setattr("readyhub.ingest.pipeline.StoreWriter", _FailingWriter)
    write_export(export_dir, {"Member.txt": "m"})
    result = _ingest(project_dir)

    assert result.exit_code == 1
    assert "Store write failed" in result.output
    assert "quota exceeded" in result.output


def test_invalid_table_flag_exits_1(project_dir):
    result = _ingest(project_dir, "--table", "bad name")
    assert result.exit_code == 1
    assert "not a valid table name" in result.output


def test_invalid_yaml_exits_1(tmp_path):
    project = tmp_path / "broken"
    project.mkdir()
    (project / "readyhub.yaml").write_text("source: [unclosed\n", encoding="utf-8")
    result = _ingest(project)

    assert result.exit_code == 1
    assert "YAML" in result.output


def test_unopenable_store_exits_1(project_dir, export_dir, tmp_path):
    store_dir = tmp_path / "store-dir"
    store_dir.mkdir()
    write_export(export_dir, {"Member.txt": "m"})
    result = _ingest(project_dir, "--db", str(store_dir))

    assert result.exit_code == 1
    assert "Store write failed" in result.output


def test_unopenable_cache_exits_1_before_writing(cfg, project_dir, export_dir, tmp_path):
    cache_dir = tmp_path / "cache-dir"
    cache_dir.mkdir()
    write_export(export_dir, {"Member.txt": "m"})
    result = _ingest(project_dir, "--cache", str(cache_dir))

    assert result.exit_code == 1
    assert "Cannot open cache" in result.output
    assert "The store was not touched" in result.output
    assert not Path(cfg.store.path).exists()
