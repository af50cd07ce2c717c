"""Tests for readyhub config loader."""

from __future__ import annotations

import warnings
from pathlib import Path

import pytest
import yaml

from readyhub.config import (
    MAX_CELL_CHARS,
    ConfigError,
    HubConfig,
    ensure_project_config,
    load_config,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_yaml(path: Path, data: dict) -> None:
    path.write_text(yaml.dump(data), encoding="utf-8")


# ---------------------------------------------------------------------------
# Defaults (no config files present)
# ---------------------------------------------------------------------------


def test_load_config_defaults_no_files(tmp_path: Path) -> None:
    """No config files → all hardcoded defaults."""
    missing_global = tmp_path / "nonexistent" / "config.yaml"
    cfg = load_config(project_dir=tmp_path, global_config_path=missing_global)

    assert cfg.source.location is None
    assert cfg.source.encoding == "utf-8"
    assert cfg.store.path == ".readyhub.db"
    assert cfg.store.table == "ChunkedData"
    assert cfg.chunking.max_fragment_size == 45_000
    assert cfg.cache.ttl_hours == 6.0
    assert cfg.cache.max_entry_bytes == 100_000
    assert cfg.access_log.max_records == 500


# ---------------------------------------------------------------------------
# Layering
# ---------------------------------------------------------------------------


def test_project_config_overrides_global(tmp_path: Path) -> None:
    global_cfg = tmp_path / "global.yaml"
    _write_yaml(global_cfg, {"store": {"table": "GlobalTable", "path": "global.db"}})
    _write_yaml(tmp_path / "readyhub.yaml", {"store": {"table": "ProjectTable"}})

    cfg = load_config(project_dir=tmp_path, global_config_path=global_cfg)
    assert cfg.store.table == "ProjectTable"
    # Deep merge keeps the global value for keys the project file omits
    assert cfg.store.path == "global.db"


def test_env_overrides_project_config(tmp_path: Path, monkeypatch) -> None:
    _write_yaml(tmp_path / "readyhub.yaml", {"source": {"location": "from-yaml"}})
    monkeypatch.setenv("READYHUB_SOURCE", "/data/export.zip")
    monkeypatch.setenv("READYHUB_TABLE", "EnvTable")

    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")
    assert cfg.source.location == "/data/export.zip"
    assert cfg.store.table == "EnvTable"


def test_empty_project_file_gives_defaults(tmp_path: Path) -> None:
    (tmp_path / "readyhub.yaml").write_text("", encoding="utf-8")
    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")
    assert cfg.store.table == "ChunkedData"


def test_unknown_section_warns(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "readyhub.yaml", {"dashboard": {"theme": "dark"}})
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")
    assert any("dashboard" in str(w.message) for w in caught)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def test_invalid_yaml_raises(tmp_path: Path) -> None:
    (tmp_path / "readyhub.yaml").write_text("store: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigError, match="not valid YAML"):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")


def test_fragment_size_above_cell_limit_rejected(tmp_path: Path) -> None:
    _write_yaml(
        tmp_path / "readyhub.yaml", {"chunking": {"max_fragment_size": MAX_CELL_CHARS + 1}}
    )
    with pytest.raises(ConfigError, match="max_fragment_size"):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")


def test_fragment_size_zero_rejected(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "readyhub.yaml", {"chunking": {"max_fragment_size": 0}})
    with pytest.raises(ConfigError):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")


def test_non_numeric_value_rejected(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "readyhub.yaml", {"cache": {"ttl_hours": "soon"}})
    with pytest.raises(ConfigError):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")


def test_bad_table_name_rejected(tmp_path: Path) -> None:
    _write_yaml(tmp_path / "readyhub.yaml", {"store": {"table": "Chunked Data; DROP"}})
    with pytest.raises(ConfigError, match="store.table"):
        load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")


# ---------------------------------------------------------------------------
# Required vs defaulted accessors
# ---------------------------------------------------------------------------


def test_require_returns_value() -> None:
    cfg = HubConfig()
    cfg.source.location = "exports/"
    assert cfg.require("source.location") == "exports/"


def test_require_missing_raises_with_hint() -> None:
    with pytest.raises(ConfigError) as exc_info:
        HubConfig().require("source.location")
    assert "READYHUB_SOURCE" in str(exc_info.value)


def test_require_blank_raises() -> None:
    cfg = HubConfig()
    cfg.source.location = "   "
    with pytest.raises(ConfigError):
        cfg.require("source.location")


def test_require_unknown_key_raises() -> None:
    with pytest.raises(ConfigError, match="Unknown"):
        HubConfig().require("store.nope")


def test_require_defaulted_value() -> None:
    assert HubConfig().require("store.table") == "ChunkedData"


# ---------------------------------------------------------------------------
# ensure_project_config
# ---------------------------------------------------------------------------


def test_ensure_project_config_writes_loadable_template(tmp_path: Path) -> None:
    path = ensure_project_config(tmp_path, source_location="exports/capwatch.zip")
    assert path.exists()

    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")
    assert cfg.source.location == "exports/capwatch.zip"
    assert cfg.chunking.max_fragment_size == 45_000


def test_ensure_project_config_keeps_existing(tmp_path: Path) -> None:
    (tmp_path / "readyhub.yaml").write_text("store:\n  table: Mine\n", encoding="utf-8")
    ensure_project_config(tmp_path, source_location="other")
    assert "Mine" in (tmp_path / "readyhub.yaml").read_text(encoding="utf-8")


def test_ensure_project_config_without_source_leaves_it_unset(tmp_path: Path) -> None:
    ensure_project_config(tmp_path)
    cfg = load_config(project_dir=tmp_path, global_config_path=tmp_path / "none.yaml")
    assert cfg.source.location is None
