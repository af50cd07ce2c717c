"""Readyhub configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (READYHUB_SOURCE, READYHUB_STORE, READYHUB_TABLE, READYHUB_CACHE)
  3. Per-project readyhub.yaml
  4. Global ~/.readyhub/config.yaml
  5. Hardcoded defaults

The configuration is resolved once per invocation and passed to the
ingest / fetch operations. Identifiers without a usable default (the
source location) are read through ``HubConfig.require()``, which fails
loudly instead of guessing.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".readyhub"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "readyhub.yaml"

# Hard per-cell limit of the backing store (characters).
MAX_CELL_CHARS: int = 50_000

TABLE_NAME_RE: re.Pattern[str] = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["source", "store", "chunking", "cache", "access_log"]
)

# env var -> dotted config key
_ENV_OVERRIDES: dict[str, str] = {
    "READYHUB_SOURCE": "source.location",
    "READYHUB_STORE": "store.path",
    "READYHUB_TABLE": "store.table",
    "READYHUB_CACHE": "cache.path",
}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a required setting is missing or a value is invalid."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class SourceCfg:
    """Export feed location (readyhub.yaml: source:).

    Attributes:
        location: Directory or .zip archive holding the flat-file export.
            No default — must be configured.
        encoding: Text encoding of the export files.
    """

    location: str | None = None
    encoding: str = "utf-8"


@dataclass
class StoreCfg:
    """Backing tabular store (readyhub.yaml: store:)."""

    path: str = ".readyhub.db"
    table: str = "ChunkedData"


@dataclass
class ChunkingCfg:
    """Fragment sizing (readyhub.yaml: chunking:)."""

    max_fragment_size: int = 45_000


@dataclass
class CacheCfg:
    """Result cache (readyhub.yaml: cache:)."""

    path: str = ".readyhub-cache.db"
    ttl_hours: float = 6.0
    max_entry_bytes: int = 100_000


@dataclass
class AccessLogCfg:
    """Access log retention (readyhub.yaml: access_log:)."""

    max_records: int = 500


@dataclass
class HubConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    source: SourceCfg = field(default_factory=SourceCfg)
    store: StoreCfg = field(default_factory=StoreCfg)
    chunking: ChunkingCfg = field(default_factory=ChunkingCfg)
    cache: CacheCfg = field(default_factory=CacheCfg)
    access_log: AccessLogCfg = field(default_factory=AccessLogCfg)

    def require(self, key: str) -> Any:
        """Return the value at dotted *key*, raising if it is unset or blank.

        Example:
            cfg.require("source.location")

        Raises:
            ConfigError: The key is unknown, None, or an empty string.
        """
        section_name, _, attr = key.partition(".")
        section = getattr(self, section_name, None)
        if section is None or not attr or not hasattr(section, attr):
            raise ConfigError(f"Unknown config key '{key}'.")
        value = getattr(section, attr)
        if value is None or (isinstance(value, str) and not value.strip()):
            env = next((e for e, k in _ENV_OVERRIDES.items() if k == key), None)
            hint = f"export {env}=<value>" if env else f"{_PROJECT_CONFIG_NAME}: {key}"
            raise ConfigError(
                f"Required setting '{key}' is not configured.\n"
                f"  Set it in {_PROJECT_CONFIG_NAME} or via:  {hint}"
            )
        return value


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def validate_config(cfg: HubConfig) -> None:
    """Raise ConfigError for values the pipeline cannot run with."""
    size = cfg.chunking.max_fragment_size
    if not 1 <= size <= MAX_CELL_CHARS:
        raise ConfigError(
            f"chunking.max_fragment_size must be between 1 and {MAX_CELL_CHARS}, got {size}."
        )
    if not TABLE_NAME_RE.fullmatch(cfg.store.table):
        raise ConfigError(
            f"store.table '{cfg.store.table}' is not a valid table name "
            "(letters, digits and underscores; must not start with a digit)."
        )
    if cfg.cache.ttl_hours <= 0:
        raise ConfigError(f"cache.ttl_hours must be > 0, got {cfg.cache.ttl_hours}.")
    if cfg.cache.max_entry_bytes < 1:
        raise ConfigError(
            f"cache.max_entry_bytes must be >= 1, got {cfg.cache.max_entry_bytes}."
        )
    if cfg.access_log.max_records < 1:
        raise ConfigError(
            f"access_log.max_records must be >= 1, got {cfg.access_log.max_records}."
        )


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file '{path}' is not valid YAML: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file '{path}' must contain a mapping at the top level.")
    return raw


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> HubConfig:
    """Build a *HubConfig* from a merged raw YAML dict."""
    cfg = HubConfig()

    try:
        if "source" in data:
            s = data["source"] or {}
            location = s.get("location", cfg.source.location)
            cfg.source = SourceCfg(
                location=str(location) if location is not None else None,
                encoding=str(s.get("encoding", cfg.source.encoding)),
            )

        if "store" in data:
            st = data["store"] or {}
            cfg.store = StoreCfg(
                path=str(st.get("path", cfg.store.path)),
                table=str(st.get("table", cfg.store.table)),
            )

        if "chunking" in data:
            ch = data["chunking"] or {}
            cfg.chunking = ChunkingCfg(
                max_fragment_size=int(
                    ch.get("max_fragment_size", cfg.chunking.max_fragment_size)
                ),
            )

        if "cache" in data:
            c = data["cache"] or {}
            cfg.cache = CacheCfg(
                path=str(c.get("path", cfg.cache.path)),
                ttl_hours=float(c.get("ttl_hours", cfg.cache.ttl_hours)),
                max_entry_bytes=int(c.get("max_entry_bytes", cfg.cache.max_entry_bytes)),
            )

        if "access_log" in data:
            a = data["access_log"] or {}
            cfg.access_log = AccessLogCfg(
                max_records=int(a.get("max_records", cfg.access_log.max_records)),
            )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid config value: {exc}") from exc

    return cfg


def _apply_env_overrides(cfg: HubConfig) -> HubConfig:
    """Apply READYHUB_* environment variable overrides (layer 2)."""
    for env, key in _ENV_OVERRIDES.items():
        if value := os.environ.get(env):
            section_name, _, attr = key.partition(".")
            setattr(getattr(cfg, section_name), attr, value)
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> HubConfig:
    """Load and return a merged *HubConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *readyhub.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Returns:
        Fully merged and validated *HubConfig*.

    Raises:
        ConfigError: If a config file is malformed or a value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    # Layer 1: global config
    if global_path.exists():
        raw_global = _read_yaml(global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    # Layer 2: per-project config
    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = _read_yaml(project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)

    # Layer 3: env var overrides
    cfg = _apply_env_overrides(cfg)

    validate_config(cfg)
    return cfg


def ensure_project_config(project_dir: Path, source_location: str | None = None) -> Path:
    """Create ``readyhub.yaml`` in *project_dir* if it does not exist.

    Args:
        project_dir: Directory to write the config into.
        source_location: Optional export folder / ZIP path to pre-fill.

    Returns:
        Path to the project config file.
    """
    target = project_dir / _PROJECT_CONFIG_NAME
    if target.exists():
        return target

    location_line = (
        f"  location: {source_location}\n"
        if source_location
        else "  # location: exports/            # folder or .zip of the roster export\n"
    )
    content = (
        "# Readyhub project configuration.\n"
        "# Environment variables (READYHUB_SOURCE, READYHUB_STORE, READYHUB_TABLE,\n"
        "# READYHUB_CACHE) override the values below.\n"
        "\n"
        "source:\n"
        f"{location_line}"
        "  encoding: utf-8\n"
        "\n"
        "store:\n"
        "  path: .readyhub.db\n"
        "  table: ChunkedData\n"
        "\n"
        "chunking:\n"
        "  max_fragment_size: 45000\n"
        "\n"
        "cache:\n"
        "  path: .readyhub-cache.db\n"
        "  ttl_hours: 6\n"
        "  max_entry_bytes: 100000\n"
        "\n"
        "access_log:\n"
        "  max_records: 500\n"
    )
    target.write_text(content, encoding="utf-8")
    return target
