"""Config resolution shared by the CLI commands."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from readyhub.cli.errors import err_config
from readyhub.config import ConfigError, HubConfig, load_config, validate_config

err_console = Console(stderr=True)


def load_cli_config(
    config_dir: Path,
    *,
    source: str | None = None,
    db: Path | None = None,
    table: str | None = None,
    cache: Path | None = None,
) -> HubConfig:
    """Load config from *config_dir* and apply CLI flag overrides (layer 1).

    Exits with code 1 on a configuration error.
    """
    try:
        cfg = load_config(config_dir)
        if source is not None:
            cfg.source.location = source
        if db is not None:
            cfg.store.path = str(db)
        if table is not None:
            cfg.store.table = table
        if cache is not None:
            cfg.cache.path = str(cache)
        validate_config(cfg)
    except ConfigError as exc:
        err_console.print(err_config(exc))
        raise typer.Exit(1) from exc
    return cfg
