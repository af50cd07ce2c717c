"""readyhub cache commands.

Commands:
  readyhub cache clear   — drop every cached payload
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from readyhub.cache import ResultCache
from readyhub.cli.common import load_cli_config

console = Console()

cache_app = typer.Typer(
    name="cache",
    help="Manage the payload cache.",
    add_completion=False,
)


@cache_app.command("clear")
def cache_clear_cmd(
    cache: Annotated[
        Path | None,
        typer.Option("--cache", help="Cache database path (overrides cache.path)."),
    ] = None,
    config_dir: Annotated[
        Path,
        typer.Option("--config-dir", help="Directory containing readyhub.yaml."),
    ] = Path("."),
) -> None:
    """Drop all cached payloads; the next fetch reads the store."""
    cfg = load_cli_config(config_dir, cache=cache)

    cache_path = Path(cfg.cache.path)
    if not cache_path.exists():
        console.print("[dim]No cache to clear.[/]")
        raise typer.Exit(0)

    store = ResultCache(cache_path, max_entry_bytes=cfg.cache.max_entry_bytes)
    try:
        removed = store.clear()
    finally:
        store.close()
    console.print(f"[green]✓[/] Cleared {removed} cache entr{'y' if removed == 1 else 'ies'}")
