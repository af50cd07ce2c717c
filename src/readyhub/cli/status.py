"""readyhub status command.

Shows the store (rows, keys, last update), the cached payload, and the
access log size. Never creates the store or cache database files.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table

from readyhub.access_log import AccessLogger
from readyhub.cache import ResultCache
from readyhub.cli.common import load_cli_config
from readyhub.config import HubConfig
from readyhub.db.connection import Database
from readyhub.db.schema import initialize
from readyhub.payload import PAYLOAD_CACHE_KEY
from readyhub.store.errors import StoreError
from readyhub.store.reader import Reassembler

console = Console()


def status_cmd(
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Store database path (overrides store.path)."),
    ] = None,
    cache: Annotated[
        Path | None,
        typer.Option("--cache", help="Cache database path (overrides cache.path)."),
    ] = None,
    config_dir: Annotated[
        Path,
        typer.Option("--config-dir", help="Directory containing readyhub.yaml."),
    ] = Path("."),
) -> None:
    """Show store, cache and access log status."""
    cfg = load_cli_config(config_dir, db=db, cache=cache)

    _show_store_panel(cfg)
    _show_cache_panel(cfg)


# ---------------------------------------------------------------------------
# Panel renderers
# ---------------------------------------------------------------------------


def _show_store_panel(cfg: HubConfig) -> None:
    store_path = Path(cfg.store.path)
    if not store_path.exists():
        console.print(
            Panel(
                f"[yellow]No store found at {store_path}.[/]\n"
                "  Run:  readyhub ingest",
                title="[bold]Store[/]",
                expand=False,
            )
        )
        return

    try:
        conn = _open_store(store_path)
    except sqlite3.Error as exc:
        console.print(
            Panel(
                f"[red]Cannot open store {store_path}:[/] {exc}\n"
                "  Check store.path; if the file is damaged, remove it and run:  readyhub ingest",
                title="[bold]Store[/]",
                expand=False,
            )
        )
        return

    try:
        table_view: Table | None = None
        lines = [f"Store:   {store_path} · table [bold]{cfg.store.table}[/]"]
        try:
            result = Reassembler(conn, cfg.store.table).reassemble()
        except StoreError as exc:
            lines.append(f"[yellow]{exc}[/]")
            lines.append("  Run:  readyhub ingest")
        else:
            payload = result.payload
            rows = _count_rows(conn, cfg.store.table)
            lines.append(
                f"Rows: [bold]{rows:,}[/]  |  "
                f"Config keys: [bold]{len(payload.config)}[/]  |  "
                f"Data keys: [bold]{len(payload.data)}[/]"
            )
            lines.append(f"Last updated: [dim]{payload.last_updated or 'unknown'}[/]")
            if result.skipped:
                lines.append(f"[yellow]Malformed rows: {len(result.skipped)}[/]")
            if result.missing_keys:
                lines.append(f"[yellow]Missing keys: {', '.join(result.missing_keys)}[/]")
            table_view = _key_table(payload.config, payload.data)

        access = AccessLogger(conn, max_records=cfg.access_log.max_records)
        lines.append(f"Access log: {access.count()} record(s)")
    finally:
        conn.close()

    body = Group("\n".join(lines), table_view) if table_view is not None else "\n".join(lines)
    console.print(Panel(body, title="[bold]Store[/]", expand=False))


def _show_cache_panel(cfg: HubConfig) -> None:
    cache_path = Path(cfg.cache.path)
    if not cache_path.exists():
        console.print(Panel("[dim]No cache yet.[/]", title="[bold]Cache[/]", expand=False))
        return

    cache = ResultCache(cache_path, max_entry_bytes=cfg.cache.max_entry_bytes)
    try:
        expires = cache.expires_at(PAYLOAD_CACHE_KEY)
    finally:
        cache.close()

    if expires is None:
        text = f"Key: {PAYLOAD_CACHE_KEY}\n[dim]Not cached — next fetch reads the store.[/]"
    else:
        until = datetime.fromtimestamp(expires, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%SZ")
        text = f"Key: {PAYLOAD_CACHE_KEY}\n[green]✓ Cached[/] until {until}"
    console.print(Panel(text, title="[bold]Cache[/]", expand=False))


def _key_table(config: dict[str, str], data: dict[str, str]) -> Table:
    table = Table(show_header=True, box=None, padding=(0, 1), header_style="bold")
    table.add_column("Category", style="dim")
    table.add_column("Key")
    table.add_column("Chars", justify="right")
    for category, section in (("config", config), ("data", data)):
        for key, value in section.items():
            table.add_row(category, key, f"{len(value):,}")
    return table


def _open_store(store_path: Path) -> sqlite3.Connection:
    conn = Database(store_path).connect()
    try:
        initialize(conn)
    except sqlite3.Error:
        conn.close()
        raise
    return conn


def _count_rows(conn: sqlite3.Connection, table: str) -> int:
    return conn.execute(f'SELECT COUNT(*) FROM "{table}"').fetchone()[0]
