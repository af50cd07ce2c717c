"""readyhub logs — show recent access log records."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from readyhub.access_log import AccessLogger
from readyhub.cli.common import load_cli_config
from readyhub.db.connection import Database
from readyhub.db.schema import initialize

console = Console()

_STATUS_STYLE = {
    "ok": "green",
    "cache_hit": "cyan",
    "no_data": "yellow",
    "error": "red",
}


def logs_cmd(
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", min=1, help="Number of records to show."),
    ] = 20,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Store database path (overrides store.path)."),
    ] = None,
    config_dir: Annotated[
        Path,
        typer.Option("--config-dir", help="Directory containing readyhub.yaml."),
    ] = Path("."),
) -> None:
    """Show the most recent ingest / fetch records, newest first."""
    cfg = load_cli_config(config_dir, db=db)

    store_path = Path(cfg.store.path)
    if not store_path.exists():
        console.print("[yellow]No access log yet.[/]  Run:  readyhub ingest")
        raise typer.Exit(0)

    conn = Database(store_path).connect()
    try:
        initialize(conn)
        records = AccessLogger(conn, max_records=cfg.access_log.max_records).recent(limit)
    finally:
        conn.close()

    if not records:
        console.print("[yellow]No access log records.[/]")
        raise typer.Exit(0)

    table = Table(title="Access Log", show_header=True, header_style="bold")
    table.add_column("When", style="dim")
    table.add_column("Operation")
    table.add_column("Status")
    table.add_column("ms", justify="right")
    table.add_column("Detail")

    for rec in records:
        style = _STATUS_STYLE.get(rec.status, "white")
        table.add_row(
            rec.recorded_at or "",
            rec.operation,
            f"[{style}]{rec.status}[/]",
            "" if rec.duration_ms is None else str(rec.duration_ms),
            rec.detail,
        )
    console.print(table)
