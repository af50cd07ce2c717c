"""readyhub ingest — rebuild the chunk store from the roster export.

This is the entry point the scheduler runs. It takes its inputs from
configuration (readyhub.yaml / READYHUB_* env vars); the flags below only
override those for a single run.

Exit codes:
  0  store replaced, or nothing matched (store left unchanged)
  1  configuration error, unreadable archive, cache or store failure
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from readyhub.cache import CacheError
from readyhub.cli.common import load_cli_config
from readyhub.cli.errors import (
    err_cache_unavailable,
    err_config,
    err_source_unreadable,
    err_write_failure,
    warn_no_data,
)
from readyhub.config import ConfigError
from readyhub.ingest.pipeline import IngestReport, run_ingest
from readyhub.ingest.sources import SourceReadError
from readyhub.store.errors import WriteFailure

console = Console()


def ingest_cmd(
    source: Annotated[
        str | None,
        typer.Option("--source", "-s", help="Export folder or .zip (overrides source.location)."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Store database path (overrides store.path)."),
    ] = None,
    table: Annotated[
        str | None,
        typer.Option("--table", help="Store table name (overrides store.table)."),
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
    """Classify, chunk and store the export, replacing the previous store contents."""
    cfg = load_cli_config(config_dir, source=source, db=db, table=table, cache=cache)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            console=console,
        ) as prog:
            prog.add_task("Ingesting export…", total=None)
            report = run_ingest(cfg)
    except ConfigError as exc:
        console.print(err_config(exc))
        raise typer.Exit(1) from exc
    except SourceReadError as exc:
        console.print(err_source_unreadable(exc))
        raise typer.Exit(1) from exc
    except CacheError as exc:
        console.print(err_cache_unavailable(exc))
        raise typer.Exit(1) from exc
    except WriteFailure as exc:
        console.print(err_write_failure(exc))
        raise typer.Exit(1) from exc

    _show_report(report, cfg.source.location or "")


def _show_report(report: IngestReport, location: str) -> None:
    for name, reason in report.failed:
        console.print(f"  [red]✗[/] {name}: {reason}")
    if report.unmatched:
        console.print(f"  [dim]↷ {len(report.unmatched)} unmatched file(s) skipped:[/]")
        for name in report.unmatched:
            console.print(f"    [dim]{name}[/]")

    if report.status == "no_data":
        console.print(warn_no_data(location))
        return

    console.print(
        f"[green]✓[/] {len(report.files)} file(s) → {report.rows_written} row(s) "
        f"[dim](updated {report.last_updated})[/]"
    )
