"""readyhub fetch — print the dashboard payload as JSON.

Stdout carries only the JSON document (the payload, or an error payload
when the store is not ready), so the output can be piped to the front end.

Exit codes:
  0  payload printed
  1  configuration error, unreadable store, or store schema error
  2  store not ready (missing or empty) — run ingest, then retry
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer

from readyhub.cli.common import err_console, load_cli_config
from readyhub.cli.errors import (
    err_store_not_ready,
    err_store_schema,
    err_store_unavailable,
    warn_missing_keys,
    warn_skipped_rows,
)
from readyhub.payload import error_payload, load_payload
from readyhub.store.errors import StoreError, StoreNotReadyError, StoreUnavailableError


def fetch_cmd(
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
    pretty: Annotated[
        bool,
        typer.Option("--pretty", help="Indent the JSON output."),
    ] = False,
    config_dir: Annotated[
        Path,
        typer.Option("--config-dir", help="Directory containing readyhub.yaml."),
    ] = Path("."),
) -> None:
    """Print the reassembled payload, serving from the cache when possible."""
    cfg = load_cli_config(config_dir, db=db, table=table, cache=cache)

    try:
        result = load_payload(cfg)
    except StoreError as exc:
        typer.echo(error_payload(exc))
        if isinstance(exc, StoreNotReadyError):
            err_console.print(err_store_not_ready(exc))
            raise typer.Exit(2) from exc
        if isinstance(exc, StoreUnavailableError):
            err_console.print(err_store_unavailable(exc))
        else:
            err_console.print(err_store_schema(exc))
        raise typer.Exit(1) from exc

    output = result.payload_json
    if pretty:
        output = json.dumps(json.loads(output), ensure_ascii=False, indent=2)
    typer.echo(output)

    if result.skipped:
        err_console.print(warn_skipped_rows(len(result.skipped)))
    if result.missing_keys:
        err_console.print(warn_missing_keys(result.missing_keys))
