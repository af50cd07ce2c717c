"""Readyhub CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
import sys
from typing import Annotated

import typer

from readyhub.cli.cache_cmd import cache_app
from readyhub.cli.fetch import fetch_cmd
from readyhub.cli.ingest import ingest_cmd
from readyhub.cli.init import init_cmd
from readyhub.cli.logs import logs_cmd
from readyhub.cli.status import status_cmd


def _version() -> str:
    try:
        return importlib.metadata.version("readyhub")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"readyhub {_version()}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage (diagnostics go to stderr)."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


app = typer.Typer(
    name="readyhub",
    help=(
        "Readyhub — roster export ingestion and dashboard payload.\n\n"
        "  readyhub ingest  Scheduled job: classify, chunk and store the export.\n"
        "  readyhub fetch   Front end: print the cached / reassembled payload as JSON."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log diagnostics (skipped files and rows)."),
    ] = False,
) -> None:
    """Readyhub — roster export ingestion and dashboard payload."""
    _setup_logging(verbose)


app.command("init")(init_cmd)
app.command("ingest")(ingest_cmd)
app.command("fetch")(fetch_cmd)
app.command("status")(status_cmd)
app.command("logs")(logs_cmd)
app.add_typer(cache_app, name="cache")


@app.command("version")
def version_cmd() -> None:
    """Show the installed readyhub version."""
    typer.echo(f"readyhub {_version()}")


if __name__ == "__main__":
    app()
