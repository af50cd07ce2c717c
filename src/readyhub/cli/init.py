"""readyhub init — project scaffold.

Creates:
  readyhub.yaml   — project config (source / store / chunking / cache / access_log)
  .readyhub.db    — store database with the access log table
  .gitignore      — ignores the store and cache databases
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from readyhub.config import ensure_project_config
from readyhub.db.connection import Database
from readyhub.db.schema import initialize

console = Console()

_DEFAULT_PROJECT_DIR = Path(".")
_GITIGNORE_ENTRIES = (".readyhub.db*", ".readyhub-cache.db*")


def init_cmd(
    project_dir: Annotated[
        Path,
        typer.Argument(help="Directory to initialize. Defaults to current directory."),
    ] = _DEFAULT_PROJECT_DIR,
    source: Annotated[
        str | None,
        typer.Option("--source", "-s", help="Export folder or .zip to record as source.location."),
    ] = None,
) -> None:
    """Initialize a readyhub project: config file and store database."""
    project_dir = project_dir.resolve()
    project_dir.mkdir(parents=True, exist_ok=True)

    cfg_path = project_dir / "readyhub.yaml"
    existed = cfg_path.exists()
    ensure_project_config(project_dir, source_location=source)
    if existed:
        console.print(f"  [dim]↷ {cfg_path.name} already exists — left unchanged[/]")
    else:
        console.print(f"  [green]✓[/] {cfg_path.name}")

    db_path = project_dir / ".readyhub.db"
    with Database(db_path) as conn:
        initialize(conn)
    console.print(f"  [green]✓[/] {db_path.name}")

    _update_gitignore(project_dir)

    console.print("\n[bold green]✓ Project initialized.[/]")
    console.print("\nNext steps:")
    if not source and not existed:
        console.print("  1. Set source.location in readyhub.yaml   (export folder or .zip)")
    console.print("  2. readyhub ingest                        (build the store)")
    console.print("  3. readyhub fetch --pretty                (check the payload)")


def _update_gitignore(project_dir: Path) -> None:
    path = project_dir / ".gitignore"
    existing = path.read_text(encoding="utf-8").splitlines() if path.exists() else []
    missing = [e for e in _GITIGNORE_ENTRIES if e not in existing]
    if not missing:
        return
    lines = existing + missing
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    console.print("  [green]✓[/] .gitignore")
