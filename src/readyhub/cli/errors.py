"""Readyhub rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from readyhub.cli.errors import err_config
    console.print(err_config(exc))
    raise typer.Exit(1)
"""

from __future__ import annotations


def err_config(exc: Exception) -> str:
    """Configuration is incomplete or invalid."""
    return (
        f"[red]Error:[/] {exc}\n"
        "  Run:  readyhub init --source <export-folder-or-zip>"
    )


def err_source_unreadable(exc: Exception) -> str:
    """The export archive itself cannot be opened."""
    return (
        f"[red]Error:[/] {exc}\n"
        "  Re-download the export, or point source.location at an unpacked folder."
    )


def err_write_failure(exc: Exception) -> str:
    """Bulk store write failed — the cached payload is already cleared."""
    return (
        f"[red]Error:[/] Store write failed: {exc}\n"
        "  The cached payload has been cleared; the dashboard reads the store directly.\n"
        "  Fix the cause and re-run:  readyhub ingest"
    )


def err_cache_unavailable(exc: Exception) -> str:
    """The result cache could not be opened or cleared — ingest did not start."""
    return (
        f"[red]Error:[/] {exc}\n"
        "  The store was not touched. Check cache.path, or delete the cache file and re-run:\n"
        "  readyhub ingest"
    )


def err_store_unavailable(exc: Exception) -> str:
    """The store database exists but cannot be opened or read."""
    return (
        f"[red]Error:[/] {exc}\n"
        "  Check store.path; if the file is damaged, remove it and run:  readyhub ingest"
    )


def err_store_not_ready(exc: Exception) -> str:
    """No payload in the store yet (missing or empty table)."""
    return (
        f"[red]Error:[/] {exc}\n"
        "  Run:  readyhub ingest"
    )


def err_store_schema(exc: Exception) -> str:
    """Store table exists but has unexpected columns."""
    return (
        f"[red]Error:[/] {exc}\n"
        "  Point store.table at a new table name, or drop the table and run:  readyhub ingest"
    )


def warn_no_data(location: str) -> str:
    """No export file matched — the store was left as it was."""
    return (
        f"[yellow]⚠[/] No export files matched a classification rule in '{location}'.\n"
        "  The store was left unchanged."
    )


def warn_missing_keys(keys: list[str]) -> str:
    """Required keys are absent from the payload."""
    return (
        f"[yellow]⚠[/] Payload is missing required keys: {', '.join(keys)}\n"
        "  Check that the export contains the corresponding files, then run:  readyhub ingest"
    )


def warn_skipped_rows(count: int) -> str:
    """Malformed store rows were skipped during reassembly."""
    return f"[yellow]⚠[/] {count} malformed store row(s) skipped (run with -v for details)."
