"""Tests for the readyhub CLI entry point."""

from __future__ import annotations

from typer.testing import CliRunner

from readyhub.cli.main import app

runner = CliRunner()


def test_version_flag():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.output.startswith("readyhub ")


def test_version_command():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.output.startswith("readyhub ")


def test_help_lists_commands():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("init", "ingest", "fetch", "status", "logs", "cache"):
        assert command in result.output
