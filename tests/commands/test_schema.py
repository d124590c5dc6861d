"""Tests for the schema command."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from supervisectl.cli import cli


@pytest.mark.usefixtures("_isolated_cwd")
class TestSchemaCommand:
    def test_lists_directives(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["schema"])
        assert result.exit_code == 0, result.output
        assert "retries" in result.output
        assert "directives" in result.output

    def test_single_directive(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["schema", "retries"])
        assert result.exit_code == 0
        assert "0: count: int, duration: duration" in result.output
        assert "1: count: int" in result.output

    def test_json(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "schema", "backoff"])
        assert result.exit_code == 0
        (entry,) = json.loads(result.output)["data"]["directives"]
        assert entry["name"] == "backoff"
        assert len(entry["variants"]) == 3

    def test_unknown_directive(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["schema", "reboot"])
        assert result.exit_code == 1
        assert "No directive named 'reboot'" in result.output
