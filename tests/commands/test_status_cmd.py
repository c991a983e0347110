"""Tests for the status and reset commands."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from dwellguard.cli import cli


@pytest.mark.usefixtures("_isolated_data_dir")
class TestStatusCommand:
    def test_status_json(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["policy", "set", "youtube.com", "30"])
        result = cli_runner.invoke(cli, ["--json", "status"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)["data"]
        assert [row["domain"] for row in data["domains"]] == ["youtube.com"]
        assert data["domains"][0]["remaining_seconds"] == 1800
        assert data["active"] is None

    def test_status_for_day(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "status", "--day", "2024-05-01"])
        assert json.loads(result.output)["data"]["day"] == "2024-05-01"

    def test_status_bad_day(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["status", "--day", "yesterday"])
        assert result.exit_code == 2

    def test_status_table(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["policy", "set", "youtube.com", "30"])
        result = cli_runner.invoke(cli, ["status"])
        assert "Usage for" in result.output
        assert "youtube.com" in result.output


@pytest.mark.usefixtures("_isolated_data_dir")
class TestResetCommand:
    def test_reset(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "reset"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)["data"]
        assert data["cleared_rule_ids"] == []
        assert data["alarm"]["name"] == "persist-timer"

        status = json.loads(cli_runner.invoke(cli, ["--json", "status"]).output)["data"]
        assert status["last_reset_day"] == data["day"]
