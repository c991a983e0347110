"""Tests for output mode selection."""

from __future__ import annotations

import json

from dwellguard.output.formatters import OutputSettings, format_json_line, format_result
from dwellguard.services.result import ServiceResult


def _text(out: str) -> str:
    """Collapse Rich spacing so assertions read like the rendered line."""
    return " ".join(out.split())


def _result() -> ServiceResult:
    return ServiceResult(ok=True, op="policy_remove", data={"domain": "reddit.com"})


def test_default_is_rich() -> None:
    assert _text(format_result(_result())).startswith("OK policy_remove")


def test_json_wins_over_quiet() -> None:
    out = format_result(_result(), settings=OutputSettings(json_output=True, quiet=True))
    payload = json.loads(out)
    assert payload["ok"] is True
    assert payload["data"] == {"domain": "reddit.com"}
    assert "\n" in out


def test_quiet() -> None:
    assert format_result(_result(), settings=OutputSettings(quiet=True)) == "OK: policy_remove"


def test_json_line_is_single_line() -> None:
    line = format_json_line(_result())
    assert "\n" not in line
    assert json.loads(line)["op"] == "policy_remove"
