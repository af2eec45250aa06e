"""Smoke tests for the Scientific Calculator CLI."""

from __future__ import annotations

import json
from contextlib import redirect_stdout
from io import StringIO

import pytest

from plugins.scientific_calculator import cli
from plugins.scientific_calculator.core import DEFAULT_PRECISION


def _run_cli(args: list[str]) -> dict[str, object]:
    buffer = StringIO()
    with redirect_stdout(buffer):
        cli.main(args)
    output = buffer.getvalue().strip()
    return json.loads(output)


def _run_failing_cli(args: list[str]) -> dict[str, object]:
    buffer = StringIO()
    with redirect_stdout(buffer), pytest.raises(SystemExit) as excinfo:
        cli.main(args)
    assert excinfo.value.code == 1
    return json.loads(buffer.getvalue().strip())


def test_cli_eval_chains_last_answer():
    payload = _run_cli(["eval", "2+2", "ans*10", "sin(90)"])
    results = [item["result"] for item in payload["results"]]
    assert results == [4.0, 40.0, 1.0]
    assert payload["angle_unit"] == "Degrees"


def test_cli_eval_with_session_options():
    payload = _run_cli(["eval", "1/3", "--precision", "3", "--angle-unit", "Rad"])
    assert payload["results"][0]["result"] == 0.333
    assert payload["precision"] == 3
    assert payload["angle_unit"] == "Radians"


def test_cli_eval_reports_errors():
    payload = _run_failing_cli(["eval", "5/0", "1+1"])
    assert payload["results"] == [
        {"expression": "5/0", "error": "Division by zero", "details": {"position": 2, "fragment": "0"}}
    ]

    payload = _run_failing_cli(["eval", "5!", "1+1", "--keep-going"])
    assert payload["results"][1]["result"] == 2.0


def test_cli_run_command():
    payload = _run_cli(["run", "power", "2", "8"])
    assert payload["success"] is True
    assert payload["data"] == [256.0]

    payload = _run_cli(["run", "subtract", "1", "-3"])
    assert payload["data"] == [4.0]

    payload = _run_failing_cli(["run", "unknown"])
    assert payload["message"] == "Unknown command: unknown"


def test_cli_functions_listing():
    payload = _run_cli(["functions"])
    assert "log10" in payload["functions"]
    assert "pi" in payload["constants"]
    assert "evaluate" in payload["commands"]


def test_cli_rejects_bad_settings():
    with pytest.raises(SystemExit):
        cli.main(["eval", "1", "--precision", "-2"])


def test_cli_default_precision_matches_evaluator():
    args = cli.build_parser().parse_args(["eval", "1"])
    assert args.precision == str(DEFAULT_PRECISION)
    assert _run_cli(["eval", "1/3"])["precision"] == DEFAULT_PRECISION
