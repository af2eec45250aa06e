"""Command line interface for the Scientific Calculator plugin."""

from __future__ import annotations

import argparse
import json
from typing import Any

from common.responses import json_safe

from .core import (
    CommandResult,
    COMMANDS,
    CONSTANT_NAMES,
    DEFAULT_PRECISION,
    FUNCTION_NAMES,
    AngleUnit,
    CalculatorSettings,
    ExpressionError,
    format_result,
    parse_precision,
    run_command,
)


def _print(payload: dict[str, Any]) -> None:
    print(json.dumps(json_safe(payload), indent=2, sort_keys=True))


def _settings(args: argparse.Namespace) -> CalculatorSettings:
    try:
        return CalculatorSettings(
            angle_unit=AngleUnit.parse(args.angle_unit),
            precision=parse_precision(args.precision),
        )
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc


def command_eval(args: argparse.Namespace) -> None:
    evaluator = _settings(args).new_evaluator()
    results: list[dict[str, Any]] = []
    for expression in args.expressions:
        try:
            value = evaluator.evaluate(expression)
        except ExpressionError as exc:
            results.append({"expression": expression, "error": str(exc), "details": exc.to_details()})
            if not args.keep_going:
                break
            continue
        results.append({"expression": expression, "result": value, "formatted": format_result(value)})
    _print(
        {
            "angle_unit": evaluator.angle_unit.value,
            "precision": evaluator.precision,
            "last_answer": evaluator.last_answer,
            "results": results,
        }
    )
    if any("error" in item for item in results):
        raise SystemExit(1)


def command_run(args: argparse.Namespace) -> None:
    evaluator = _settings(args).new_evaluator()
    result: CommandResult = run_command(evaluator, args.verb, *args.args)
    _print(result.to_dict())
    if not result.success:
        raise SystemExit(1)


def command_functions(args: argparse.Namespace) -> None:
    _print(
        {
            "functions": sorted(FUNCTION_NAMES),
            "constants": sorted(CONSTANT_NAMES),
            "commands": list(COMMANDS),
        }
    )


def _add_session_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--angle-unit",
        default=AngleUnit.DEGREES.value,
        help="Degrees, Radians or Gradians (short forms Deg/Rad/Grad accepted)",
    )
    parser.add_argument("--precision", default=str(DEFAULT_PRECISION), help="Digits kept after rounding")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Scientific Calculator CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    eval_parser = subparsers.add_parser("eval", help="Evaluate expressions in order; 'ans' refers to the previous one")
    eval_parser.add_argument("expressions", nargs="+", help="Expressions such as '2+3*4' or 'sin(90)'")
    eval_parser.add_argument("--keep-going", action="store_true", help="Continue after a failing expression")
    _add_session_options(eval_parser)
    eval_parser.set_defaults(func=command_eval)

    run_parser = subparsers.add_parser("run", help="Run a calculator command verb")
    run_parser.add_argument("verb", help=f"One of: {', '.join(COMMANDS)}")
    run_parser.add_argument("args", nargs="*", help="Positional arguments for the verb")
    _add_session_options(run_parser)
    run_parser.set_defaults(func=command_run)

    functions_parser = subparsers.add_parser("functions", help="List functions, constants and verbs")
    functions_parser.set_defaults(func=command_functions)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
