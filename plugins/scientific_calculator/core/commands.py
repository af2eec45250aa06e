"""Verb based command surface: ``run_command(evaluator, "add", "2", "3")``."""

from __future__ import annotations

import operator
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

import numpy as np

from common.logging import get_logger

from .engine import ExpressionEvaluator
from .errors import ExpressionArithmeticError, ExpressionError
from .tables import ieee

logger = get_logger("scientific_calculator.commands")


@dataclass(slots=True)
class CommandResult:
    success: bool
    message: str
    data: list[Any] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "message": self.message, "data": list(self.data)}


def _divide(a: float, b: float) -> float:
    if b == 0:
        raise ExpressionArithmeticError("Division by zero")
    return a / b


BINARY_COMMANDS: dict[str, Callable[[float, float], float]] = {
    "add": operator.add,
    "subtract": operator.sub,
    "multiply": operator.mul,
    "divide": _divide,
    "power": ieee(np.power),
}

UNARY_COMMANDS: dict[str, Callable[[float], float]] = {
    "sqrt": ieee(np.sqrt),
    "log": ieee(np.log10),
    "ln": ieee(np.log),
    "exp": ieee(np.exp),
}

TRIG_COMMANDS: dict[str, Callable[[float], float]] = {
    "sin": ieee(np.sin),
    "cos": ieee(np.cos),
    "tan": ieee(np.tan),
}

COMMANDS: tuple[str, ...] = ("evaluate", *BINARY_COMMANDS, *UNARY_COMMANDS, *TRIG_COMMANDS)


def _parse_numbers(args: Sequence[object], count: int) -> list[float] | None:
    try:
        values = [float(str(arg).strip()) for arg in args[:count]]
    except ValueError:
        return None
    return values


def _success(value: float) -> CommandResult:
    return CommandResult(success=True, message=repr(value), data=[value])


def run_command(evaluator: ExpressionEvaluator, verb: str, *args: object) -> CommandResult:
    """Dispatch ``verb`` with positional string arguments.

    ``evaluate`` goes through the evaluator (and so updates its last answer);
    every other verb is a direct arithmetic helper that parses its arguments
    as floats. Failures are reported in the result, never raised.
    """

    command = (verb or "").strip().lower()
    logger.debug("running calculator command %s with %d argument(s)", command, len(args))
    if not command:
        return CommandResult(success=False, message="No command specified")

    if command == "evaluate":
        if not args:
            return CommandResult(success=False, message="No expression provided")
        try:
            return _success(evaluator.evaluate(str(args[0])))
        except ExpressionError as exc:
            return CommandResult(success=False, message=f"Error: {exc}")

    if command in BINARY_COMMANDS:
        if len(args) < 2:
            return CommandResult(success=False, message="Need two numbers")
        numbers = _parse_numbers(args, 2)
        if numbers is None:
            return CommandResult(success=False, message="Invalid numbers")
        try:
            return _success(BINARY_COMMANDS[command](*numbers))
        except ExpressionError as exc:
            return CommandResult(success=False, message=f"Error: {exc}")

    if command in UNARY_COMMANDS or command in TRIG_COMMANDS:
        if not args:
            return CommandResult(success=False, message="Need a number")
        numbers = _parse_numbers(args, 1)
        if numbers is None:
            return CommandResult(success=False, message="Invalid number")
        (value,) = numbers
        if command in TRIG_COMMANDS:
            return _success(TRIG_COMMANDS[command](evaluator.to_radians(value)))
        return _success(UNARY_COMMANDS[command](value))

    logger.info("unknown calculator command %r", verb)
    return CommandResult(success=False, message=f"Unknown command: {command}")


__all__ = [
    "BINARY_COMMANDS",
    "COMMANDS",
    "CommandResult",
    "TRIG_COMMANDS",
    "UNARY_COMMANDS",
    "run_command",
]
