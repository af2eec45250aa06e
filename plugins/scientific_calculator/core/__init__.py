"""Exports for scientific calculator core."""

from .commands import COMMANDS, CommandResult, run_command
from .engine import DEFAULT_PRECISION, AngleUnit, ExpressionEvaluator, format_result
from .errors import ExpressionArithmeticError, ExpressionError, ExpressionSyntaxError
from .session import CalculatorSession, SessionStore
from .settings import (
    CalculatorConfig,
    CalculatorSettings,
    SettingsStore,
    load_config,
    parse_precision,
)
from .tables import CONSTANT_NAMES, FUNCTION_NAMES

__all__ = [
    "AngleUnit",
    "COMMANDS",
    "CONSTANT_NAMES",
    "CalculatorConfig",
    "CalculatorSession",
    "CalculatorSettings",
    "CommandResult",
    "DEFAULT_PRECISION",
    "ExpressionArithmeticError",
    "ExpressionError",
    "ExpressionEvaluator",
    "ExpressionSyntaxError",
    "FUNCTION_NAMES",
    "SessionStore",
    "SettingsStore",
    "format_result",
    "load_config",
    "parse_precision",
    "run_command",
]
