"""Named functions and constants understood by the expression evaluator.

Both tables are matched case-insensitively against the text at the scan
cursor. Several names are prefixes of others (``sin``/``sinh``,
``log``/``log10``/``log2``), so the candidate tuples are ordered longest-first
and the first hit wins.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Mapping

import numpy as np

from .errors import ExpressionArithmeticError

FACTORIAL_LIMIT = 170


@dataclass(frozen=True, slots=True)
class FunctionSpec:
    """A unary function and how it interacts with the session angle unit.

    ``angle`` is ``"input"`` when the argument is an angle that must be
    converted to radians first, ``"output"`` when the radian result must be
    converted back, and ``None`` for unit-independent functions.
    """

    name: str
    func: Callable[[float], float]
    angle: str | None = None


def ieee(fn: Callable) -> Callable[..., float]:
    """Wrap a numpy ufunc so overflow and domain errors yield inf/nan floats."""

    def wrapped(*args: float) -> float:
        with np.errstate(all="ignore"):
            return float(fn(*args))

    wrapped.__name__ = getattr(fn, "__name__", "wrapped")
    return wrapped


def factorial(value: float) -> float:
    """Return ``value!`` for the integer truncation of a non-negative ``value``."""

    if math.isnan(value):
        raise ExpressionArithmeticError("Factorial of NaN")
    if value < 0:
        raise ExpressionArithmeticError("Factorial of negative number")
    if math.isinf(value) or int(value) > FACTORIAL_LIMIT:
        raise ExpressionArithmeticError("Factorial overflow")
    return float(math.factorial(int(value)))


_FUNCTIONS: tuple[FunctionSpec, ...] = (
    FunctionSpec("sin", ieee(np.sin), angle="input"),
    FunctionSpec("cos", ieee(np.cos), angle="input"),
    FunctionSpec("tan", ieee(np.tan), angle="input"),
    FunctionSpec("asin", ieee(np.arcsin), angle="output"),
    FunctionSpec("acos", ieee(np.arccos), angle="output"),
    FunctionSpec("atan", ieee(np.arctan), angle="output"),
    FunctionSpec("sinh", ieee(np.sinh)),
    FunctionSpec("cosh", ieee(np.cosh)),
    FunctionSpec("tanh", ieee(np.tanh)),
    FunctionSpec("asinh", ieee(np.arcsinh)),
    FunctionSpec("acosh", ieee(np.arccosh)),
    FunctionSpec("atanh", ieee(np.arctanh)),
    FunctionSpec("log", ieee(np.log10)),
    FunctionSpec("log10", ieee(np.log10)),
    FunctionSpec("log2", ieee(np.log2)),
    FunctionSpec("ln", ieee(np.log)),
    FunctionSpec("exp", ieee(np.exp)),
    FunctionSpec("sqrt", ieee(np.sqrt)),
    FunctionSpec("cbrt", ieee(np.cbrt)),
    FunctionSpec("abs", ieee(np.abs)),
    FunctionSpec("floor", ieee(np.floor)),
    FunctionSpec("ceil", ieee(np.ceil)),
    # rint rounds halves to even.
    FunctionSpec("round", ieee(np.rint)),
    FunctionSpec("fact", factorial),
)

_GOLDEN_RATIO = (1 + math.sqrt(5)) / 2

_CONSTANTS: dict[str, float] = {
    "pi": math.pi,
    "π": math.pi,
    "e": math.e,
    "phi": _GOLDEN_RATIO,
    "φ": _GOLDEN_RATIO,
    # Lets any repr() of the last answer parse again.
    "inf": math.inf,
    "∞": math.inf,
    "nan": math.nan,
}


def _longest_first(names) -> tuple[str, ...]:
    return tuple(sorted(names, key=len, reverse=True))


FUNCTIONS: Mapping[str, FunctionSpec] = {spec.name: spec for spec in _FUNCTIONS}
CONSTANTS: Mapping[str, float] = dict(_CONSTANTS)
FUNCTION_NAMES: tuple[str, ...] = _longest_first(FUNCTIONS)
CONSTANT_NAMES: tuple[str, ...] = _longest_first(CONSTANTS)


def _match(candidates: tuple[str, ...], text: str, pos: int) -> str | None:
    for name in candidates:
        end = pos + len(name)
        if end <= len(text) and text[pos:end].lower() == name:
            return name
    return None


def match_function(text: str, pos: int) -> FunctionSpec | None:
    """Return the longest function whose name starts at ``pos``."""

    name = _match(FUNCTION_NAMES, text, pos)
    return FUNCTIONS[name] if name is not None else None


def match_constant(text: str, pos: int) -> tuple[str, float] | None:
    """Return ``(name, value)`` for the longest constant starting at ``pos``."""

    name = _match(CONSTANT_NAMES, text, pos)
    return (name, CONSTANTS[name]) if name is not None else None


__all__ = [
    "CONSTANTS",
    "CONSTANT_NAMES",
    "FACTORIAL_LIMIT",
    "FUNCTIONS",
    "FUNCTION_NAMES",
    "FunctionSpec",
    "factorial",
    "ieee",
    "match_constant",
    "match_function",
]
