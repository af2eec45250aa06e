"""Single-pass evaluator for scientific calculator expressions.

The grammar, from loosest to tightest binding::

    sum     := product (("+" | "-") product)*
    product := power (("*" | "×" | "/" | "÷" | "%") power)*
    power   := unary "²"* ("^" power)?
    unary   := ("+" | "-") unary | atom
    atom    := number | "(" sum ")" | function "(" sum ")" | constant

Characters are consumed straight off the normalized input and values are
computed on the way back up; no token list or tree is built.
"""

from __future__ import annotations

import math
import re
from enum import Enum

import numpy as np

from .errors import ExpressionArithmeticError, ExpressionError, ExpressionSyntaxError
from .tables import FunctionSpec, ieee, match_constant, match_function

DEFAULT_PRECISION = 10
MAX_DEPTH = 100

_ANS_PATTERN = re.compile("ans", re.IGNORECASE)
_DIGITS = frozenset("0123456789")
_fmod = ieee(np.fmod)
_power = ieee(np.power)


class AngleUnit(str, Enum):
    """Interpretation of circular function arguments and results."""

    DEGREES = "Degrees"
    RADIANS = "Radians"
    GRADIANS = "Gradians"

    @classmethod
    def parse(cls, value: "AngleUnit | str") -> "AngleUnit":
        """Resolve an enum member from its value or one of its short spellings."""

        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        try:
            return _ANGLE_ALIASES[key]
        except KeyError:
            raise ValueError(f"Unknown angle unit '{value}'") from None


_ANGLE_ALIASES: dict[str, AngleUnit] = {
    "degrees": AngleUnit.DEGREES,
    "degree": AngleUnit.DEGREES,
    "deg": AngleUnit.DEGREES,
    "radians": AngleUnit.RADIANS,
    "radian": AngleUnit.RADIANS,
    "rad": AngleUnit.RADIANS,
    "gradians": AngleUnit.GRADIANS,
    "gradian": AngleUnit.GRADIANS,
    "grad": AngleUnit.GRADIANS,
}

# Radians per unit.
_TO_RADIANS: dict[AngleUnit, float] = {
    AngleUnit.DEGREES: math.pi / 180,
    AngleUnit.RADIANS: 1.0,
    AngleUnit.GRADIANS: math.pi / 200,
}


def _validate_precision(precision: int) -> int:
    if isinstance(precision, bool) or not isinstance(precision, int):
        raise ValueError("precision must be an integer")
    if precision < 0:
        raise ValueError("precision must be non-negative")
    return precision


def format_result(value: float) -> str:
    """Render a result for display, spelling out the non-finite values."""

    if math.isnan(value):
        return "NaN"
    if value == math.inf:
        return "∞"
    if value == -math.inf:
        return "-∞"
    if value == int(value) and abs(value) < 1e15:
        return str(int(value))
    return f"{value:.15g}"


class ExpressionEvaluator:
    """Evaluate expressions against one calculator session.

    The session keeps the angle unit, the rounding precision, the unrounded
    result of the last successful :meth:`evaluate` (substituted for ``ans``)
    and a memory register that only the ``memory_*`` methods touch.

    Instances are not thread-safe; share one only behind a lock.
    """

    def __init__(
        self,
        *,
        angle_unit: AngleUnit | str = AngleUnit.DEGREES,
        precision: int = DEFAULT_PRECISION,
    ) -> None:
        self._angle_unit = AngleUnit.parse(angle_unit)
        self._precision = _validate_precision(precision)
        self._last_answer = 0.0
        self._memory = 0.0

    # ── Session settings ─────────────────────────────────────────

    @property
    def angle_unit(self) -> AngleUnit:
        return self._angle_unit

    @angle_unit.setter
    def angle_unit(self, value: AngleUnit | str) -> None:
        self._angle_unit = AngleUnit.parse(value)

    @property
    def precision(self) -> int:
        return self._precision

    @precision.setter
    def precision(self, value: int) -> None:
        self._precision = _validate_precision(value)

    @property
    def last_answer(self) -> float:
        return self._last_answer

    # ── Angle conversion ─────────────────────────────────────────

    def to_radians(self, angle: float) -> float:
        return angle * _TO_RADIANS[self._angle_unit]

    def from_radians(self, radians: float) -> float:
        return radians / _TO_RADIANS[self._angle_unit]

    # ── Memory register ──────────────────────────────────────────

    @property
    def memory(self) -> float:
        return self._memory

    def memory_recall(self) -> float:
        return self._memory

    def memory_set(self, value: float) -> float:
        self._memory = float(value)
        return self._memory

    def memory_add(self, value: float) -> float:
        self._memory += float(value)
        return self._memory

    def memory_subtract(self, value: float) -> float:
        self._memory -= float(value)
        return self._memory

    def memory_clear(self) -> float:
        self._memory = 0.0
        return self._memory

    # ── Evaluation ───────────────────────────────────────────────

    def normalize(self, text: str) -> str:
        """Strip whitespace and substitute the last answer for ``ans``."""

        if not isinstance(text, str):
            raise ExpressionSyntaxError("Expression must be a string")
        compact = "".join(text.split())
        rendered = repr(self._last_answer)
        return _ANS_PATTERN.sub(lambda _match: rendered, compact)

    def evaluate(self, text: str) -> float:
        """Evaluate ``text`` and return the result rounded to ``precision`` digits.

        Rounding uses :func:`round`, which rounds halves to even on the exact
        binary value. The unrounded value is kept as the last answer.

        Raises:
            ExpressionSyntaxError: malformed input, unknown names, trailing text.
            ExpressionArithmeticError: zero divisor or factorial out of domain.
        """

        result = _Scanner(self, self.normalize(text)).parse()
        self._last_answer = result
        return round(result, self._precision)

    def apply_function(self, spec: FunctionSpec, argument: float) -> float:
        """Apply ``spec`` honouring the session angle unit."""

        if spec.angle == "input":
            return spec.func(self.to_radians(argument))
        result = spec.func(argument)
        if spec.angle == "output":
            return self.from_radians(result)
        return result


class _Scanner:
    """Cursor over one normalized expression; lives for a single evaluation."""

    def __init__(self, evaluator: ExpressionEvaluator, text: str) -> None:
        self.evaluator = evaluator
        self.text = text
        self.pos = 0
        self.depth = 0

    def peek(self) -> str | None:
        return self.text[self.pos] if self.pos < len(self.text) else None

    def parse(self) -> float:
        value = self.parse_sum()
        if self.pos < len(self.text):
            char = self.text[self.pos]
            if char == "!":
                raise ExpressionSyntaxError("Use fact(n) for factorial", position=self.pos, fragment="!")
            raise ExpressionSyntaxError(
                f"Unexpected character '{char}' at position {self.pos}",
                position=self.pos,
                fragment=self.text[self.pos :],
            )
        return value

    def _descend(self) -> None:
        self.depth += 1
        if self.depth > MAX_DEPTH:
            raise ExpressionSyntaxError("Expression nests too deeply", position=self.pos)

    def parse_sum(self) -> float:
        value = self.parse_product()
        while True:
            char = self.peek()
            if char == "+":
                self.pos += 1
                value += self.parse_product()
            elif char == "-":
                self.pos += 1
                value -= self.parse_product()
            else:
                return value

    def parse_product(self) -> float:
        value = self.parse_power()
        while True:
            char = self.peek()
            if char in ("*", "×"):
                self.pos += 1
                value *= self.parse_power()
            elif char in ("/", "÷"):
                self.pos += 1
                value /= self._divisor("Division by zero")
            elif char == "%":
                self.pos += 1
                value = _fmod(value, self._divisor("Modulo by zero"))
            else:
                return value

    def _divisor(self, message: str) -> float:
        start = self.pos
        divisor = self.parse_power()
        if divisor == 0:
            raise ExpressionArithmeticError(message, position=start, fragment=self.text[start : self.pos])
        return divisor

    def parse_power(self) -> float:
        value = self.parse_unary()
        while self.peek() == "²":
            self.pos += 1
            value = value * value
        if self.peek() == "^":
            self.pos += 1
            self._descend()
            exponent = self.parse_power()
            self.depth -= 1
            value = _power(value, exponent)
        return value

    def parse_unary(self) -> float:
        char = self.peek()
        if char not in ("+", "-"):
            return self.parse_atom()
        self.pos += 1
        self._descend()
        operand = self.parse_unary()
        self.depth -= 1
        return -operand if char == "-" else operand

    def parse_atom(self) -> float:
        char = self.peek()
        if char is None:
            raise ExpressionSyntaxError("Unexpected end of expression", position=self.pos)
        if char == "(":
            self.pos += 1
            value = self._group()
            self._expect(")", "Missing closing parenthesis")
            return value
        if char == "!":
            raise ExpressionSyntaxError("Use fact(n) for factorial", position=self.pos, fragment="!")

        spec = match_function(self.text, self.pos)
        if spec is not None:
            return self._call(spec)

        constant = match_constant(self.text, self.pos)
        if constant is not None:
            name, value = constant
            self.pos += len(name)
            return value

        if char.isalpha():
            end = self.pos
            while end < len(self.text) and self.text[end].isalpha():
                end += 1
            name = self.text[self.pos : end]
            raise ExpressionSyntaxError(f"Unknown identifier '{name}'", position=self.pos, fragment=name)
        return self.parse_number()

    def _group(self) -> float:
        self._descend()
        value = self.parse_sum()
        self.depth -= 1
        return value

    def _expect(self, char: str, message: str) -> None:
        if self.peek() != char:
            raise ExpressionSyntaxError(message, position=self.pos)
        self.pos += 1

    def _call(self, spec: FunctionSpec) -> float:
        start = self.pos
        self.pos += len(spec.name)
        if self.peek() != "(":
            raise ExpressionSyntaxError(
                f"Expected '(' after function {spec.name}",
                position=self.pos,
                fragment=self.text[start : self.pos],
            )
        self.pos += 1
        argument = self._group()
        self._expect(")", "Expected ')' after function argument")
        try:
            return self.evaluator.apply_function(spec, argument)
        except ExpressionError as exc:
            if exc.position is None:
                exc.position = start
                exc.fragment = self.text[start : self.pos]
            raise

    def _skip_digits(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos] in _DIGITS:
            self.pos += 1

    def parse_number(self) -> float:
        start = self.pos
        self._skip_digits()
        if self.peek() == ".":
            self.pos += 1
            self._skip_digits()
        if self.peek() in ("e", "E"):
            self.pos += 1
            if self.peek() in ("+", "-"):
                self.pos += 1
            self._skip_digits()

        if self.pos == start:
            raise ExpressionSyntaxError(
                f"Expected number at position {start}",
                position=start,
                fragment=self.text[start : start + 1],
            )
        literal = self.text[start : self.pos]
        try:
            return float(literal)
        except ValueError:
            raise ExpressionSyntaxError(f"Invalid number: {literal}", position=start, fragment=literal) from None


__all__ = [
    "AngleUnit",
    "DEFAULT_PRECISION",
    "ExpressionEvaluator",
    "MAX_DEPTH",
    "format_result",
]
