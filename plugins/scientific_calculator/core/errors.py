"""Exception types raised by the expression evaluator."""

from __future__ import annotations

from typing import Any


class ExpressionError(ValueError):
    """Raised when an expression cannot be parsed or evaluated."""

    def __init__(self, message: str, *, position: int | None = None, fragment: str | None = None):
        super().__init__(message)
        self.message = message
        self.position = position
        self.fragment = fragment

    def to_details(self) -> dict[str, Any]:
        details: dict[str, Any] = {}
        if self.position is not None:
            details["position"] = self.position
        if self.fragment is not None:
            details["fragment"] = self.fragment
        return details


class ExpressionSyntaxError(ExpressionError):
    """Malformed or incomplete input."""


class ExpressionArithmeticError(ExpressionError, ArithmeticError):
    """Well-formed input whose value is undefined or out of range."""


__all__ = ["ExpressionError", "ExpressionSyntaxError", "ExpressionArithmeticError"]
