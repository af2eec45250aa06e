"""Validation primitives for plugin APIs."""

from __future__ import annotations

from typing import Any, Mapping, TypeVar

import pydantic
from pydantic import BaseModel


class ValidationError(ValueError):
    """Raised when validation fails."""

    def __init__(self, message: str, *, details: Any | None = None):
        super().__init__(message)
        self.details = details


class SchemaModel(BaseModel):
    """Strict base model for request/response validation."""

    model_config = pydantic.ConfigDict(extra="forbid", str_strip_whitespace=True)


TModel = TypeVar("TModel", bound=SchemaModel)


def _json_details(exc: pydantic.ValidationError) -> list[dict[str, Any]]:
    # ``ctx`` may hold exception instances that jsonify cannot encode.
    return [
        {"loc": list(item.get("loc", ())), "msg": item.get("msg", ""), "type": item.get("type", "")}
        for item in exc.errors()
    ]


def parse_model(model: type[TModel], payload: Mapping[str, Any] | None) -> TModel:
    payload = payload or {}
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise ValidationError("Invalid request payload", details={"errors": _json_details(exc)}) from exc


def parse_query(model: type[TModel], args: Mapping[str, Any]) -> TModel:
    """Validate single-valued query string arguments against ``model``."""

    return parse_model(model, {key: args.get(key) for key in args})


__all__ = [
    "ValidationError",
    "SchemaModel",
    "parse_model",
    "parse_query",
]
