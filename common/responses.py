"""Standardized JSON response helpers."""

from __future__ import annotations

import math
from typing import Any, Mapping

from flask import Response, jsonify

from .errors import AppError


def json_safe(data: Any) -> Any:
    """Replace non-finite floats with ``None`` so the envelope stays strict JSON."""

    if isinstance(data, float):
        return data if math.isfinite(data) else None
    if isinstance(data, Mapping):
        return {key: json_safe(value) for key, value in data.items()}
    if isinstance(data, (list, tuple)):
        return [json_safe(item) for item in data]
    return data


def ok(data: Any, *, status: int = 200) -> Response:
    """Return a success envelope."""

    response = jsonify({"success": True, "data": json_safe(data)})
    response.status_code = status
    return response


def fail(error: AppError | Mapping[str, Any], *, status: int | None = None) -> Response:
    """Return a standardized failure envelope."""

    if isinstance(error, AppError):
        response = jsonify({"success": False, "error": json_safe(error.to_dict())})
        response.status_code = status or error.status_code
        return response

    response = jsonify({"success": False, "error": json_safe(dict(error))})
    response.status_code = status or 400
    return response


__all__ = ["json_safe", "ok", "fail"]
