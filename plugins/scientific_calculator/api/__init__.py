"""API routes for the Scientific Calculator plugin."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from flask import Blueprint, Response, current_app, request
from pydantic import Field

from common.errors import AppError, CalculationAppError, ValidationAppError
from common.logging import get_logger
from common.responses import fail, ok
from common.validation import SchemaModel, ValidationError, parse_model, parse_query

from ..core import (
    COMMANDS,
    CONSTANT_NAMES,
    FUNCTION_NAMES,
    AngleUnit,
    CalculatorConfig,
    CalculatorSession,
    CalculatorSettings,
    ExpressionArithmeticError,
    ExpressionEvaluator,
    ExpressionSyntaxError,
    SessionStore,
    SettingsStore,
    format_result,
    load_config,
    run_command,
)

logger = get_logger("scientific_calculator.api")

_SESSIONS = SessionStore()


class SessionPayload(SchemaModel):
    session_id: str | None = Field(default=None, max_length=64)


class EvaluatePayload(SessionPayload):
    expression: str
    angle_unit: str | None = None
    precision: int | None = Field(default=None, ge=0)


class SettingsPayload(SessionPayload):
    angle_unit: str | None = None
    precision: int | None = Field(default=None, ge=0)


class MemoryPayload(SessionPayload):
    action: Literal["recall", "set", "add", "subtract", "clear"]
    value: float | None = None


class CommandPayload(SessionPayload):
    verb: str
    args: list[str] = Field(default_factory=list)


api_bp = Blueprint("scientific_calculator_api", __name__, url_prefix="/api/scientific_calculator")


def _repo_root() -> Path:
    return Path(current_app.root_path).resolve().parent


def _config() -> CalculatorConfig:
    settings = current_app.config.get("PLUGIN_SETTINGS", {}).get("scientific_calculator", {})
    return load_config(settings, root=_repo_root())


def _settings_store(config: CalculatorConfig) -> SettingsStore | None:
    if config.settings_path is None:
        return None
    return SettingsStore(config.settings_path)


def _new_evaluator() -> ExpressionEvaluator:
    config = _config()
    settings = config.defaults
    store = _settings_store(config)
    if store is not None:
        store.install(settings)
        settings = store.load(fallback=settings)
    return settings.new_evaluator()


def _session(session_id: str | None) -> CalculatorSession:
    return _SESSIONS.get_or_create(session_id, _new_evaluator)


def _invalid_request(exc: ValidationError) -> Response:
    return fail(
        ValidationAppError(
            message=str(exc),
            code="sci_calc.invalid_request",
            details=getattr(exc, "details", None),
        )
    )


def _apply_overrides(evaluator: ExpressionEvaluator, angle_unit: str | None, precision: int | None) -> None:
    if angle_unit is not None:
        try:
            unit = AngleUnit.parse(angle_unit)
        except ValueError as exc:
            raise ValidationAppError(message=str(exc), code="sci_calc.invalid_angle_unit") from exc
        evaluator.angle_unit = unit
    if precision is not None:
        evaluator.precision = precision


def _state(evaluator: ExpressionEvaluator, session_id: str | None) -> dict[str, object]:
    return {
        "session_id": session_id,
        "angle_unit": evaluator.angle_unit.value,
        "precision": evaluator.precision,
        "last_answer": evaluator.last_answer,
        "memory": evaluator.memory,
    }


@api_bp.post("/evaluate")
def evaluate() -> Response:
    raw_payload = request.get_json(silent=True) or {}
    try:
        payload = parse_model(EvaluatePayload, raw_payload)
    except ValidationError as exc:
        return _invalid_request(exc)

    config = _config()
    if len(payload.expression) > config.max_expression_length:
        return fail(ValidationAppError(message="Expression is too long", code="sci_calc.invalid_expression"))

    session = _session(payload.session_id)
    evaluator = session.evaluator
    with session.lock:
        previous = CalculatorSettings.from_evaluator(evaluator)
        try:
            _apply_overrides(evaluator, payload.angle_unit, payload.precision)
            result = evaluator.evaluate(payload.expression)
        except AppError as exc:
            previous.apply(evaluator)
            return fail(exc)
        except ExpressionSyntaxError as exc:
            previous.apply(evaluator)
            logger.debug("rejected expression %r: %s", payload.expression, exc)
            return fail(ValidationAppError(message=str(exc), code="sci_calc.syntax_error", details=exc.to_details()))
        except ExpressionArithmeticError as exc:
            previous.apply(evaluator)
            logger.debug("undefined expression %r: %s", payload.expression, exc)
            return fail(CalculationAppError(message=str(exc), code="sci_calc.arithmetic_error", details=exc.to_details()))
        state = _state(evaluator, session.session_id)

    return ok({"result": result, "formatted": format_result(result), **state})


@api_bp.get("/settings")
def get_settings() -> Response:
    try:
        payload = parse_query(SessionPayload, request.args)
    except ValidationError as exc:
        return _invalid_request(exc)
    session = _SESSIONS.get(payload.session_id)
    if session is None:
        # Report the defaults a new session would start from.
        evaluator = _new_evaluator()
        settings = CalculatorSettings.from_evaluator(evaluator)
        return ok({**_state(evaluator, None), "stored": settings.to_strings()})
    with session.lock:
        settings = CalculatorSettings.from_evaluator(session.evaluator)
        state = _state(session.evaluator, session.session_id)
    return ok({**state, "stored": settings.to_strings()})


@api_bp.put("/settings")
def update_settings() -> Response:
    raw_payload = request.get_json(silent=True) or {}
    try:
        payload = parse_model(SettingsPayload, raw_payload)
    except ValidationError as exc:
        return _invalid_request(exc)

    session = _session(payload.session_id)
    with session.lock:
        try:
            _apply_overrides(session.evaluator, payload.angle_unit, payload.precision)
        except AppError as exc:
            return fail(exc)
        settings = CalculatorSettings.from_evaluator(session.evaluator)
        state = _state(session.evaluator, session.session_id)

    store = _settings_store(_config())
    if store is not None:
        store.save(settings)
    return ok({**state, "stored": settings.to_strings()})


@api_bp.get("/memory")
def get_memory() -> Response:
    try:
        payload = parse_query(SessionPayload, request.args)
    except ValidationError as exc:
        return _invalid_request(exc)
    session = _SESSIONS.get(payload.session_id)
    if session is None:
        return ok({"session_id": None, "memory": 0.0})
    with session.lock:
        return ok({"session_id": session.session_id, "memory": session.evaluator.memory_recall()})


@api_bp.post("/memory")
def update_memory() -> Response:
    raw_payload = request.get_json(silent=True) or {}
    try:
        payload = parse_model(MemoryPayload, raw_payload)
    except ValidationError as exc:
        return _invalid_request(exc)
    if payload.action in ("set", "add", "subtract") and payload.value is None:
        return fail(ValidationAppError(message="A value is required", code="sci_calc.invalid_request"))

    session = _session(payload.session_id)
    evaluator = session.evaluator
    with session.lock:
        if payload.action == "set":
            memory = evaluator.memory_set(payload.value)
        elif payload.action == "add":
            memory = evaluator.memory_add(payload.value)
        elif payload.action == "subtract":
            memory = evaluator.memory_subtract(payload.value)
        elif payload.action == "clear":
            memory = evaluator.memory_clear()
        else:
            memory = evaluator.memory_recall()
    return ok({"session_id": session.session_id, "memory": memory})


@api_bp.post("/command")
def command() -> Response:
    raw_payload = request.get_json(silent=True) or {}
    try:
        payload = parse_model(CommandPayload, raw_payload)
    except ValidationError as exc:
        return _invalid_request(exc)

    session = _session(payload.session_id)
    with session.lock:
        result = run_command(session.evaluator, payload.verb, *payload.args)
    data = {**result.to_dict(), "session_id": session.session_id}
    if not result.success:
        return fail(
            ValidationAppError(message=result.message, code="sci_calc.command_failed", details=data)
        )
    return ok(data)


@api_bp.get("/functions")
def functions() -> Response:
    return ok(
        {
            "functions": sorted(FUNCTION_NAMES),
            "constants": sorted(CONSTANT_NAMES),
            "commands": list(COMMANDS),
            "angle_units": [unit.value for unit in AngleUnit],
        }
    )


blueprints = [api_bp]


__all__ = [
    "blueprints",
    "command",
    "evaluate",
    "functions",
    "get_memory",
    "get_settings",
    "update_memory",
    "update_settings",
]
