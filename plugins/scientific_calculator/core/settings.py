"""Configuration and persisted settings for the Scientific Calculator plugin."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import yaml

from common.logging import get_logger

from .engine import DEFAULT_PRECISION, AngleUnit, ExpressionEvaluator

ANGLE_MODE_KEY = "AngleMode"
PRECISION_KEY = "Precision"

_DEFAULT_MAX_EXPRESSION_LENGTH = 1024

logger = get_logger("scientific_calculator.settings")


def parse_precision(value: object) -> int:
    """Parse a stored or submitted precision, rejecting negative values."""

    if isinstance(value, bool):
        raise ValueError("Precision must be an integer")
    try:
        precision = int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid precision '{value}'") from exc
    if precision < 0:
        raise ValueError("Precision must be non-negative")
    return precision


@dataclass(frozen=True)
class CalculatorSettings:
    """The two user settings that survive restarts."""

    angle_unit: AngleUnit = AngleUnit.DEGREES
    precision: int = DEFAULT_PRECISION

    @classmethod
    def from_strings(
        cls,
        values: Mapping[str, object],
        *,
        fallback: "CalculatorSettings | None" = None,
    ) -> "CalculatorSettings":
        """Restore settings from key/value strings, keeping ``fallback`` for bad entries."""

        fallback = fallback or cls()
        angle_unit = fallback.angle_unit
        precision = fallback.precision

        raw_angle = values.get(ANGLE_MODE_KEY)
        if raw_angle is not None:
            try:
                angle_unit = AngleUnit.parse(str(raw_angle))
            except ValueError:
                logger.warning("ignoring stored angle mode %r", raw_angle)

        raw_precision = values.get(PRECISION_KEY)
        if raw_precision is not None:
            try:
                precision = parse_precision(raw_precision)
            except ValueError:
                logger.warning("ignoring stored precision %r", raw_precision)

        return cls(angle_unit=angle_unit, precision=precision)

    @classmethod
    def from_evaluator(cls, evaluator: ExpressionEvaluator) -> "CalculatorSettings":
        return cls(angle_unit=evaluator.angle_unit, precision=evaluator.precision)

    def to_strings(self) -> dict[str, str]:
        return {ANGLE_MODE_KEY: self.angle_unit.value, PRECISION_KEY: str(self.precision)}

    def apply(self, evaluator: ExpressionEvaluator) -> ExpressionEvaluator:
        evaluator.angle_unit = self.angle_unit
        evaluator.precision = self.precision
        return evaluator

    def new_evaluator(self) -> ExpressionEvaluator:
        return ExpressionEvaluator(angle_unit=self.angle_unit, precision=self.precision)


@dataclass(frozen=True)
class CalculatorConfig:
    defaults: CalculatorSettings
    max_expression_length: int
    settings_path: Path | None


def _resolve_path(root: Path, value: str) -> Path:
    path = Path(value)
    if path.is_absolute():
        return path
    return (root / path).resolve()


def load_config(raw: Mapping[str, object] | None, *, root: Path) -> CalculatorConfig:
    """Build the plugin configuration from its ``config.yml`` section."""

    raw = raw or {}
    defaults = CalculatorSettings.from_strings(
        {
            ANGLE_MODE_KEY: raw.get("angle_unit", AngleUnit.DEGREES.value),
            PRECISION_KEY: raw.get("precision", DEFAULT_PRECISION),
        }
    )
    try:
        max_length = int(float(raw.get("max_expression_length", _DEFAULT_MAX_EXPRESSION_LENGTH)))
    except (TypeError, ValueError):
        max_length = _DEFAULT_MAX_EXPRESSION_LENGTH
    settings_path = raw.get("settings_path")
    return CalculatorConfig(
        defaults=defaults,
        max_expression_length=max(1, max_length),
        settings_path=_resolve_path(root, str(settings_path)) if settings_path else None,
    )


class SettingsStore:
    """Plain key/value YAML file holding the persisted calculator settings."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or {}
        except (yaml.YAMLError, OSError) as exc:
            logger.warning("cannot read settings file %s; ignoring it: %s", self.path, exc)
            return {}
        if not isinstance(data, Mapping):
            logger.warning("settings file %s is not a mapping; ignoring it", self.path)
            return {}
        return {str(key): str(value) for key, value in data.items()}

    def write(self, values: Mapping[str, str]) -> None:
        """Replace the settings file in one step so readers never see partial content."""

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            yaml.safe_dump(dict(values), handle, default_flow_style=False, sort_keys=True)
        try:
            os.replace(handle.name, self.path)
        except OSError:
            Path(handle.name).unlink(missing_ok=True)
            raise

    def install(self, defaults: CalculatorSettings) -> bool:
        """Write ``defaults`` unless settings were stored before."""

        if self.path.exists():
            return False
        self.write(defaults.to_strings())
        logger.info("installed default calculator settings at %s", self.path)
        return True

    def load(self, fallback: CalculatorSettings | None = None) -> CalculatorSettings:
        return CalculatorSettings.from_strings(self.read(), fallback=fallback)

    def save(self, settings: CalculatorSettings) -> None:
        values = self.read()
        values.update(settings.to_strings())
        self.write(values)
        logger.debug("saved calculator settings %s", values)


__all__ = [
    "ANGLE_MODE_KEY",
    "PRECISION_KEY",
    "CalculatorConfig",
    "CalculatorSettings",
    "SettingsStore",
    "load_config",
    "parse_precision",
]
