"""Strict conformance checks for requirements objects.

Every deviation is reported, not just the first one, so callers can show the
complete list. Only a non-mapping input is treated as a hard failure.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel, TypeAdapter, ValidationError

from .schema import Requirements

_BOOL = TypeAdapter(bool)


class FieldError(BaseModel):
    """A single problem found in a requirements object."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}" if self.path else self.message


class RequirementsResult(BaseModel):
    """Outcome of validating an untrusted requirements object."""

    requirements: Optional[Requirements] = None
    errors: list[FieldError] = []

    @property
    def ok(self) -> bool:
        return self.requirements is not None and not self.errors


class RequirementsParseError(TypeError):
    """Raised when the input cannot be inspected as a requirements object at all."""


class RequirementsError(ValueError):
    """Raised by ``parse_requirements`` when the input does not conform."""

    def __init__(self, errors: list[FieldError]):
        self.errors = errors
        summary = "; ".join(str(e) for e in errors[:5])
        if len(errors) > 5:
            summary += f" (+{len(errors) - 5} more)"
        super().__init__(f"Invalid requirements: {summary}")


def _path(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc)


def _message(raw: str) -> str:
    return raw.removeprefix("Value error, ")


def _get(data: Mapping[str, Any], alias: str, name: str) -> Any:
    return data[alias] if alias in data else data.get(name)


def _dicts(value: Any) -> list[tuple[int, Mapping[str, Any]]]:
    if not isinstance(value, list):
        return []
    return [(i, item) for i, item in enumerate(value) if isinstance(item, Mapping)]


def _duplicates(
    items: list[tuple[str, Any]], label: str
) -> list[FieldError]:
    errors: list[FieldError] = []
    seen: set[Any] = set()
    for path, value in items:
        if not isinstance(value, str):
            continue
        if value in seen:
            errors.append(FieldError(path=path, message=f"duplicate {label} '{value}'"))
        seen.add(value)
    return errors


def _is_decision_split(data: Mapping[str, Any], requirements: Optional[Requirements]) -> bool:
    """The flag as the schema coerces it ('true' and 1 count), even when other fields fail."""
    if requirements is not None:
        return requirements.is_decision_split
    try:
        return _BOOL.validate_python(_get(data, "isDecisionSplit", "is_decision_split") or False)
    except ValidationError:
        return False


def _cross_field_errors(
    data: Mapping[str, Any], requirements: Optional[Requirements] = None
) -> list[FieldError]:
    """Invariants spanning several fields, checked on the raw input."""
    errors: list[FieldError] = []

    for alias, name, label in (
        ("inArguments", "in_arguments", "inArgument name"),
        ("outArguments", "out_arguments", "outArgument name"),
    ):
        items = [
            (f"{alias}.{i}.name", item.get("name"))
            for i, item in _dicts(_get(data, alias, name))
        ]
        errors.extend(_duplicates(items, label))

    field_items: list[tuple[str, Any]] = []
    for s, step in _dicts(_get(data, "configurationSteps", "configuration_steps")):
        for f, field in _dicts(step.get("fields")):
            field_items.append((f"configurationSteps.{s}.fields.{f}.name", field.get("name")))
            options = field.get("options")
            if field.get("type", "text") != "select" and isinstance(options, list) and options:
                errors.append(
                    FieldError(
                        path=f"configurationSteps.{s}.fields.{f}.options",
                        message="options are only allowed on select fields",
                    )
                )
    errors.extend(_duplicates(field_items, "configuration field name"))

    outcomes = _get(data, "outcomes", "outcomes")
    if _is_decision_split(data, requirements):
        if not isinstance(outcomes, list) or len(outcomes) < 2:
            errors.append(
                FieldError(path="outcomes", message="decision split requires at least 2 outcomes")
            )
    errors.extend(
        _duplicates(
            [(f"outcomes.{i}.key", item.get("key")) for i, item in _dicts(outcomes)],
            "outcome key",
        )
    )
    return errors


def validate_requirements(data: Any) -> RequirementsResult:
    """Check ``data`` against the requirements schema, collecting every error."""
    if isinstance(data, Requirements):
        data = data.model_dump(by_alias=True)
    if not isinstance(data, Mapping):
        raise RequirementsParseError(
            f"Requirements must be an object, got {type(data).__name__}"
        )

    errors: list[FieldError] = []
    requirements: Optional[Requirements] = None
    try:
        requirements = Requirements.model_validate(dict(data))
    except ValidationError as exc:
        errors.extend(
            FieldError(path=_path(e["loc"]), message=_message(e["msg"])) for e in exc.errors()
        )

    errors.extend(_cross_field_errors(data, requirements))
    if errors:
        return RequirementsResult(errors=errors)
    return RequirementsResult(requirements=requirements)


def parse_requirements(data: Any) -> Requirements:
    """Return validated requirements or raise ``RequirementsError`` with every problem."""
    result = validate_requirements(data)
    if not result.ok or result.requirements is None:
        raise RequirementsError(result.errors)
    return result.requirements
