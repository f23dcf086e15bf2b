# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Schema validation as explicit results.

Validating untrusted records (log lines, adapter input) does not raise:
``validate_canonical_event`` and ``validate_adapted_event`` return either
``Ok(value)`` or ``Err(errors)``, where each ``FieldError`` names exactly one
malformed field. Callers decide whether an ``Err`` is fatal (the canonical
log reader turns it into a ParseError) or reportable.

Example:
    >>> result = validate_canonical_event({"seq": 0})
    >>> isinstance(result, Err)
    True
    >>> sorted({e.kind for e in result.errors})
    ['missing', 'out_of_range']
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from agentlens.events.models import AdaptedEvent, CanonicalEvent

T = TypeVar("T")
TModel = TypeVar("TModel", bound=BaseModel)


class EnumFieldErrorKind(StrEnum):
    """Why a single field was rejected."""

    MISSING = "missing"
    WRONG_TYPE = "wrong_type"
    OUT_OF_RANGE = "out_of_range"
    UNKNOWN_VALUE = "unknown_value"
    INVALID = "invalid"


@dataclass(frozen=True)
class FieldError:
    """One malformed field in a record."""

    field: str
    kind: EnumFieldErrorKind
    message: str


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return False

    def describe(self) -> str:
        return "; ".join(f"{e.field}: {e.message}" for e in self.errors)


ValidationResult = Ok[T] | Err

# pydantic error type -> field error kind
_KIND_BY_PYDANTIC_TYPE: dict[str, EnumFieldErrorKind] = {
    "missing": EnumFieldErrorKind.MISSING,
    "enum": EnumFieldErrorKind.UNKNOWN_VALUE,
    "literal_error": EnumFieldErrorKind.UNKNOWN_VALUE,
    "extra_forbidden": EnumFieldErrorKind.UNKNOWN_VALUE,
    "greater_than": EnumFieldErrorKind.OUT_OF_RANGE,
    "greater_than_equal": EnumFieldErrorKind.OUT_OF_RANGE,
    "less_than": EnumFieldErrorKind.OUT_OF_RANGE,
    "less_than_equal": EnumFieldErrorKind.OUT_OF_RANGE,
    "string_too_short": EnumFieldErrorKind.OUT_OF_RANGE,
}


def _classify(error_type: str) -> EnumFieldErrorKind:
    if error_type in _KIND_BY_PYDANTIC_TYPE:
        return _KIND_BY_PYDANTIC_TYPE[error_type]
    if error_type.endswith("_type") or error_type.endswith("_parsing"):
        return EnumFieldErrorKind.WRONG_TYPE
    return EnumFieldErrorKind.INVALID


def _field_errors(exc: ValidationError) -> list[FieldError]:
    errors: list[FieldError] = []
    seen: set[str] = set()
    for item in exc.errors():
        name = ".".join(str(part) for part in item["loc"]) or "<root>"
        # Union members report one error each; keep the first per field.
        if name in seen:
            continue
        seen.add(name)
        errors.append(FieldError(field=name, kind=_classify(item["type"]), message=item["msg"]))
    return errors


def validate_model(model: type[TModel], data: Any) -> Ok[TModel] | Err:
    """Validate ``data`` against ``model`` without raising."""
    if not isinstance(data, dict):
        return Err(
            [
                FieldError(
                    field="<root>",
                    kind=EnumFieldErrorKind.WRONG_TYPE,
                    message=f"expected a JSON object, got {type(data).__name__}",
                )
            ]
        )
    try:
        return Ok(model.model_validate(data))
    except ValidationError as exc:
        return Err(_field_errors(exc))


def validate_canonical_event(data: Any) -> Ok[CanonicalEvent] | Err:
    return validate_model(CanonicalEvent, data)


def validate_adapted_event(data: Any) -> Ok[AdaptedEvent] | Err:
    return validate_model(AdaptedEvent, data)


__all__ = [
    "EnumFieldErrorKind",
    "Err",
    "FieldError",
    "Ok",
    "ValidationResult",
    "validate_adapted_event",
    "validate_canonical_event",
    "validate_model",
]
