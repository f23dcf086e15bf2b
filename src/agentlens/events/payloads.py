# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Typed payload variants, one per event kind.

The envelope stores ``payload`` as a plain mapping so that records written by
any source survive a round-trip. Consumers that need structure call
``parse_payload(kind, payload)`` and ``match`` on the returned variant.

Payloads arrive from heterogeneous adapters, so fields are lenient: a value
of the wrong type coerces to ``None`` (or ``0`` for counters) rather than
failing the whole record. Unknown keys are preserved (``extra="allow"``).
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict

from agentlens.events.enums import EnumEventKind

# ---------------------------------------------------------------------------
# Lenient coercers
# ---------------------------------------------------------------------------


def coerce_text(value: Any) -> str | None:
    """Return ``value`` if it is a non-blank string, else None."""
    if isinstance(value, str) and value.strip():
        return value
    return None


def coerce_number(value: Any) -> float:
    """Return a finite number from ``value``, or 0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        return float(value) if math.isfinite(value) else 0.0
    if isinstance(value, str) and value.strip():
        try:
            parsed = float(value)
        except ValueError:
            return 0.0
        return parsed if math.isfinite(parsed) else 0.0
    return 0.0


def _choice(*allowed: str) -> BeforeValidator:
    return BeforeValidator(lambda v: v if v in allowed else None)


def _optional_number(value: Any) -> float | None:
    number = coerce_number(value)
    return number or None


def _string_list(value: Any) -> list[str] | None:
    if isinstance(value, list):
        return [str(item) for item in value]
    return None


def _mapping(value: Any) -> dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def _validated_flag(value: Any) -> bool | str:
    if isinstance(value, bool) or value == "unknown":
        return value
    return "unknown"


def _optional_flag(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


Text = Annotated[str | None, BeforeValidator(coerce_text)]
Count = Annotated[float, BeforeValidator(coerce_number)]
OptionalCount = Annotated[float | None, BeforeValidator(_optional_number)]
Flag = Annotated[bool | None, BeforeValidator(_optional_flag)]
Details = Annotated[dict[str, Any], BeforeValidator(_mapping)]

RiskRating = Annotated[Literal["low", "medium", "high"] | None, _choice("low", "medium", "high")]


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------


class _PayloadBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")


class SessionStartPayload(_PayloadBase):
    goal: Text = None
    user_prompt: Text = None
    repo: Text = None
    branch: Text = None
    auto_created: Flag = None


class SessionEndPayload(_PayloadBase):
    outcome: Text = None
    summary: Text = None


class IntentPayload(_PayloadBase):
    intent_id: Text = None
    title: Text = None
    description: Text = None
    priority: OptionalCount = None


class DecisionPayload(_PayloadBase):
    intent_id: Text = None
    summary: Text = None
    rationale: Text = None
    options: Annotated[list[str] | None, BeforeValidator(_string_list)] = None
    chosen_option: Text = None
    reversibility: Annotated[
        Literal["easy", "medium", "hard"] | None, _choice("easy", "medium", "hard")
    ] = None


class AssumptionPayload(_PayloadBase):
    intent_id: Text = None
    statement: Text = None
    validated: Annotated[bool | Literal["unknown"], BeforeValidator(_validated_flag)] = "unknown"
    risk: RiskRating = None


class VerificationPayload(_PayloadBase):
    intent_id: Text = None
    type: Annotated[
        Literal["test", "lint", "typecheck", "manual"],
        BeforeValidator(lambda v: v if v in ("test", "lint", "typecheck", "manual") else "manual"),
    ] = "manual"
    result: Annotated[
        Literal["pass", "fail", "unknown"],
        BeforeValidator(lambda v: v if v in ("pass", "fail", "unknown") else "unknown"),
    ] = "unknown"
    details: Text = None


class FileOpPayload(_PayloadBase):
    intent_id: Text = None
    category: Text = None
    action: Text = None
    target: Text = None
    lines_added: Count = 0.0
    lines_removed: Count = 0.0
    added: Count = 0.0
    removed: Count = 0.0
    dependency_added: Flag = None
    details: Details = {}

    @property
    def added_lines(self) -> float:
        return self.lines_added + self.added

    @property
    def removed_lines(self) -> float:
        return self.lines_removed + self.removed

    @property
    def changed_lines(self) -> float:
        return self.added_lines + self.removed_lines


class ToolCallPayload(_PayloadBase):
    intent_id: Text = None
    category: Text = None
    action: Text = None
    target: Text = None
    details: Details = {}


class ArtifactCreatedPayload(_PayloadBase):
    intent_id: Text = None
    artifact_type: Text = None
    text: Text = None
    summary: Text = None


class TokenUsagePayload(_PayloadBase):
    intent_id: Text = None
    usage: Details = {}


class GenericPayload(_PayloadBase):
    """Payload of a kind without a dedicated shape."""

    intent_id: Text = None


EventPayload = (
    SessionStartPayload
    | SessionEndPayload
    | IntentPayload
    | DecisionPayload
    | AssumptionPayload
    | VerificationPayload
    | FileOpPayload
    | ToolCallPayload
    | ArtifactCreatedPayload
    | TokenUsagePayload
    | GenericPayload
)

_PAYLOAD_BY_KIND: dict[EnumEventKind, type[_PayloadBase]] = {
    EnumEventKind.SESSION_START: SessionStartPayload,
    EnumEventKind.SESSION_END: SessionEndPayload,
    EnumEventKind.INTENT: IntentPayload,
    EnumEventKind.DECISION: DecisionPayload,
    EnumEventKind.ASSUMPTION: AssumptionPayload,
    EnumEventKind.VERIFICATION: VerificationPayload,
    EnumEventKind.FILE_OP: FileOpPayload,
    EnumEventKind.TOOL_CALL: ToolCallPayload,
    EnumEventKind.ARTIFACT_CREATED: ArtifactCreatedPayload,
    EnumEventKind.TOKEN_USAGE_CHECKPOINT: TokenUsagePayload,
}


def parse_payload(kind: EnumEventKind | str, payload: Mapping[str, Any]) -> EventPayload:
    """Return the typed payload variant for ``kind``."""
    model = _PAYLOAD_BY_KIND.get(EnumEventKind(kind), GenericPayload)
    return model.model_validate(dict(payload))  # type: ignore[return-value]


__all__ = [
    "ArtifactCreatedPayload",
    "AssumptionPayload",
    "DecisionPayload",
    "EventPayload",
    "FileOpPayload",
    "GenericPayload",
    "IntentPayload",
    "SessionEndPayload",
    "SessionStartPayload",
    "TokenUsagePayload",
    "ToolCallPayload",
    "VerificationPayload",
    "coerce_number",
    "coerce_text",
    "parse_payload",
]
