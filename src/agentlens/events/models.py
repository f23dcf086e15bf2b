# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Core Pydantic models for the canonical event envelope.

All models are frozen (immutable) after construction. A CanonicalEvent is
the single record type every piece of session activity is reduced to; an
AdaptedSession is what an adapter hands to ingest before identity
resolution assigns it a session and sequence numbers.

Persisted form:
    One CanonicalEvent per JSON line, serialized with ``exclude_none`` so
    absent optionals do not appear on disk. ``None`` values inside payloads
    are dropped at construction time so an event read back from disk is
    value-equal to the event that was written.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from agentlens.events.enums import EnumActorType, EnumEventKind, EnumVisibility
from agentlens.events.timestamps import format_ts, parse_ts

EVENT_SCHEMA_VERSION = 1


def _strip_none(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _strip_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_strip_none(v) for v in value]
    return value


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------


class ModelActor(BaseModel):
    """Producer of an event."""

    model_config = ConfigDict(frozen=True, extra="forbid", from_attributes=True)

    type: EnumActorType
    id: str | None = None


class ModelEventScope(BaseModel):
    """Optional narrowing of an event to an intent, file or module."""

    model_config = ConfigDict(frozen=True, extra="forbid", from_attributes=True)

    intent_id: str | None = None
    file: str | None = None
    module: str | None = None

    def as_key(self) -> dict[str, str]:
        return self.model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# Primary model: CanonicalEvent
# ---------------------------------------------------------------------------


class CanonicalEvent(BaseModel):
    """One persisted, sequenced session event.

    Invariants:
        - ``seq`` is 1-based; within a persisted log the values are 1..N.
        - ``ts`` is stored canonically (see agentlens.events.timestamps).
        - ``confidence`` lies in [0, 1] when present.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", from_attributes=True)

    id: str = Field(min_length=1)
    session_id: str = Field(min_length=1)
    seq: int = Field(ge=1)
    ts: str
    kind: EnumEventKind
    actor: ModelActor
    scope: ModelEventScope | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    derived: bool | None = None
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    visibility: EnumVisibility | None = None
    schema_version: int = EVENT_SCHEMA_VERSION

    @field_validator("ts")
    @classmethod
    def ts_is_canonical(cls, v: str) -> str:
        """Normalize ``ts`` to canonical form; reject unparseable values."""
        parsed = parse_ts(v)
        if parsed is None:
            raise ValueError(f"invalid timestamp: {v!r}")
        return format_ts(parsed)

    @field_validator("payload")
    @classmethod
    def payload_without_none(cls, v: dict[str, Any]) -> dict[str, Any]:
        return _strip_none(v)

    def to_json_line(self) -> str:
        """Serialize as a single JSONL record (no trailing newline)."""
        return json.dumps(
            self.model_dump(mode="json", exclude_none=True),
            ensure_ascii=False,
            separators=(",", ":"),
        )


# ---------------------------------------------------------------------------
# Adapter output contract
# ---------------------------------------------------------------------------


class AdaptedEvent(BaseModel):
    """An event produced by an adapter, not yet assigned a session or seq.

    ``ts`` is kept as the adapter reported it; ingest normalizes it and falls
    back to the ingest wall-clock when missing or unparseable.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", from_attributes=True)

    kind: EnumEventKind
    ts: str | None = None
    actor: ModelActor
    scope: ModelEventScope | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    derived: bool | None = None
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    visibility: EnumVisibility | None = None

    @field_validator("payload")
    @classmethod
    def payload_without_none(cls, v: dict[str, Any]) -> dict[str, Any]:
        return _strip_none(v)


class AdaptedSession(BaseModel):
    """Neutral session shape produced by a raw-log adapter."""

    model_config = ConfigDict(frozen=True, extra="forbid", from_attributes=True)

    source: str = Field(min_length=1)
    session_id: str | None = None
    goal: str | None = None
    user_prompt: str | None = None
    repo: str | None = None
    branch: str | None = None
    started_at: str | None = None
    ended_at: str | None = None
    events: list[AdaptedEvent] = Field(default_factory=list)


__all__ = [
    "EVENT_SCHEMA_VERSION",
    "AdaptedEvent",
    "AdaptedSession",
    "CanonicalEvent",
    "ModelActor",
    "ModelEventScope",
]
