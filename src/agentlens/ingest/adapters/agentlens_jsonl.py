# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Adapter for the neutral agentlens JSONL format.

Each line is one AdaptedEvent object. Canonical log lines are accepted too:
their ``id``, ``seq`` and ``schema_version`` are dropped and ``session_id``
becomes the adapted session id, so an exported session can be re-ingested.

Session metadata (goal, user_prompt, repo, branch) is read from the first
session_start payload; started_at/ended_at from the session_start and
session_end timestamps.
"""

from __future__ import annotations

from typing import Any

from agentlens.events.enums import EnumEventKind
from agentlens.events.models import AdaptedEvent, AdaptedSession
from agentlens.events.payloads import coerce_text
from agentlens.events.validation import Err, validate_adapted_event
from agentlens.ingest.adapters.base import first_json_record, iter_json_records
from agentlens.lib.errors import ParseError

ADAPTER_NAME = "agentlens_jsonl"

# Canonical-only keys stripped before AdaptedEvent validation
_CANONICAL_ONLY_KEYS = ("id", "session_id", "seq", "schema_version")

_KNOWN_KINDS = frozenset(kind.value for kind in EnumEventKind)


class AgentLensJsonlAdapter:
    """Parses agentlens' own JSONL event format."""

    @property
    def name(self) -> str:
        return ADAPTER_NAME

    def can_adapt(self, text: str) -> bool:
        record = first_json_record(text)
        return (
            record is not None
            and record.get("kind") in _KNOWN_KINDS
            and isinstance(record.get("actor"), dict)
        )

    def parse(self, text: str) -> AdaptedSession:
        session_id: str | None = None
        events: list[AdaptedEvent] = []

        for line_number, record in iter_json_records(text, ADAPTER_NAME):
            data: dict[str, Any] = dict(record)
            if session_id is None:
                session_id = coerce_text(data.get("session_id"))
            for key in _CANONICAL_ONLY_KEYS:
                data.pop(key, None)

            result = validate_adapted_event(data)
            if isinstance(result, Err):
                raise ParseError(
                    f"Invalid event in {ADAPTER_NAME} input at line {line_number}: "
                    f"{result.describe()}",
                    line_number=line_number,
                    details={"fields": [e.field for e in result.errors]},
                )
            events.append(result.value)

        if not events:
            raise ParseError(f"No events found in {ADAPTER_NAME} input")

        start = next((e for e in events if e.kind == EnumEventKind.SESSION_START), None)
        end = next((e for e in reversed(events) if e.kind == EnumEventKind.SESSION_END), None)
        start_payload = start.payload if start else {}

        return AdaptedSession(
            source=ADAPTER_NAME,
            session_id=session_id,
            goal=coerce_text(start_payload.get("goal")),
            user_prompt=coerce_text(start_payload.get("user_prompt")),
            repo=coerce_text(start_payload.get("repo")),
            branch=coerce_text(start_payload.get("branch")),
            started_at=start.ts if start else None,
            ended_at=end.ts if end else None,
            events=events,
        )


__all__ = ["ADAPTER_NAME", "AgentLensJsonlAdapter"]
