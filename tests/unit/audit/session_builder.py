# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Builder for canonical session logs used by the audit and review tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from agentlens.events.enums import EnumActorType, EnumEventKind
from agentlens.events.models import CanonicalEvent, ModelActor, ModelEventScope
from agentlens.events.sequencing import make_event_id
from agentlens.events.timestamps import format_ts

BASE_TIME = datetime(2026, 2, 15, 10, 0, 0, tzinfo=UTC)


class SessionEventsBuilder:
    """Appends canonical events with dense seqs, one minute apart by default."""

    def __init__(self, session_id: str = "sess_audit") -> None:
        self.session_id = session_id
        self.events: list[CanonicalEvent] = []

    def add(
        self,
        kind: EnumEventKind,
        payload: dict[str, Any] | None = None,
        *,
        intent_id: str | None = None,
        file: str | None = None,
        at_seconds: float | None = None,
        actor: EnumActorType = EnumActorType.AGENT,
    ) -> CanonicalEvent:
        seq = len(self.events) + 1
        offset = timedelta(seconds=at_seconds if at_seconds is not None else seq * 60)
        scope = ModelEventScope(intent_id=intent_id, file=file) if intent_id or file else None
        event = CanonicalEvent(
            id=make_event_id(self.session_id, seq),
            session_id=self.session_id,
            seq=seq,
            ts=format_ts(BASE_TIME + offset),
            kind=kind,
            actor=ModelActor(type=actor),
            scope=scope,
            payload=payload or {},
        )
        self.events.append(event)
        return event

    def start(self, goal: str = "Fix login bug", **payload: Any) -> CanonicalEvent:
        return self.add(
            EnumEventKind.SESSION_START, {"goal": goal, **payload}, actor=EnumActorType.SYSTEM
        )

    def end(self, outcome: str = "completed") -> CanonicalEvent:
        return self.add(
            EnumEventKind.SESSION_END, {"outcome": outcome}, actor=EnumActorType.SYSTEM
        )

    def intent(self, intent_id: str, title: str | None = None) -> CanonicalEvent:
        return self.add(
            EnumEventKind.INTENT,
            {"intent_id": intent_id, "title": title or intent_id},
            intent_id=intent_id,
            actor=EnumActorType.USER,
        )

    def file_op(
        self,
        target: str,
        action: str = "edit",
        added: int = 0,
        removed: int = 0,
        intent_id: str | None = None,
        at_seconds: float | None = None,
        **payload: Any,
    ) -> CanonicalEvent:
        return self.add(
            EnumEventKind.FILE_OP,
            {"action": action, "target": target, "added": added, "removed": removed, **payload},
            intent_id=intent_id,
            at_seconds=at_seconds,
        )

    def verification(
        self, result: str = "pass", type: str = "test", intent_id: str | None = None
    ) -> CanonicalEvent:
        return self.add(
            EnumEventKind.VERIFICATION, {"type": type, "result": result}, intent_id=intent_id
        )

    def decision(
        self, summary: str, reversibility: str | None = None, intent_id: str | None = None
    ) -> CanonicalEvent:
        return self.add(
            EnumEventKind.DECISION,
            {"summary": summary, "reversibility": reversibility},
            intent_id=intent_id,
        )

    def assumption(
        self,
        statement: str,
        validated: bool | str = "unknown",
        risk: str | None = None,
        intent_id: str | None = None,
    ) -> CanonicalEvent:
        return self.add(
            EnumEventKind.ASSUMPTION,
            {"statement": statement, "validated": validated, "risk": risk},
            intent_id=intent_id,
        )
