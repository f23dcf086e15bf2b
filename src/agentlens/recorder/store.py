# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Live session recording.

SessionStore mints canonical events for a live session and appends them to
the session's log through SessionLogStore. It owns at most one active
SessionContext per instance; recording calls take the context explicitly so
no process-wide "current session" exists.

Key Semantics:
    - One active session at a time: start_session while another is active
      returns it (``reuse_active_session``) or raises InvalidStateError.
    - Seq values are claimed only after an event validates, so a rejected
      event never leaves a gap.
    - persist_event surfaces PersistenceIOError; the event is not dropped,
      and the caller may retry persisting the same event. record() and the
      lifecycle calls hand the seq back instead, so the next event reuses it.
    - Ending a session twice is an InvalidStateError.

Example:
    >>> store = SessionStore(SessionLogStore(ConfigSessionStorage(sessions_dir=tmp)))
    >>> ctx = store.start_session(goal="Fix login bug")
    >>> store.record_intent(ctx, title="Reproduce failure")
    >>> store.end_active_session(outcome="completed")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any
from uuid import uuid4

from agentlens.events.enums import EnumActorType, EnumEventKind, EnumVisibility
from agentlens.events.models import CanonicalEvent, ModelActor, ModelEventScope
from agentlens.events.payloads import (
    IntentPayload,
    SessionEndPayload,
    SessionStartPayload,
    parse_payload,
)
from agentlens.events.sequencing import make_event_id, make_session_id, next_seq
from agentlens.events.timestamps import format_ts, now_epoch_ms, now_iso, parse_ts
from agentlens.lib.errors import InvalidStateError, NoActiveSessionError, PersistenceIOError
from agentlens.recorder.config import ConfigRecorder
from agentlens.recorder.context import EnumSessionStatus, SessionContext
from agentlens.storage.session_log import SessionLogStore

logger = logging.getLogger(__name__)

_DEFAULT_ACTOR = ModelActor(type=EnumActorType.AGENT)

# Kinds that are never scoped to the active intent
_UNSCOPED_KINDS = frozenset({EnumEventKind.SESSION_START, EnumEventKind.SESSION_END})


def _canonical_or_now(ts: str | None) -> str:
    if ts is None:
        return now_iso()
    parsed = parse_ts(ts)
    if parsed is None:
        raise ValueError(f"Invalid timestamp: {ts}")
    return format_ts(parsed)


def make_intent_id() -> str:
    return f"intent_{now_epoch_ms()}_{uuid4().hex[:8]}"


class SessionStore:
    """Records events for the active session.

    Attributes:
        active: The active session context, or None.
    """

    def __init__(
        self,
        log_store: SessionLogStore,
        config: ConfigRecorder | None = None,
    ) -> None:
        self._log_store = log_store
        self._config = config or ConfigRecorder()
        self._active: SessionContext | None = None
        self._last_ended: SessionContext | None = None

    @property
    def active(self) -> SessionContext | None:
        return self._active

    # =========================================================================
    # Session lifecycle
    # =========================================================================

    def start_session(
        self,
        goal: str,
        user_prompt: str | None = None,
        repo: str | None = None,
        branch: str | None = None,
        ts: str | None = None,
        *,
        auto_created: bool = False,
    ) -> SessionContext:
        """Start a session and persist its session_start event."""
        if self._active is not None:
            if self._config.reuse_active_session:
                logger.debug(
                    "Reusing active session",
                    extra={"session_id": self._active.session_id},
                )
                return self._active
            raise InvalidStateError(
                f"Session {self._active.session_id} is still active; end it first",
                details={"session_id": self._active.session_id},
            )
        if not goal or not goal.strip():
            raise ValueError("goal must not be empty")

        started_at = _canonical_or_now(ts)
        context = SessionContext(
            session_id=make_session_id(now_epoch_ms()),
            goal=goal,
            started_at=started_at,
            user_prompt=user_prompt,
            repo=repo,
            branch=branch,
        )
        self._log_store.initialize(context.session_id)
        event = self.create_event(
            context,
            EnumEventKind.SESSION_START,
            {
                "goal": goal,
                "user_prompt": user_prompt,
                "repo": repo,
                "branch": branch,
                "auto_created": True if auto_created else None,
            },
            actor=ModelActor(type=EnumActorType.SYSTEM),
            ts=started_at,
            visibility=EnumVisibility.REVIEW,
        )
        self._persist_or_release(context, event)
        self._active = context

        logger.info(
            "Session started",
            extra={
                "session_id": context.session_id,
                "auto_created": auto_created,
            },
        )
        return context

    def resume_session(self, session_id: str) -> SessionContext:
        """Rebuild a context for ``session_id`` from its persisted log.

        An ended session comes back with status ENDED and does not become
        the active session.
        """
        events = self._log_store.read_events(session_id)
        if not events:
            raise NoActiveSessionError(
                f"No persisted session found: {session_id}",
                details={"session_id": session_id},
            )
        if self._active is not None and self._active.session_id != session_id:
            raise InvalidStateError(
                f"Session {self._active.session_id} is still active; end it first",
                details={"session_id": self._active.session_id},
            )

        context = SessionContext(
            session_id=session_id,
            goal="Unknown goal",
            started_at=events[0].ts,
            next_seq=next_seq(events),
        )
        for event in events:
            match parse_payload(event.kind, event.payload):
                case SessionStartPayload() as start:
                    context.goal = start.goal or context.goal
                    context.user_prompt = start.user_prompt
                    context.repo = start.repo
                    context.branch = start.branch
                    context.started_at = event.ts
                case IntentPayload() as intent:
                    scope_intent = event.scope.intent_id if event.scope else None
                    context.active_intent_id = scope_intent or intent.intent_id
                case SessionEndPayload():
                    context.status = EnumSessionStatus.ENDED
                    context.ended_at = event.ts
                case _:
                    pass

        if not context.is_ended:
            self._active = context
        logger.info(
            "Session resumed from log",
            extra={
                "session_id": session_id,
                "status": context.status.value,
                "next_seq": context.next_seq,
            },
        )
        return context

    def end_session(
        self,
        context: SessionContext,
        ts: str | None = None,
        outcome: str | None = None,
        summary: str | None = None,
    ) -> SessionContext:
        """Write session_end for ``context`` and clear the active cursor."""
        if context.is_ended:
            raise InvalidStateError(
                f"Session {context.session_id} has already ended",
                details={"session_id": context.session_id, "ended_at": context.ended_at},
            )
        event = self.create_event(
            context,
            EnumEventKind.SESSION_END,
            {"outcome": outcome, "summary": summary},
            actor=ModelActor(type=EnumActorType.SYSTEM),
            ts=ts,
            visibility=EnumVisibility.REVIEW,
        )
        self._persist_or_release(context, event)
        context.status = EnumSessionStatus.ENDED
        context.ended_at = event.ts
        if self._active is context:
            self._active = None
        self._last_ended = context

        logger.info(
            "Session ended",
            extra={
                "session_id": context.session_id,
                "outcome": outcome,
                "event_count": context.next_seq - 1,
            },
        )
        return context

    def end_active_session(
        self,
        ts: str | None = None,
        outcome: str | None = None,
        summary: str | None = None,
    ) -> SessionContext:
        """End the active session.

        Raises:
            InvalidStateError: The last session was already ended.
            NoActiveSessionError: No session was ever started.
        """
        if self._active is None:
            if self._last_ended is not None:
                raise InvalidStateError(
                    f"Session {self._last_ended.session_id} has already ended",
                    details={"session_id": self._last_ended.session_id},
                )
            raise NoActiveSessionError("No active session. Call start_session first.")
        return self.end_session(self._active, ts=ts, outcome=outcome, summary=summary)

    # =========================================================================
    # Event minting and persistence
    # =========================================================================

    def _require_context(self, context: SessionContext | None) -> SessionContext:
        """``context``, else the active session, else an auto-created one."""
        if context is None:
            context = self._active
        if context is None:
            if not self._config.auto_create_session:
                raise NoActiveSessionError("No active session. Call start_session first.")
            context = self.start_session(self._config.auto_session_goal, auto_created=True)
        if context.is_ended:
            raise InvalidStateError(
                f"Session {context.session_id} has ended; start a new one",
                details={"session_id": context.session_id},
            )
        return context

    def create_event(
        self,
        context: SessionContext | None,
        kind: EnumEventKind | str,
        payload: dict[str, Any] | None = None,
        *,
        actor: ModelActor | None = None,
        ts: str | None = None,
        scope: ModelEventScope | None = None,
        derived: bool | None = None,
        confidence: float | None = None,
        visibility: EnumVisibility | None = None,
    ) -> CanonicalEvent:
        """Mint the next event for ``context`` without persisting it.

        Raises:
            NoActiveSessionError: ``context`` is None and auto-creation is off.
            InvalidStateError: ``context`` has ended.
            ValueError: kind, timestamp or confidence is invalid.
        """
        context = self._require_context(context)
        kind = EnumEventKind(kind)
        if scope is None and context.active_intent_id and kind not in _UNSCOPED_KINDS:
            scope = ModelEventScope(intent_id=context.active_intent_id)

        seq = context.next_seq
        event = CanonicalEvent(
            id=make_event_id(context.session_id, seq),
            session_id=context.session_id,
            seq=seq,
            ts=_canonical_or_now(ts),
            kind=kind,
            actor=actor or _DEFAULT_ACTOR,
            scope=scope,
            payload=payload or {},
            derived=derived,
            confidence=confidence,
            visibility=visibility,
        )
        context.claim_seq()
        return event

    def persist_event(self, event: CanonicalEvent) -> Path:
        """Append one event to its session log.

        Raises:
            PersistenceIOError: The append failed; the event was not written.
        """
        path = self._log_store.append_events(event.session_id, [event])
        logger.debug(
            "Event persisted",
            extra={"session_id": event.session_id, "seq": event.seq, "kind": event.kind.value},
        )
        return path

    def _persist_or_release(self, context: SessionContext, event: CanonicalEvent) -> None:
        try:
            self.persist_event(event)
        except PersistenceIOError:
            context.release_seq(event.seq)
            raise

    def record(
        self,
        context: SessionContext | None,
        kind: EnumEventKind | str,
        payload: dict[str, Any] | None = None,
        **fields: Any,
    ) -> CanonicalEvent:
        """Create and persist one event."""
        context = self._require_context(context)
        event = self.create_event(context, kind, payload, **fields)
        self._persist_or_release(context, event)
        return event

    # =========================================================================
    # Convenience recorders
    # =========================================================================

    def record_intent(
        self,
        context: SessionContext | None,
        title: str,
        description: str | None = None,
        priority: int | None = None,
    ) -> CanonicalEvent:
        """Open a new intent; subsequent events are scoped to it."""
        context = self._require_context(context)
        intent_id = make_intent_id()
        event = self.record(
            context,
            EnumEventKind.INTENT,
            {
                "intent_id": intent_id,
                "title": title,
                "description": description,
                "priority": priority,
            },
            scope=ModelEventScope(intent_id=intent_id),
            visibility=EnumVisibility.REVIEW,
        )
        context.active_intent_id = intent_id
        return event

    def record_activity(
        self,
        context: SessionContext | None,
        category: str,
        action: str,
        target: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> CanonicalEvent:
        """Record a file operation (``category == "file"``) or a tool call."""
        context = self._require_context(context)
        is_file = category == "file"
        module = (details or {}).get("module")
        return self.record(
            context,
            EnumEventKind.FILE_OP if is_file else EnumEventKind.TOOL_CALL,
            {
                "category": category,
                "action": action,
                "target": target,
                "details": details or {},
            },
            scope=ModelEventScope(
                intent_id=context.active_intent_id,
                file=target if is_file else None,
                module=module if isinstance(module, str) else None,
            ),
            visibility=EnumVisibility.RAW,
        )

    def record_decision(
        self,
        context: SessionContext | None,
        summary: str,
        rationale: str | None = None,
        options: list[str] | None = None,
        chosen_option: str | None = None,
        reversibility: str | None = None,
    ) -> CanonicalEvent:
        return self.record(
            context,
            EnumEventKind.DECISION,
            {
                "summary": summary,
                "rationale": rationale,
                "options": options,
                "chosen_option": chosen_option,
                "reversibility": reversibility,
            },
            visibility=EnumVisibility.REVIEW,
        )

    def record_assumption(
        self,
        context: SessionContext | None,
        statement: str,
        validated: bool | str = "unknown",
        risk: str | None = None,
    ) -> CanonicalEvent:
        return self.record(
            context,
            EnumEventKind.ASSUMPTION,
            {"statement": statement, "validated": validated, "risk": risk},
            visibility=EnumVisibility.REVIEW,
        )

    def record_verification(
        self,
        context: SessionContext | None,
        type: str,
        result: str,
        details: str | None = None,
    ) -> CanonicalEvent:
        return self.record(
            context,
            EnumEventKind.VERIFICATION,
            {"type": type, "result": result, "details": details},
            visibility=EnumVisibility.REVIEW,
        )

    def record_token_usage(
        self,
        context: SessionContext | None,
        usage: dict[str, Any],
    ) -> CanonicalEvent:
        return self.record(
            context,
            EnumEventKind.TOKEN_USAGE_CHECKPOINT,
            {"usage": usage},
            visibility=EnumVisibility.RAW,
        )


__all__ = [
    "SessionStore",
    "make_intent_id",
]
