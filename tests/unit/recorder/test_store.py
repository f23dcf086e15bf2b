# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Tests for SessionStore live recording."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import pytest

from agentlens.events.enums import EnumEventKind
from agentlens.events.models import CanonicalEvent
from agentlens.events.sequencing import is_dense
from agentlens.lib.errors import InvalidStateError, NoActiveSessionError, PersistenceIOError
from agentlens.recorder.config import ConfigRecorder
from agentlens.recorder.context import EnumSessionStatus
from agentlens.recorder.store import SessionStore
from agentlens.storage.session_log import SessionLogStore

pytestmark = pytest.mark.unit


def make_store(log_store: SessionLogStore, **config) -> SessionStore:
    return SessionStore(log_store, ConfigRecorder(**config))


class TestLifecycle:
    def test_start_persists_session_start(self, log_store: SessionLogStore) -> None:
        store = make_store(log_store)
        ctx = store.start_session(goal="Fix login bug", repo="acme/api")

        events = log_store.read_events(ctx.session_id)
        assert [e.kind for e in events] == [EnumEventKind.SESSION_START]
        assert events[0].seq == 1
        assert events[0].payload == {"goal": "Fix login bug", "repo": "acme/api"}
        assert store.active is ctx

    def test_empty_goal_rejected(self, log_store: SessionLogStore) -> None:
        with pytest.raises(ValueError):
            make_store(log_store).start_session(goal="  ")

    def test_start_while_active_reuses(self, log_store: SessionLogStore) -> None:
        store = make_store(log_store)
        first = store.start_session(goal="one")
        assert store.start_session(goal="two") is first

    def test_start_while_active_can_raise(self, log_store: SessionLogStore) -> None:
        store = make_store(log_store, reuse_active_session=False)
        store.start_session(goal="one")
        with pytest.raises(InvalidStateError):
            store.start_session(goal="two")

    def test_end_session_writes_end_and_clears_active(
        self, log_store: SessionLogStore
    ) -> None:
        store = make_store(log_store)
        ctx = store.start_session(goal="g")
        store.end_active_session(outcome="completed", summary="done")

        assert ctx.status == EnumSessionStatus.ENDED
        assert store.active is None
        last = log_store.read_events(ctx.session_id)[-1]
        assert last.kind == EnumEventKind.SESSION_END
        assert last.payload["outcome"] == "completed"

    def test_end_twice_is_invalid(self, log_store: SessionLogStore) -> None:
        store = make_store(log_store)
        ctx = store.start_session(goal="g")
        store.end_active_session()
        with pytest.raises(InvalidStateError):
            store.end_active_session()
        with pytest.raises(InvalidStateError):
            store.end_session(ctx)

    def test_end_without_session(self, log_store: SessionLogStore) -> None:
        with pytest.raises(NoActiveSessionError):
            make_store(log_store).end_active_session()

    def test_recording_into_ended_session_is_invalid(
        self, log_store: SessionLogStore
    ) -> None:
        store = make_store(log_store)
        ctx = store.start_session(goal="g")
        store.end_session(ctx)
        with pytest.raises(InvalidStateError):
            store.record_decision(ctx, summary="too late")


class TestRecording:
    def test_no_session_raises_without_auto_create(self, log_store: SessionLogStore) -> None:
        with pytest.raises(NoActiveSessionError):
            make_store(log_store).record_decision(None, summary="Use JWT")

    def test_auto_create_session(self, log_store: SessionLogStore) -> None:
        store = make_store(log_store, auto_create_session=True)
        event = store.record_decision(None, summary="Use JWT")

        assert store.active is not None
        events = log_store.read_events(event.session_id)
        assert [e.kind for e in events] == [EnumEventKind.SESSION_START, EnumEventKind.DECISION]
        assert events[0].payload["goal"] == "Auto-created session"
        assert events[0].payload["auto_created"] is True

    def test_none_context_uses_active_session(self, log_store: SessionLogStore) -> None:
        store = make_store(log_store)
        ctx = store.start_session(goal="g")
        event = store.record_assumption(None, statement="tokens expire hourly")
        assert event.session_id == ctx.session_id

    def test_seq_is_dense(self, log_store: SessionLogStore) -> None:
        store = make_store(log_store)
        ctx = store.start_session(goal="g")
        store.record_intent(ctx, title="Reproduce")
        store.record_activity(ctx, "file", "edit", "src/auth.py")
        store.record_verification(ctx, type="test", result="pass")
        store.end_session(ctx)

        events = log_store.read_events(ctx.session_id)
        assert is_dense(events)
        assert [e.seq for e in events] == [1, 2, 3, 4, 5]

    def test_rejected_event_does_not_claim_seq(self, log_store: SessionLogStore) -> None:
        store = make_store(log_store)
        ctx = store.start_session(goal="g")
        with pytest.raises(ValueError):
            store.record(ctx, "not_a_kind")
        with pytest.raises(ValueError):
            store.record(ctx, EnumEventKind.BLOCKER, {"reason": "x"}, ts="whenever")

        event = store.record(ctx, EnumEventKind.BLOCKER, {"reason": "ok"})
        assert event.seq == 2

    def test_failed_append_does_not_leave_gap(
        self, log_store: SessionLogStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        store = make_store(log_store)
        ctx = store.start_session(goal="g")
        append_events = log_store.append_events
        failures = [PersistenceIOError("disk full")]

        def flaky_append(session_id: str, events: Iterable[CanonicalEvent]) -> Path:
            if failures:
                raise failures.pop()
            return append_events(session_id, events)

        monkeypatch.setattr(log_store, "append_events", flaky_append)
        with pytest.raises(PersistenceIOError):
            store.record(ctx, EnumEventKind.BLOCKER, {"reason": "a"})
        event = store.record(ctx, EnumEventKind.BLOCKER, {"reason": "b"})

        assert event.seq == 2
        events = log_store.read_events(ctx.session_id)
        assert [e.seq for e in events] == [1, 2]
        assert events[-1].payload["reason"] == "b"

    def test_events_scoped_to_active_intent(self, log_store: SessionLogStore) -> None:
        store = make_store(log_store)
        ctx = store.start_session(goal="g")
        intent = store.record_intent(ctx, title="Reproduce")
        intent_id = intent.payload["intent_id"]

        file_event = store.record_activity(ctx, "file", "edit", "src/auth.py")
        tool_event = store.record_activity(ctx, "shell", "run", "pytest")
        decision = store.record_decision(ctx, summary="Use JWT")
        store.end_session(ctx)

        assert intent.scope is not None and intent.scope.intent_id == intent_id
        assert file_event.kind == EnumEventKind.FILE_OP
        assert file_event.scope is not None
        assert file_event.scope.as_key() == {"intent_id": intent_id, "file": "src/auth.py"}
        assert tool_event.kind == EnumEventKind.TOOL_CALL
        assert tool_event.scope is not None and tool_event.scope.file is None
        assert decision.scope is not None and decision.scope.intent_id == intent_id
        last = log_store.read_events(ctx.session_id)[-1]
        assert last.scope is None

    def test_explicit_ts_is_canonicalized(self, log_store: SessionLogStore) -> None:
        store = make_store(log_store)
        ctx = store.start_session(goal="g", ts="2026-02-15T10:00:00Z")
        assert ctx.started_at == "2026-02-15T10:00:00.000Z"


class TestResume:
    def test_resume_restores_cursor(self, log_store: SessionLogStore) -> None:
        first = make_store(log_store)
        ctx = first.start_session(goal="Fix login bug", branch="main")
        intent = first.record_intent(ctx, title="Reproduce")

        second = make_store(log_store)
        resumed = second.resume_session(ctx.session_id)
        assert resumed.goal == "Fix login bug"
        assert resumed.branch == "main"
        assert resumed.next_seq == 3
        assert resumed.active_intent_id == intent.payload["intent_id"]
        assert second.active is resumed

        event = second.record_decision(None, summary="Use JWT")
        assert event.seq == 3
        assert is_dense(log_store.read_events(ctx.session_id))

    def test_resume_ended_session_is_not_active(self, log_store: SessionLogStore) -> None:
        first = make_store(log_store)
        ctx = first.start_session(goal="g")
        first.end_session(ctx)

        second = make_store(log_store)
        resumed = second.resume_session(ctx.session_id)
        assert resumed.is_ended
        assert second.active is None

    def test_resume_unknown_session(self, log_store: SessionLogStore) -> None:
        with pytest.raises(NoActiveSessionError):
            make_store(log_store).resume_session("sess_missing")
