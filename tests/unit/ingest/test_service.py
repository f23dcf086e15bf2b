# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Tests for identity resolution, merge writes and the ingest service.

Covers:
- resolver precedence: explicit merge, adapted id, fingerprint, new session
- fingerprint window and unreadable candidates
- write mode selection and full-rewrite ordering
- idempotent re-ingest, adapter errors before any write, missing files
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from agentlens.events.enums import EnumActorType, EnumEventKind
from agentlens.events.models import AdaptedSession, CanonicalEvent, ModelActor
from agentlens.events.sequencing import is_dense, make_event_id
from agentlens.ingest.config import ConfigIngest
from agentlens.ingest.resolver import EnumMergeStrategy, SessionIdentityResolver
from agentlens.ingest.service import IngestService
from agentlens.ingest.writer import EnumWriteMode, MergeWriter, choose_write_mode
from agentlens.lib.errors import (
    EnumCoreErrorCode,
    ParseError,
    PersistenceIOError,
    UnsupportedAdapterError,
)
from agentlens.storage.session_log import SessionLogStore

pytestmark = pytest.mark.unit


# =============================================================================
# Helpers
# =============================================================================


def record(kind: str, ts: str, payload: dict[str, Any], **extra: Any) -> dict[str, Any]:
    return {"kind": kind, "ts": ts, "actor": {"type": "agent"}, "payload": payload, **extra}


def to_jsonl(records: list[dict[str, Any]]) -> str:
    return "".join(json.dumps(r) + "\n" for r in records)


def login_session(
    goal: str, start: str, file_ts: str, extra: list[dict[str, Any]] | None = None
) -> str:
    return to_jsonl(
        [
            record("session_start", start, {"goal": goal}),
            record("file_op", file_ts, {"action": "edit", "target": "src/login.ts"}),
            *(extra or []),
        ]
    )


def make_event(seq: int, ts: str, kind: EnumEventKind = EnumEventKind.DECISION) -> CanonicalEvent:
    return CanonicalEvent(
        id=make_event_id("sess_a", seq),
        session_id="sess_a",
        seq=seq,
        ts=ts,
        kind=kind,
        actor=ModelActor(type=EnumActorType.AGENT),
        payload={"summary": f"step {seq}"},
    )


@pytest.fixture
def service(log_store: SessionLogStore) -> IngestService:
    return IngestService(log_store)


# =============================================================================
# Resolver
# =============================================================================


class TestResolver:
    def test_explicit_merge_wins(self, log_store: SessionLogStore) -> None:
        log_store.append_events("sess_a", [make_event(1, "2026-02-15T10:00:00Z")])
        resolver = SessionIdentityResolver(log_store)
        adapted = AdaptedSession(source="x", session_id="sess_a", goal="Fix login bug")

        selection = resolver.resolve(adapted, merge_session_id="  sess_target ")
        assert selection.session_id == "sess_target"
        assert selection.strategy == EnumMergeStrategy.EXPLICIT_MERGE
        assert selection.confidence is None

    def test_adapted_id_with_existing_log(self, log_store: SessionLogStore) -> None:
        log_store.append_events("sess_a", [make_event(1, "2026-02-15T10:00:00Z")])
        selection = SessionIdentityResolver(log_store).resolve(
            AdaptedSession(source="x", session_id="sess_a")
        )
        assert selection.strategy == EnumMergeStrategy.ADAPTED_SESSION_ID
        assert selection.session_id == "sess_a"

    def test_adapted_id_without_log_is_reused_as_new(self, log_store: SessionLogStore) -> None:
        selection = SessionIdentityResolver(log_store).resolve(
            AdaptedSession(source="x", session_id="sess_fresh")
        )
        assert selection.strategy == EnumMergeStrategy.NEW_SESSION
        assert selection.session_id == "sess_fresh"

    def test_no_prompt_mints_new_id(self, log_store: SessionLogStore) -> None:
        selection = SessionIdentityResolver(log_store).resolve(AdaptedSession(source="x"))
        assert selection.strategy == EnumMergeStrategy.NEW_SESSION
        assert selection.session_id.startswith("sess_")

    def test_unreadable_candidates_are_skipped(
        self, log_store: SessionLogStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        log_store.initialize("sess_bad").write_text("{broken\n{}\n")
        resolver = SessionIdentityResolver(log_store)
        assert resolver.load_fingerprints() == []
        assert "Excluding unreadable session" in caplog.text

        selection = resolver.resolve(AdaptedSession(source="x", goal="Fix login bug"))
        assert selection.strategy == EnumMergeStrategy.NEW_SESSION


# =============================================================================
# Writer
# =============================================================================


class TestMergeWriter:
    def test_choose_write_mode(self) -> None:
        event = make_event(1, "2026-02-15T10:00:00Z")
        assert choose_write_mode([], [event]) == EnumWriteMode.APPEND
        assert choose_write_mode([], []) == EnumWriteMode.APPEND
        assert choose_write_mode([event], [event]) == EnumWriteMode.FULL_REWRITE
        assert choose_write_mode([event], []) == EnumWriteMode.NONE

    def test_full_rewrite_orders_by_ts_and_renumbers(self, log_store: SessionLogStore) -> None:
        existing = [make_event(1, "2026-02-15T10:00:00Z"), make_event(2, "2026-02-15T10:10:00Z")]
        log_store.append_events("sess_a", existing)
        accepted = [make_event(3, "2026-02-15T10:05:00Z")]

        mode, _ = MergeWriter(log_store).write("sess_a", existing, accepted)
        assert mode == EnumWriteMode.FULL_REWRITE

        events = log_store.read_events("sess_a")
        assert [e.payload["summary"] for e in events] == ["step 1", "step 3", "step 2"]
        assert [e.seq for e in events] == [1, 2, 3]
        assert all(e.id.startswith(f"sess_a:{e.seq}:") for e in events)

    def test_none_leaves_log_untouched(self, log_store: SessionLogStore) -> None:
        existing = [make_event(1, "2026-02-15T10:00:00Z")]
        path = log_store.append_events("sess_a", existing)
        before = path.read_text()
        mode, returned = MergeWriter(log_store).write("sess_a", existing, [])
        assert mode == EnumWriteMode.NONE
        assert returned == path
        assert path.read_text() == before


# =============================================================================
# Service
# =============================================================================


class TestIngestService:
    def test_new_session_append(self, service: IngestService, log_store: SessionLogStore) -> None:
        raw = login_session("Fix login bug", "2026-02-15T10:00:00Z", "2026-02-15T10:01:00Z")
        result = service.ingest_raw(raw)

        assert result.adapter == "agentlens_jsonl"
        assert result.merge_strategy == EnumMergeStrategy.NEW_SESSION
        assert result.write_mode == EnumWriteMode.APPEND
        assert result.inserted == 2
        assert result.skipped_duplicates == 0
        assert result.raw_path.read_text() == raw
        events = log_store.read_events(result.session_id)
        assert [e.kind for e in events] == [EnumEventKind.SESSION_START, EnumEventKind.FILE_OP]
        assert is_dense(events)

    def test_reingest_is_idempotent(
        self, service: IngestService, log_store: SessionLogStore
    ) -> None:
        raw = to_jsonl(
            [
                record("session_start", "2026-02-15T10:00:00Z", {"goal": "g"}, session_id="s1"),
                record("decision", "2026-02-15T10:01:00Z", {"summary": "Use JWT"}, session_id="s1"),
            ]
        )
        first = service.ingest_raw(raw)
        second = service.ingest_raw(raw)

        assert first.session_id == second.session_id == "s1"
        assert second.merge_strategy == EnumMergeStrategy.ADAPTED_SESSION_ID
        assert second.inserted == 0
        assert second.skipped_duplicates == 2
        assert second.write_mode == EnumWriteMode.NONE
        assert len(log_store.read_events("s1")) == 2

    def test_exported_log_reingests_in_place(
        self, service: IngestService, log_store: SessionLogStore
    ) -> None:
        first = service.ingest_raw(
            login_session("Fix login bug", "2026-02-15T10:00:00Z", "2026-02-15T10:01:00Z")
        )
        exported = log_store.session_path(first.session_id).read_text()
        again = service.ingest_raw(exported)
        assert again.session_id == first.session_id
        assert again.inserted == 0

    def test_in_batch_duplicates_skipped(self, service: IngestService) -> None:
        decision = record("decision", "2026-02-15T10:01:00Z", {"summary": "Use JWT"})
        result = service.ingest_raw(to_jsonl([decision, decision]))
        assert result.inserted == 1
        assert result.skipped_duplicates == 1

    def test_dedupe_can_be_disabled(self, service: IngestService) -> None:
        decision = record("decision", "2026-02-15T10:01:00Z", {"summary": "Use JWT"})
        result = service.ingest_raw(to_jsonl([decision, decision]), dedupe=False)
        assert result.inserted == 2

    def test_fingerprint_merge_of_similar_session(
        self, service: IngestService, log_store: SessionLogStore
    ) -> None:
        first = service.ingest_raw(
            login_session("Fix login bug", "2026-02-15T10:00:00Z", "2026-02-15T10:01:00Z")
        )
        verification = record(
            "verification", "2026-02-15T10:12:00Z", {"type": "test", "result": "pass"}
        )
        second = service.ingest_raw(
            login_session(
                "fix the login bug",
                "2026-02-15T10:10:00Z",
                "2026-02-15T10:01:00Z",
                [verification],
            )
        )

        assert second.session_id == first.session_id
        assert second.merge_strategy == EnumMergeStrategy.FINGERPRINT_MATCH
        assert second.merge_confidence is not None
        assert second.merge_confidence >= 0.6
        assert second.inserted == 1
        assert second.skipped_duplicates == 2
        assert second.write_mode == EnumWriteMode.FULL_REWRITE

        events = log_store.read_events(first.session_id)
        assert is_dense(events)
        assert sum(1 for e in events if e.kind == EnumEventKind.FILE_OP) == 1
        assert events[-1].kind == EnumEventKind.VERIFICATION

    def test_fingerprint_window_excludes_distant_sessions(self, service: IngestService) -> None:
        first = service.ingest_raw(
            login_session("Fix login bug", "2026-02-15T10:00:00Z", "2026-02-15T10:01:00Z")
        )
        later = service.ingest_raw(
            login_session("Fix login bug", "2026-02-19T14:00:00Z", "2026-02-19T14:01:00Z")
        )
        assert later.merge_strategy == EnumMergeStrategy.NEW_SESSION
        assert later.session_id != first.session_id

    def test_window_is_configurable(self, log_store: SessionLogStore) -> None:
        service = IngestService(log_store, ConfigIngest(fingerprint_max_window_hours=200))
        first = service.ingest_raw(
            login_session("Fix login bug", "2026-02-15T10:00:00Z", "2026-02-15T10:01:00Z")
        )
        later = service.ingest_raw(
            login_session("Fix login bug", "2026-02-19T14:00:00Z", "2026-02-19T14:01:00Z")
        )
        # prompt 1.0 * 0.78 + time 0.0 * 0.22 still clears the 0.6 threshold
        assert later.merge_strategy == EnumMergeStrategy.FINGERPRINT_MATCH
        assert later.session_id == first.session_id

    def test_explicit_merge_into_existing(
        self, service: IngestService, log_store: SessionLogStore
    ) -> None:
        first = service.ingest_raw(
            login_session("Fix login bug", "2026-02-15T10:00:00Z", "2026-02-15T10:01:00Z")
        )
        result = service.ingest_raw(
            to_jsonl([record("decision", "2026-02-15T09:00:00Z", {"summary": "Use JWT"})]),
            merge_session_id=first.session_id,
        )
        assert result.merge_strategy == EnumMergeStrategy.EXPLICIT_MERGE
        events = log_store.read_events(first.session_id)
        assert events[0].kind == EnumEventKind.DECISION
        assert is_dense(events)

    def test_unknown_adapter_fails_before_write(
        self, service: IngestService, log_store: SessionLogStore
    ) -> None:
        with pytest.raises(UnsupportedAdapterError):
            service.ingest_raw("{}", adapter="cursor")
        with pytest.raises(UnsupportedAdapterError):
            service.ingest_raw("plain text, no adapter")
        assert log_store.list_sessions() == []
        assert not log_store.sessions_dir.exists()

    def test_malformed_input_raises_parse_error(self, service: IngestService) -> None:
        raw = to_jsonl([record("decision", "2026-02-15T10:01:00Z", {})]) + "{oops\n"
        with pytest.raises(ParseError) as exc_info:
            service.ingest_raw(raw, adapter="agentlens_jsonl")
        assert exc_info.value.line_number == 2

    def test_missing_file(self, service: IngestService, tmp_path: Path) -> None:
        with pytest.raises(PersistenceIOError) as exc_info:
            service.ingest_file(tmp_path / "missing.jsonl")
        assert exc_info.value.code == EnumCoreErrorCode.FILE_NOT_FOUND

    def test_ingest_file(self, service: IngestService, tmp_path: Path) -> None:
        path = tmp_path / "export.jsonl"
        path.write_text(
            login_session("Fix login bug", "2026-02-15T10:00:00Z", "2026-02-15T10:01:00Z")
        )
        result = service.ingest_file(path, adapter="agentlens_jsonl")
        assert result.inserted == 2
        assert result.session_path.is_file()
