# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Tests for session fingerprints and similarity scoring."""

from __future__ import annotations

from typing import Any

import pytest

from agentlens.events.enums import EnumActorType, EnumEventKind
from agentlens.events.models import AdaptedEvent, AdaptedSession, CanonicalEvent, ModelActor
from agentlens.events.sequencing import make_event_id
from agentlens.events.timestamps import to_epoch_ms
from agentlens.ingest.fingerprint import (
    distance_hours,
    fingerprint_from_events,
    jaccard,
    normalize_fingerprint,
    prompt_score,
    source_epoch_ms,
    source_prompt,
    time_score,
)

pytestmark = pytest.mark.unit


def make_event(seq: int, kind: EnumEventKind, ts: str, payload: dict[str, Any]) -> CanonicalEvent:
    return CanonicalEvent(
        id=make_event_id("sess_1", seq),
        session_id="sess_1",
        seq=seq,
        ts=ts,
        kind=kind,
        actor=ModelActor(type=EnumActorType.SYSTEM),
        payload=payload,
    )


def make_adapted(**fields: Any) -> AdaptedSession:
    return AdaptedSession(source="agentlens_jsonl", **fields)


class TestPromptScore:
    def test_normalize(self) -> None:
        assert normalize_fingerprint("Fix: the LOGIN-bug!") == "fix the login bug"
        assert normalize_fingerprint(None) == ""
        assert len(normalize_fingerprint("a" * 1000)) == 320

    def test_exact_match(self) -> None:
        assert prompt_score("Fix login bug", "fix LOGIN bug.") == 1.0

    def test_containment_requires_length(self) -> None:
        long_a = "refactor the session store"
        long_b = "please refactor the session store today"
        assert prompt_score(long_a, long_b) == 0.9
        assert prompt_score("fix bug", "fix bug now") != 0.9

    def test_jaccard_over_longer_words(self) -> None:
        assert prompt_score("Fix login bug", "fix the login bug") == pytest.approx(0.75)

    def test_empty_prompt_scores_zero(self) -> None:
        assert prompt_score("", "anything") == 0.0
        assert prompt_score("!!!", "anything") == 0.0

    def test_jaccard_empty_sets(self) -> None:
        assert jaccard(set(), {"a"}) == 0.0


class TestTimeScore:
    @pytest.mark.parametrize(
        ("hours", "expected"),
        [(0.0, 1.0), (0.5, 1.0), (0.6, 0.8), (6.0, 0.8), (12.0, 0.5), (48.0, 0.25), (73.0, 0.0)],
    )
    def test_steps(self, hours: float, expected: float) -> None:
        assert time_score(hours) == expected

    def test_distance_is_symmetric(self) -> None:
        assert distance_hours(0, 3_600_000) == distance_hours(3_600_000, 0) == 1.0


class TestSourceExtraction:
    def test_user_prompt_wins(self) -> None:
        adapted = make_adapted(user_prompt="Fix login", goal="goal")
        assert source_prompt(adapted) == "Fix login"

    def test_first_intent_then_goal(self) -> None:
        intent = AdaptedEvent(
            kind=EnumEventKind.INTENT,
            actor=ModelActor(type=EnumActorType.USER),
            payload={"title": "Reproduce login failure"},
        )
        assert source_prompt(make_adapted(goal="g", events=[intent])) == "Reproduce login failure"
        assert source_prompt(make_adapted(goal="Fix login bug")) == "Fix login bug"

    def test_epoch_prefers_started_at(self) -> None:
        event = AdaptedEvent(
            kind=EnumEventKind.DECISION,
            ts="2026-02-15T09:00:00Z",
            actor=ModelActor(type=EnumActorType.AGENT),
        )
        started = make_adapted(started_at="2026-02-15T10:00:00Z", events=[event])
        assert source_epoch_ms(started, 0) == to_epoch_ms("2026-02-15T10:00:00Z")
        from_events = make_adapted(events=[event])
        assert source_epoch_ms(from_events, 0) == to_epoch_ms("2026-02-15T09:00:00Z")
        assert source_epoch_ms(make_adapted(), 42) == 42


class TestFingerprintFromEvents:
    def test_intent_replaces_goal(self) -> None:
        events = [
            make_event(1, EnumEventKind.SESSION_START, "2026-02-15T10:00:00Z", {"goal": "g"}),
            make_event(2, EnumEventKind.INTENT, "2026-02-15T10:01:00Z", {"title": "Fix login"}),
            make_event(3, EnumEventKind.SESSION_END, "2026-02-15T11:00:00Z", {}),
        ]
        fingerprint = fingerprint_from_events("sess_1", events, "2026-02-15T12:00:00.000Z")
        assert fingerprint.prompt == "Fix login"
        assert fingerprint.started_at == "2026-02-15T10:00:00.000Z"
        assert fingerprint.best_timestamp == "2026-02-15T11:00:00.000Z"

    def test_user_prompt_is_kept_over_intent(self) -> None:
        events = [
            make_event(
                1,
                EnumEventKind.SESSION_START,
                "2026-02-15T10:00:00Z",
                {"goal": "g", "user_prompt": "Fix the login bug"},
            ),
            make_event(2, EnumEventKind.INTENT, "2026-02-15T10:01:00Z", {"title": "Other"}),
        ]
        fingerprint = fingerprint_from_events("sess_1", events, "2026-02-15T12:00:00.000Z")
        assert fingerprint.prompt == "Fix the login bug"
        assert fingerprint.best_timestamp == "2026-02-15T10:00:00.000Z"

    def test_empty_log_uses_mtime(self) -> None:
        fingerprint = fingerprint_from_events("sess_1", [], "2026-02-15T12:00:00.000Z")
        assert fingerprint.prompt is None
        assert fingerprint.best_timestamp == "2026-02-15T12:00:00.000Z"
