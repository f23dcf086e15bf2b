# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""End-to-end tests for normalize_session."""

from __future__ import annotations

import random
from collections.abc import Sequence

import pytest
from session_builder import SessionEventsBuilder

from agentlens.audit.config import ConfigAuditPipeline
from agentlens.audit.enums import (
    EnumIntentStatus,
    EnumRevisionType,
    EnumRiskLevel,
    EnumSessionOutcome,
)
from agentlens.audit.impacts import SESSION_IMPACT_ID
from agentlens.audit.models import (
    ModelImpactArtifact,
    ModelNormalizedAssumption,
    ModelNormalizedDecision,
    ModelReviewHotspot,
    ModelRevisionArtifact,
    ModelRiskArtifact,
    ModelVerificationArtifact,
)
from agentlens.audit.pipeline import normalize_session

pytestmark = pytest.mark.unit


def login_fix_session(builder: SessionEventsBuilder) -> SessionEventsBuilder:
    builder.start("Fix login bug", repo="acme/api", branch="fix/login")
    builder.intent("intent_repro", "Reproduce failure")
    builder.file_op(
        "tests/test_login.py", action="create", added=30, intent_id="intent_repro"
    )
    builder.assumption("Sessions expire after an hour", risk="high", intent_id="intent_repro")
    builder.intent("intent_fix", "Fix token refresh")
    builder.decision("Refresh tokens server-side", reversibility="hard", intent_id="intent_fix")
    for _ in range(4):
        builder.file_op("src/api/users.ts", added=5, removed=1, intent_id="intent_fix")
    builder.verification("pass", intent_id="intent_fix")
    builder.end("completed")
    return builder


class RecordingScorer:
    """Scorer double that records its inputs."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def score_risks(
        self,
        outcome: EnumSessionOutcome,
        impacts: Sequence[ModelImpactArtifact],
        assumptions: Sequence[ModelNormalizedAssumption],
        decisions: Sequence[ModelNormalizedDecision],
        revisions: Sequence[ModelRevisionArtifact],
        verifications: Sequence[ModelVerificationArtifact],
    ) -> list[ModelRiskArtifact]:
        self.calls.append("score_risks")
        return []

    def rank_hotspots(
        self,
        impacts: Sequence[ModelImpactArtifact],
        assumptions: Sequence[ModelNormalizedAssumption],
        decisions: Sequence[ModelNormalizedDecision],
        limit: int,
    ) -> list[ModelReviewHotspot]:
        self.calls.append(f"rank_hotspots:{limit}")
        return []


class TestNormalizeSession:
    def test_metadata(self, builder: SessionEventsBuilder) -> None:
        normalized = normalize_session(login_fix_session(builder).events)
        metadata = normalized.metadata

        assert metadata.session_id == "sess_audit"
        assert metadata.goal == "Fix login bug"
        assert metadata.repo == "acme/api"
        assert metadata.branch == "fix/login"
        assert metadata.outcome == EnumSessionOutcome.COMPLETED
        assert metadata.started_at == builder.events[0].ts
        assert metadata.ended_at == builder.events[-1].ts
        assert metadata.token_usage is None

    def test_artifacts(self, builder: SessionEventsBuilder) -> None:
        normalized = normalize_session(login_fix_session(builder).events)

        assert [(i.id, i.status) for i in normalized.intents] == [
            ("intent_repro", EnumIntentStatus.ABANDONED),
            ("intent_fix", EnumIntentStatus.COMPLETED),
        ]
        assert [d.intent_id for d in normalized.decisions] == ["intent_fix"]
        assert [a.intent_id for a in normalized.assumptions] == ["intent_repro"]
        assert [v.intent_id for v in normalized.verifications] == ["intent_fix"]
        assert {r.type for r in normalized.revisions} == {
            EnumRevisionType.REPEAT_FILE_EDITS,
            EnumRevisionType.INTENT_SUPERSEDED,
        }
        assert [i.id for i in normalized.impacts] == [
            "impact_intent_repro",
            "impact_intent_fix",
            SESSION_IMPACT_ID,
        ]
        session_impact = normalized.impact_for(None)
        assert session_impact is not None
        assert session_impact.files_touched == ["tests/test_login.py", "src/api/users.ts"]

    def test_insights(self, builder: SessionEventsBuilder) -> None:
        normalized = normalize_session(login_fix_session(builder).events)

        risks = {r.id: r for r in normalized.risks}
        assert set(risks) == {"risk_intent_repro", "risk_intent_fix", "risk_session"}
        # high assumption 0.2 + verification missing 0.2
        assert risks["risk_intent_repro"].level == EnumRiskLevel.MEDIUM
        assert normalized.hotspots[0].file == "src/api/users.ts"
        assert normalized.hotspots[0].associated_decisions == 1

    def test_insights_disabled(self, builder: SessionEventsBuilder) -> None:
        config = ConfigAuditPipeline(enable_insights=False)
        normalized = normalize_session(login_fix_session(builder).events, config)
        assert normalized.assumptions == []
        assert normalized.risks == []
        assert normalized.hotspots == []
        assert normalized.revisions != []

    def test_rebuild_is_deterministic(self, builder: SessionEventsBuilder) -> None:
        events = login_fix_session(builder).events
        shuffled = list(events)
        random.Random(7).shuffle(shuffled)
        assert normalize_session(events) == normalize_session(shuffled)

    def test_empty_log(self) -> None:
        normalized = normalize_session([])
        assert normalized.metadata.session_id == "unknown"
        assert normalized.metadata.goal == "Unknown goal"
        assert normalized.metadata.outcome == EnumSessionOutcome.UNKNOWN
        assert normalized.intents == []
        assert [i.id for i in normalized.impacts] == [SESSION_IMPACT_ID]

    def test_unrecognized_outcome(self, builder: SessionEventsBuilder) -> None:
        builder.start()
        builder.end("exploded")
        assert normalize_session(builder.events).metadata.outcome == EnumSessionOutcome.UNKNOWN

    def test_custom_scorer(self, builder: SessionEventsBuilder) -> None:
        scorer = RecordingScorer()
        config = ConfigAuditPipeline(hotspot_limit=3)
        normalized = normalize_session(login_fix_session(builder).events, config, scorer)
        assert scorer.calls == ["score_risks", "rank_hotspots:3"]
        assert normalized.risks == []

    def test_hotspot_limit(self, builder: SessionEventsBuilder) -> None:
        login_fix_session(builder)
        config = ConfigAuditPipeline(hotspot_limit=1)
        assert len(normalize_session(builder.events, config).hotspots) == 1
