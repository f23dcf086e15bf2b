# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Reviewer view construction and the one-call audit entry point."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from agentlens.audit.config import ConfigAuditPipeline
from agentlens.audit.enums import EnumRiskLevel, EnumVerificationCoverage
from agentlens.audit.models import ModelSessionNormalized, ModelVerificationArtifact
from agentlens.audit.pipeline import normalize_session
from agentlens.audit.scoring import ProtocolRiskScorer
from agentlens.events.models import CanonicalEvent
from agentlens.recommendations.engine import generate_suggestions
from agentlens.review.models import (
    ModelAuditResult,
    ModelHighRiskItem,
    ModelHotspotSummary,
    ModelIntentSummary,
    ModelKeyDecision,
    ModelReviewerView,
    ModelVerificationSummary,
)

KEY_DECISION_LIMIT = 5
HOTSPOT_VIEW_LIMIT = 8
FAILED_VERIFICATION_PENALTY = 0.1

COVERAGE_CONFIDENCE: dict[EnumVerificationCoverage, float] = {
    EnumVerificationCoverage.FULL: 0.8,
    EnumVerificationCoverage.PARTIAL: 0.6,
    EnumVerificationCoverage.NONE: 0.4,
}


def summarize_verifications(
    verifications: Sequence[ModelVerificationArtifact],
) -> ModelVerificationSummary:
    passed = sum(1 for v in verifications if v.result == "pass")
    failed = sum(1 for v in verifications if v.result == "fail")
    unknown = sum(1 for v in verifications if v.result == "unknown")
    if not verifications:
        coverage = EnumVerificationCoverage.NONE
    elif failed or unknown:
        coverage = EnumVerificationCoverage.PARTIAL
    else:
        coverage = EnumVerificationCoverage.FULL
    return ModelVerificationSummary(
        passed=passed, failed=failed, unknown=unknown, coverage=coverage
    )


def estimate_confidence(summary: ModelVerificationSummary) -> float:
    confidence = COVERAGE_CONFIDENCE[summary.coverage]
    if summary.failed:
        confidence -= FAILED_VERIFICATION_PENALTY
    return round(min(1.0, max(0.0, confidence)), 2)


def build_reviewer_view(
    normalized: ModelSessionNormalized,
    config: ConfigAuditPipeline | None = None,
) -> ModelReviewerView:
    """Condense a normalized session into what a reviewer looks at first.

    With insights disabled, risk, hotspot and recommendation sections are
    empty.
    """
    cfg = config or ConfigAuditPipeline()
    insights = cfg.enable_insights
    verification = summarize_verifications(normalized.verifications)

    intent_summaries = []
    for intent in normalized.intents:
        impact = normalized.impact_for(intent.id)
        intent_summaries.append(
            ModelIntentSummary(
                intent_id=intent.id,
                title=intent.title,
                status=intent.status,
                files_touched=len(impact.files_touched) if impact else 0,
                risks=[r.level for r in normalized.risks if r.intent_id == intent.id]
                if insights
                else [],
            )
        )

    high_risks = sorted(
        (r for r in normalized.risks if r.level == EnumRiskLevel.HIGH),
        key=lambda r: r.score,
        reverse=True,
    )

    return ModelReviewerView(
        goal=normalized.metadata.goal,
        outcome=normalized.metadata.outcome,
        key_decisions=[
            ModelKeyDecision(summary=d.summary, rationale=d.rationale, intent_id=d.intent_id)
            for d in normalized.decisions[:KEY_DECISION_LIMIT]
        ],
        high_risk_items=[
            ModelHighRiskItem(
                intent_id=r.intent_id,
                level=r.level,
                score=r.score,
                reasons=r.reasons,
                mitigations=r.mitigations,
            )
            for r in high_risks
        ]
        if insights
        else [],
        hotspots=[
            ModelHotspotSummary(file=h.file, score=h.score)
            for h in normalized.hotspots[:HOTSPOT_VIEW_LIMIT]
        ]
        if insights
        else [],
        intent_summaries=intent_summaries,
        verification_summary=verification,
        token_summary=normalized.metadata.token_usage,
        recommended_actions=generate_suggestions(
            normalized.risks,
            normalized.hotspots,
            normalized.assumptions,
            normalized.impacts,
        )
        if insights
        else [],
        confidence_estimate=estimate_confidence(verification),
    )


def run_audit(
    events: Iterable[CanonicalEvent],
    config: ConfigAuditPipeline | None = None,
    scorer: ProtocolRiskScorer | None = None,
) -> ModelAuditResult:
    """Normalize ``events`` and build the reviewer view in one pass."""
    cfg = config or ConfigAuditPipeline()
    normalized = normalize_session(events, cfg, scorer)
    return ModelAuditResult(normalized=normalized, reviewer=build_reviewer_view(normalized, cfg))


__all__ = [
    "build_reviewer_view",
    "estimate_confidence",
    "run_audit",
    "summarize_verifications",
]
