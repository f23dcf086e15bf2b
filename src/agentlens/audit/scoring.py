# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Risk and hotspot scoring.

Scoring sits behind ProtocolRiskScorer so other heuristics can be swapped
in. A scorer only ever sees normalized artifacts (impacts, assumptions,
decisions, revisions, verifications); it never sees raw events.

DefaultRiskScorer
-----------------
One risk per intent impact plus one for the session total. Each applicable
factor adds its weight; the score is ``min(1, sum)`` rounded to 3 decimals.
Levels: high >= 0.6, medium >= 0.3, else low. An impact with no factors
yields no risk.

Hotspot score per touched file, clamped to [0, 1]::

    min(0.45, 0.15 * edits) + min(0.3, lines / 400)
        + 0.1 * decisions + 0.1 * assumptions + 0.2 * criticality hits

Decisions and unresolved assumptions are associated with a file through
their intent: they count for every file that intent's impact touched.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, TypeVar, runtime_checkable

from agentlens.audit.enums import (
    EnumBlastRadius,
    EnumRevisionType,
    EnumRiskFactor,
    EnumRiskLevel,
    EnumSessionOutcome,
)
from agentlens.audit.models import (
    ModelImpactArtifact,
    ModelNormalizedAssumption,
    ModelNormalizedDecision,
    ModelReviewHotspot,
    ModelRevisionArtifact,
    ModelRiskArtifact,
    ModelRiskFactorScore,
    ModelVerificationArtifact,
)

# =============================================================================
# Weights and thresholds
# =============================================================================

FACTOR_WEIGHTS: dict[EnumRiskFactor, float] = {
    EnumRiskFactor.PUBLIC_API_CHANGED: 0.25,
    EnumRiskFactor.SCHEMA_CHANGED: 0.25,
    EnumRiskFactor.DEPENDENCY_CHANGED: 0.15,
    EnumRiskFactor.BLAST_RADIUS_LARGE: 0.2,
    EnumRiskFactor.BLAST_RADIUS_MEDIUM: 0.1,
    EnumRiskFactor.HIGH_RISK_ASSUMPTION: 0.2,
    EnumRiskFactor.MEDIUM_RISK_ASSUMPTION: 0.1,
    EnumRiskFactor.UNKNOWN_ASSUMPTION: 0.05,
    EnumRiskFactor.VERIFICATION_MISSING: 0.2,
    EnumRiskFactor.VERIFICATION_FAILED: 0.25,
    EnumRiskFactor.VERIFICATION_PARTIAL: 0.1,
    EnumRiskFactor.REVISION_HIGH_CHURN: 0.1,
    EnumRiskFactor.REVISION_CREATE_DELETE: 0.05,
    EnumRiskFactor.DECISION_HARD_TO_REVERSE: 0.15,
    EnumRiskFactor.LARGE_CHANGE_VOLUME: 0.1,
    EnumRiskFactor.FAILED_OR_PARTIAL_OUTCOME: 0.15,
}

MITIGATIONS: dict[EnumRiskFactor, str] = {
    EnumRiskFactor.PUBLIC_API_CHANGED: "Review API contract changes and notify consumers",
    EnumRiskFactor.SCHEMA_CHANGED: "Review migrations and confirm a rollback path",
    EnumRiskFactor.DEPENDENCY_CHANGED: "Audit new or upgraded dependencies",
    EnumRiskFactor.BLAST_RADIUS_LARGE: "Split the review by module and check cross-module effects",
    EnumRiskFactor.BLAST_RADIUS_MEDIUM: "Review touched modules together",
    EnumRiskFactor.HIGH_RISK_ASSUMPTION: "Validate high-risk assumptions before merging",
    EnumRiskFactor.MEDIUM_RISK_ASSUMPTION: "Confirm medium-risk assumptions with the author",
    EnumRiskFactor.UNKNOWN_ASSUMPTION: "Record whether open assumptions were validated",
    EnumRiskFactor.VERIFICATION_MISSING: "Run tests covering the changed files",
    EnumRiskFactor.VERIFICATION_FAILED: "Fix failing verification and re-run",
    EnumRiskFactor.VERIFICATION_PARTIAL: "Complete verification with a conclusive result",
    EnumRiskFactor.REVISION_HIGH_CHURN: "Inspect the final diff of frequently edited files",
    EnumRiskFactor.REVISION_CREATE_DELETE: "Confirm removed files are not referenced",
    EnumRiskFactor.DECISION_HARD_TO_REVERSE: "Double-check hard-to-reverse decisions",
    EnumRiskFactor.LARGE_CHANGE_VOLUME: "Review large changes in smaller chunks",
    EnumRiskFactor.FAILED_OR_PARTIAL_OUTCOME: "Confirm remaining work before accepting the session",
}

HIGH_RISK_THRESHOLD = 0.6
MEDIUM_RISK_THRESHOLD = 0.3
LARGE_CHANGE_VOLUME_LINES = 300

_CHURN_REVISIONS = frozenset(
    {EnumRevisionType.REPEAT_FILE_EDITS, EnumRevisionType.LARGE_CHANGE_AFTER_RECENT_CHANGE}
)


def risk_level(score: float) -> EnumRiskLevel:
    if score >= HIGH_RISK_THRESHOLD:
        return EnumRiskLevel.HIGH
    if score >= MEDIUM_RISK_THRESHOLD:
        return EnumRiskLevel.MEDIUM
    return EnumRiskLevel.LOW


# =============================================================================
# Protocol
# =============================================================================


@runtime_checkable
class ProtocolRiskScorer(Protocol):
    """Pluggable risk and hotspot scoring over normalized artifacts."""

    def score_risks(
        self,
        outcome: EnumSessionOutcome,
        impacts: Sequence[ModelImpactArtifact],
        assumptions: Sequence[ModelNormalizedAssumption],
        decisions: Sequence[ModelNormalizedDecision],
        revisions: Sequence[ModelRevisionArtifact],
        verifications: Sequence[ModelVerificationArtifact],
    ) -> list[ModelRiskArtifact]: ...

    def rank_hotspots(
        self,
        impacts: Sequence[ModelImpactArtifact],
        assumptions: Sequence[ModelNormalizedAssumption],
        decisions: Sequence[ModelNormalizedDecision],
        limit: int,
    ) -> list[ModelReviewHotspot]: ...


# =============================================================================
# Default implementation
# =============================================================================


TScoped = TypeVar(
    "TScoped",
    ModelNormalizedAssumption,
    ModelNormalizedDecision,
    ModelRevisionArtifact,
    ModelVerificationArtifact,
)


def _scoped(items: Sequence[TScoped], intent_id: str | None) -> list[TScoped]:
    """Items of one intent; everything for the session total (None)."""
    if intent_id is None:
        return list(items)
    return [item for item in items if item.intent_id == intent_id]


class DefaultRiskScorer:
    """Rule-based scorer (weights in FACTOR_WEIGHTS)."""

    def score_risks(
        self,
        outcome: EnumSessionOutcome,
        impacts: Sequence[ModelImpactArtifact],
        assumptions: Sequence[ModelNormalizedAssumption],
        decisions: Sequence[ModelNormalizedDecision],
        revisions: Sequence[ModelRevisionArtifact],
        verifications: Sequence[ModelVerificationArtifact],
    ) -> list[ModelRiskArtifact]:
        risks: list[ModelRiskArtifact] = []
        for impact in impacts:
            factors = self._impact_factors(impact)
            factors += self._assumption_factors(_scoped(assumptions, impact.intent_id))
            if impact.files_touched:
                factors += self._verification_factors(_scoped(verifications, impact.intent_id))
            factors += self._revision_factors(_scoped(revisions, impact.intent_id))
            if any(d.reversibility == "hard" for d in _scoped(decisions, impact.intent_id)):
                factors.append(
                    self._factor(
                        EnumRiskFactor.DECISION_HARD_TO_REVERSE,
                        "A hard-to-reverse decision was made",
                    )
                )
            if impact.intent_id is None and outcome in (
                EnumSessionOutcome.FAILED,
                EnumSessionOutcome.PARTIAL,
            ):
                factors.append(
                    self._factor(
                        EnumRiskFactor.FAILED_OR_PARTIAL_OUTCOME,
                        f"Session ended with outcome {outcome.value}",
                    )
                )
            if not factors:
                continue

            score = round(min(1.0, sum(f.score for f in factors)), 3)
            risks.append(
                ModelRiskArtifact(
                    id=f"risk_{impact.intent_id}" if impact.intent_id else "risk_session",
                    intent_id=impact.intent_id,
                    level=risk_level(score),
                    score=score,
                    factors=factors,
                    reasons=[f.reason for f in factors],
                    mitigations=list(dict.fromkeys(MITIGATIONS[f.key] for f in factors)),
                )
            )
        return risks

    def rank_hotspots(
        self,
        impacts: Sequence[ModelImpactArtifact],
        assumptions: Sequence[ModelNormalizedAssumption],
        decisions: Sequence[ModelNormalizedDecision],
        limit: int,
    ) -> list[ModelReviewHotspot]:
        session = next((i for i in impacts if i.intent_id is None), None)
        if session is None:
            return []

        intent_files = {
            impact.intent_id: set(impact.files_touched)
            for impact in impacts
            if impact.intent_id is not None
        }

        def linked(
            items: Sequence[ModelNormalizedAssumption | ModelNormalizedDecision], file: str
        ) -> int:
            return sum(1 for item in items if file in intent_files.get(item.intent_id, set()))

        unresolved = [a for a in assumptions if a.is_unresolved]
        hotspots: list[ModelReviewHotspot] = []
        for stat in session.file_stats:
            n_decisions = linked(decisions, stat.file)
            n_assumptions = linked(unresolved, stat.file)
            raw = (
                min(0.45, 0.15 * stat.edit_count)
                + min(0.3, max(stat.lines_changed, 0.0) / 400)
                + 0.1 * n_decisions
                + 0.1 * n_assumptions
                + 0.2 * len(stat.criticality)
            )
            hotspots.append(
                ModelReviewHotspot(
                    id=f"hotspot_{stat.file}",
                    file=stat.file,
                    module=stat.module,
                    score=round(min(1.0, raw), 3),
                    edit_count=stat.edit_count,
                    lines_changed=stat.lines_changed,
                    associated_decisions=n_decisions,
                    associated_assumptions=n_assumptions,
                    criticality_hits=stat.criticality,
                )
            )

        hotspots.sort(key=lambda h: (-h.score, h.file))
        return hotspots[:limit]

    # -------------------------------------------------------------------------
    # Factor builders
    # -------------------------------------------------------------------------

    @staticmethod
    def _factor(key: EnumRiskFactor, reason: str) -> ModelRiskFactorScore:
        return ModelRiskFactorScore(key=key, score=FACTOR_WEIGHTS[key], reason=reason)

    def _impact_factors(self, impact: ModelImpactArtifact) -> list[ModelRiskFactorScore]:
        factors: list[ModelRiskFactorScore] = []
        if impact.public_api_changed:
            factors.append(
                self._factor(EnumRiskFactor.PUBLIC_API_CHANGED, "Public API surface changed")
            )
        if impact.schema_changed:
            factors.append(
                self._factor(EnumRiskFactor.SCHEMA_CHANGED, "Schema or migration files changed")
            )
        if impact.dependency_added:
            factors.append(
                self._factor(EnumRiskFactor.DEPENDENCY_CHANGED, "Dependency manifest changed")
            )
        if impact.blast_radius == EnumBlastRadius.LARGE:
            factors.append(
                self._factor(
                    EnumRiskFactor.BLAST_RADIUS_LARGE,
                    f"Large blast radius ({len(impact.files_touched)} files)",
                )
            )
        elif impact.blast_radius == EnumBlastRadius.MEDIUM:
            factors.append(
                self._factor(
                    EnumRiskFactor.BLAST_RADIUS_MEDIUM,
                    f"Medium blast radius ({len(impact.files_touched)} files)",
                )
            )
        if impact.lines_changed >= LARGE_CHANGE_VOLUME_LINES:
            factors.append(
                self._factor(
                    EnumRiskFactor.LARGE_CHANGE_VOLUME,
                    f"{impact.lines_changed:g} lines changed",
                )
            )
        return factors

    def _assumption_factors(
        self, assumptions: Sequence[ModelNormalizedAssumption]
    ) -> list[ModelRiskFactorScore]:
        unresolved = [a for a in assumptions if a.is_unresolved]
        if any(a.risk == EnumRiskLevel.HIGH for a in unresolved):
            return [
                self._factor(
                    EnumRiskFactor.HIGH_RISK_ASSUMPTION, "High-risk assumption not validated"
                )
            ]
        if any(a.risk == EnumRiskLevel.MEDIUM for a in unresolved):
            return [
                self._factor(
                    EnumRiskFactor.MEDIUM_RISK_ASSUMPTION, "Medium-risk assumption not validated"
                )
            ]
        if any(a.validated == "unknown" for a in unresolved):
            return [
                self._factor(EnumRiskFactor.UNKNOWN_ASSUMPTION, "Assumption validation unknown")
            ]
        return []

    def _verification_factors(
        self, verifications: Sequence[ModelVerificationArtifact]
    ) -> list[ModelRiskFactorScore]:
        if not verifications:
            return [
                self._factor(EnumRiskFactor.VERIFICATION_MISSING, "Changes were not verified")
            ]
        if any(v.result == "fail" for v in verifications):
            return [self._factor(EnumRiskFactor.VERIFICATION_FAILED, "Verification failed")]
        if not any(v.result == "pass" for v in verifications):
            return [
                self._factor(
                    EnumRiskFactor.VERIFICATION_PARTIAL, "Verification result inconclusive"
                )
            ]
        return []

    def _revision_factors(
        self, revisions: Sequence[ModelRevisionArtifact]
    ) -> list[ModelRiskFactorScore]:
        factors: list[ModelRiskFactorScore] = []
        churn = [r for r in revisions if r.type in _CHURN_REVISIONS]
        if churn:
            files = sorted({r.file for r in churn if r.file})
            factors.append(
                self._factor(
                    EnumRiskFactor.REVISION_HIGH_CHURN,
                    f"High edit churn on {', '.join(files) or 'files'}",
                )
            )
        if any(r.type == EnumRevisionType.CREATE_THEN_DELETE for r in revisions):
            factors.append(
                self._factor(EnumRiskFactor.REVISION_CREATE_DELETE, "Files created then deleted")
            )
        return factors


__all__ = [
    "FACTOR_WEIGHTS",
    "MITIGATIONS",
    "DefaultRiskScorer",
    "ProtocolRiskScorer",
    "risk_level",
]
