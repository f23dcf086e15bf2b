# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Audit artifact models.

Everything here is a frozen projection of a canonical event log. A
ModelSessionNormalized is built from scratch on every run and never updated
in place; rebuilding from the same log yields an equal value.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from agentlens.audit.enums import (
    EnumBlastRadius,
    EnumCriticality,
    EnumIntentStatus,
    EnumRevisionType,
    EnumRiskFactor,
    EnumRiskLevel,
    EnumSessionOutcome,
)
from agentlens.events.models import EVENT_SCHEMA_VERSION, CanonicalEvent

_FROZEN = ConfigDict(frozen=True, extra="forbid", from_attributes=True)


# ---------------------------------------------------------------------------
# Token usage
# ---------------------------------------------------------------------------


class ModelCategoryTokens(BaseModel):
    model_config = _FROZEN

    category: str
    total_tokens: float


class ModelIntentTokens(BaseModel):
    model_config = _FROZEN

    intent_id: str | None = None
    total_tokens: float


class ModelTokenUsageSummary(BaseModel):
    """Token totals, largest bucket first in both breakdowns."""

    model_config = _FROZEN

    prompt_tokens: float = 0
    completion_tokens: float = 0
    total_tokens: float = 0
    estimated_cost_usd: float | None = None
    by_category: list[ModelCategoryTokens] = Field(default_factory=list)
    by_intent: list[ModelIntentTokens] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Projections
# ---------------------------------------------------------------------------


class ModelSessionMetadata(BaseModel):
    model_config = _FROZEN

    session_id: str
    goal: str
    started_at: str | None = None
    ended_at: str | None = None
    outcome: EnumSessionOutcome = EnumSessionOutcome.UNKNOWN
    repo: str | None = None
    branch: str | None = None
    token_usage: ModelTokenUsageSummary | None = None
    schema_version: int = EVENT_SCHEMA_VERSION


class ModelNormalizedIntent(BaseModel):
    model_config = _FROZEN

    id: str
    title: str
    description: str | None = None
    priority: float | None = None
    start_seq: int
    end_seq: int
    status: EnumIntentStatus
    event_ids: list[str] = Field(default_factory=list)


class ModelNormalizedDecision(BaseModel):
    model_config = _FROZEN

    event_id: str
    intent_id: str | None = None
    summary: str
    rationale: str | None = None
    options: list[str] | None = None
    chosen_option: str | None = None
    reversibility: Literal["easy", "medium", "hard"] | None = None
    ts: str


class ModelNormalizedAssumption(BaseModel):
    model_config = _FROZEN

    event_id: str
    intent_id: str | None = None
    statement: str
    validated: bool | Literal["unknown"] = "unknown"
    risk: EnumRiskLevel | None = None
    ts: str

    @property
    def is_unresolved(self) -> bool:
        return self.validated is not True


class ModelVerificationArtifact(BaseModel):
    model_config = _FROZEN

    event_id: str
    intent_id: str | None = None
    type: Literal["test", "lint", "typecheck", "manual"] = "manual"
    result: Literal["pass", "fail", "unknown"] = "unknown"
    details: str | None = None
    ts: str


# ---------------------------------------------------------------------------
# Derived artifacts
# ---------------------------------------------------------------------------


class ModelRevisionArtifact(BaseModel):
    model_config = _FROZEN

    id: str
    intent_id: str | None = None
    type: EnumRevisionType
    file: str | None = None
    related_event_ids: list[str] = Field(default_factory=list)
    explanation: str
    confidence: float = Field(ge=0.0, le=1.0)


class ModelFileStat(BaseModel):
    """Per-file change statistics inside one impact."""

    model_config = _FROZEN

    file: str
    module: str
    edit_count: int = Field(ge=0)
    lines_changed: float = 0
    criticality: list[EnumCriticality] = Field(default_factory=list)


class ModelImpactArtifact(BaseModel):
    """Touched files and blast radius, per intent or for the whole session.

    ``intent_id`` is None for the session total (id ``impact_session_total``).
    """

    model_config = _FROZEN

    id: str
    intent_id: str | None = None
    files_touched: list[str] = Field(default_factory=list)
    modules_affected: list[str] = Field(default_factory=list)
    public_api_changed: bool = False
    dependency_added: bool = False
    schema_changed: bool = False
    lines_added: float = 0
    lines_removed: float = 0
    blast_radius: EnumBlastRadius = EnumBlastRadius.SMALL
    file_stats: list[ModelFileStat] = Field(default_factory=list)

    @property
    def lines_changed(self) -> float:
        return self.lines_added + self.lines_removed


class ModelRiskFactorScore(BaseModel):
    model_config = _FROZEN

    key: EnumRiskFactor
    score: float
    reason: str


class ModelRiskArtifact(BaseModel):
    model_config = _FROZEN

    id: str
    intent_id: str | None = None
    level: EnumRiskLevel
    score: float = Field(ge=0.0, le=1.0)
    factors: list[ModelRiskFactorScore] = Field(default_factory=list)
    reasons: list[str] = Field(default_factory=list)
    mitigations: list[str] = Field(default_factory=list)

    def has_factor(self, *keys: EnumRiskFactor) -> bool:
        return any(factor.key in keys for factor in self.factors)


class ModelReviewHotspot(BaseModel):
    model_config = _FROZEN

    id: str
    file: str
    module: str | None = None
    score: float = Field(ge=0.0, le=1.0)
    edit_count: int = 0
    lines_changed: float = 0
    associated_decisions: int = 0
    associated_assumptions: int = 0
    criticality_hits: list[EnumCriticality] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------


class ModelSessionNormalized(BaseModel):
    """Full audit projection of one session log."""

    model_config = _FROZEN

    metadata: ModelSessionMetadata
    intents: list[ModelNormalizedIntent] = Field(default_factory=list)
    decisions: list[ModelNormalizedDecision] = Field(default_factory=list)
    assumptions: list[ModelNormalizedAssumption] = Field(default_factory=list)
    verifications: list[ModelVerificationArtifact] = Field(default_factory=list)
    revisions: list[ModelRevisionArtifact] = Field(default_factory=list)
    impacts: list[ModelImpactArtifact] = Field(default_factory=list)
    risks: list[ModelRiskArtifact] = Field(default_factory=list)
    hotspots: list[ModelReviewHotspot] = Field(default_factory=list)
    raw_events: list[CanonicalEvent] = Field(default_factory=list)

    def impact_for(self, intent_id: str | None) -> ModelImpactArtifact | None:
        return next((i for i in self.impacts if i.intent_id == intent_id), None)


__all__ = [
    "ModelCategoryTokens",
    "ModelFileStat",
    "ModelImpactArtifact",
    "ModelIntentTokens",
    "ModelNormalizedAssumption",
    "ModelNormalizedDecision",
    "ModelNormalizedIntent",
    "ModelReviewHotspot",
    "ModelRevisionArtifact",
    "ModelRiskArtifact",
    "ModelRiskFactorScore",
    "ModelSessionMetadata",
    "ModelSessionNormalized",
    "ModelTokenUsageSummary",
    "ModelVerificationArtifact",
]
