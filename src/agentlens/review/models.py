# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Reviewer-facing summary of a normalized session."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from agentlens.audit.enums import (
    EnumIntentStatus,
    EnumRiskLevel,
    EnumSessionOutcome,
    EnumVerificationCoverage,
)
from agentlens.audit.models import ModelSessionNormalized, ModelTokenUsageSummary
from agentlens.recommendations.models import ModelSuggestion

_FROZEN = ConfigDict(frozen=True, extra="forbid", from_attributes=True)


class ModelKeyDecision(BaseModel):
    model_config = _FROZEN

    summary: str
    rationale: str | None = None
    intent_id: str | None = None


class ModelHighRiskItem(BaseModel):
    model_config = _FROZEN

    intent_id: str | None = None
    level: EnumRiskLevel
    score: float
    reasons: list[str] = Field(default_factory=list)
    mitigations: list[str] = Field(default_factory=list)


class ModelHotspotSummary(BaseModel):
    model_config = _FROZEN

    file: str
    score: float


class ModelIntentSummary(BaseModel):
    model_config = _FROZEN

    intent_id: str
    title: str
    status: EnumIntentStatus
    files_touched: int = 0
    risks: list[EnumRiskLevel] = Field(default_factory=list)


class ModelVerificationSummary(BaseModel):
    """Counts by result.

    Coverage is NONE with no verifications, PARTIAL if any failed or is
    unknown, FULL otherwise.
    """

    model_config = _FROZEN

    passed: int = 0
    failed: int = 0
    unknown: int = 0
    coverage: EnumVerificationCoverage = EnumVerificationCoverage.NONE


class ModelReviewerView(BaseModel):
    model_config = _FROZEN

    goal: str
    outcome: EnumSessionOutcome
    key_decisions: list[ModelKeyDecision] = Field(default_factory=list)
    high_risk_items: list[ModelHighRiskItem] = Field(default_factory=list)
    hotspots: list[ModelHotspotSummary] = Field(default_factory=list)
    intent_summaries: list[ModelIntentSummary] = Field(default_factory=list)
    verification_summary: ModelVerificationSummary
    token_summary: ModelTokenUsageSummary | None = None
    recommended_actions: list[ModelSuggestion] = Field(default_factory=list)
    confidence_estimate: float = Field(ge=0.0, le=1.0)


class ModelAuditResult(BaseModel):
    model_config = _FROZEN

    normalized: ModelSessionNormalized
    reviewer: ModelReviewerView


__all__ = [
    "ModelAuditResult",
    "ModelHighRiskItem",
    "ModelHotspotSummary",
    "ModelIntentSummary",
    "ModelKeyDecision",
    "ModelReviewerView",
    "ModelVerificationSummary",
]
