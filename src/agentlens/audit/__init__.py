# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Audit normalization: canonical events in, reviewable artifacts out."""

from agentlens.audit.config import ConfigAuditPipeline
from agentlens.audit.enums import (
    EnumBlastRadius,
    EnumCriticality,
    EnumIntentStatus,
    EnumRevisionType,
    EnumRiskFactor,
    EnumRiskLevel,
    EnumSessionOutcome,
    EnumVerificationCoverage,
)
from agentlens.audit.models import (
    ModelImpactArtifact,
    ModelNormalizedAssumption,
    ModelNormalizedDecision,
    ModelNormalizedIntent,
    ModelReviewHotspot,
    ModelRevisionArtifact,
    ModelRiskArtifact,
    ModelSessionMetadata,
    ModelSessionNormalized,
    ModelTokenUsageSummary,
    ModelVerificationArtifact,
)
from agentlens.audit.pipeline import normalize_session
from agentlens.audit.scoring import DefaultRiskScorer, ProtocolRiskScorer

__all__ = [
    "ConfigAuditPipeline",
    "DefaultRiskScorer",
    "EnumBlastRadius",
    "EnumCriticality",
    "EnumIntentStatus",
    "EnumRevisionType",
    "EnumRiskFactor",
    "EnumRiskLevel",
    "EnumSessionOutcome",
    "EnumVerificationCoverage",
    "ModelImpactArtifact",
    "ModelNormalizedAssumption",
    "ModelNormalizedDecision",
    "ModelNormalizedIntent",
    "ModelReviewHotspot",
    "ModelRevisionArtifact",
    "ModelRiskArtifact",
    "ModelSessionMetadata",
    "ModelSessionNormalized",
    "ModelTokenUsageSummary",
    "ModelVerificationArtifact",
    "ProtocolRiskScorer",
    "normalize_session",
]
