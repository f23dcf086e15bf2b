# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Reviewer view over a normalized session."""

from agentlens.review.models import (
    ModelAuditResult,
    ModelHighRiskItem,
    ModelHotspotSummary,
    ModelIntentSummary,
    ModelKeyDecision,
    ModelReviewerView,
    ModelVerificationSummary,
)
from agentlens.review.view import build_reviewer_view, run_audit

__all__ = [
    "ModelAuditResult",
    "ModelHighRiskItem",
    "ModelHotspotSummary",
    "ModelIntentSummary",
    "ModelKeyDecision",
    "ModelReviewerView",
    "ModelVerificationSummary",
    "build_reviewer_view",
    "run_audit",
]
