# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Enums for audit artifacts."""

from __future__ import annotations

from enum import StrEnum


class EnumSessionOutcome(StrEnum):
    """Outcome reported by the session_end event; UNKNOWN when absent."""

    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"
    ABORTED = "aborted"
    UNKNOWN = "unknown"


class EnumIntentStatus(StrEnum):
    """Status of an intent segment.

    COMPLETED: a verification in the segment passed.
    ABANDONED: a later intent superseded it after it did work, with no pass.
    PARTIAL: everything else.
    """

    COMPLETED = "completed"
    PARTIAL = "partial"
    ABANDONED = "abandoned"


class EnumBlastRadius(StrEnum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class EnumRiskLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EnumRevisionType(StrEnum):
    """Risky editing patterns detected across file_op events."""

    REPEAT_FILE_EDITS = "repeat_file_edits"
    CREATE_THEN_DELETE = "create_then_delete"
    LARGE_CHANGE_AFTER_RECENT_CHANGE = "large_change_after_recent_change"
    INTENT_SUPERSEDED = "intent_superseded"


class EnumRiskFactor(StrEnum):
    """Contributors to a risk score; each maps to one mitigation."""

    PUBLIC_API_CHANGED = "public_api_changed"
    SCHEMA_CHANGED = "schema_changed"
    DEPENDENCY_CHANGED = "dependency_changed"
    BLAST_RADIUS_LARGE = "blast_radius_large"
    BLAST_RADIUS_MEDIUM = "blast_radius_medium"
    HIGH_RISK_ASSUMPTION = "high_risk_assumption"
    MEDIUM_RISK_ASSUMPTION = "medium_risk_assumption"
    UNKNOWN_ASSUMPTION = "unknown_assumption"
    VERIFICATION_MISSING = "verification_missing"
    VERIFICATION_FAILED = "verification_failed"
    VERIFICATION_PARTIAL = "verification_partial"
    REVISION_HIGH_CHURN = "revision_high_churn"
    REVISION_CREATE_DELETE = "revision_create_delete"
    DECISION_HARD_TO_REVERSE = "decision_hard_to_reverse"
    LARGE_CHANGE_VOLUME = "large_change_volume"
    FAILED_OR_PARTIAL_OUTCOME = "failed_or_partial_outcome"


class EnumCriticality(StrEnum):
    """Path-based signals that a touched file is sensitive."""

    PUBLIC_API = "public_api"
    SCHEMA = "schema"
    DEPENDENCY = "dependency"


class EnumVerificationCoverage(StrEnum):
    FULL = "full"
    PARTIAL = "partial"
    NONE = "none"


__all__ = [
    "EnumBlastRadius",
    "EnumCriticality",
    "EnumIntentStatus",
    "EnumRevisionType",
    "EnumRiskFactor",
    "EnumRiskLevel",
    "EnumSessionOutcome",
    "EnumVerificationCoverage",
]
