# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Closed tags used by the canonical event envelope.

Example:
    >>> EnumEventKind("file_op")
    <EnumEventKind.FILE_OP: 'file_op'>
    >>> EnumActorType.AGENT == "agent"
    True
"""

from __future__ import annotations

from enum import StrEnum


class EnumEventKind(StrEnum):
    """Kind of a canonical event.

    The set is closed: records carrying any other kind fail validation.
    """

    SESSION_START = "session_start"
    SESSION_END = "session_end"
    INTENT = "intent"
    DECISION = "decision"
    ASSUMPTION = "assumption"
    VERIFICATION = "verification"
    FILE_OP = "file_op"
    TOOL_CALL = "tool_call"
    ARTIFACT_CREATED = "artifact_created"
    INTENT_TRANSITION = "intent_transition"
    RISK_SIGNAL = "risk_signal"
    VERIFICATION_RUN = "verification_run"
    DIFF_SUMMARY = "diff_summary"
    DECISION_LINK = "decision_link"
    ASSUMPTION_LIFECYCLE = "assumption_lifecycle"
    BLOCKER = "blocker"
    TOKEN_USAGE_CHECKPOINT = "token_usage_checkpoint"
    SESSION_QUALITY = "session_quality"
    REPLAY_BOOKMARK = "replay_bookmark"
    HOTSPOT = "hotspot"


class EnumActorType(StrEnum):
    """Who produced an event."""

    AGENT = "agent"
    USER = "user"
    SYSTEM = "system"
    TOOL = "tool"


class EnumVisibility(StrEnum):
    """Audience an event is intended for."""

    RAW = "raw"
    REVIEW = "review"
    DEBUG = "debug"


__all__ = [
    "EnumActorType",
    "EnumEventKind",
    "EnumVisibility",
]
