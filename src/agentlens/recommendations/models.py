# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Suggestion models produced by the recommendation engine."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from agentlens.audit.enums import EnumRiskLevel


class EnumSuggestionAction(StrEnum):
    OPEN_FILE = "open_file"
    OPEN_DIFF = "open_diff"
    REPLAY_FILE = "replay_file"
    PROMPT_AGENT = "prompt_agent"
    REQUEST_ANALYSIS = "request_analysis"
    GENERATE_TESTS = "generate_tests"
    RUN_VERIFICATION = "run_verification"
    JUMP_TO_EVENT = "jump_to_event"


class EnumSuggestionCategory(StrEnum):
    MITIGATION = "mitigation"
    INVESTIGATION = "investigation"
    VERIFICATION = "verification"


class EnumSuggestionSource(StrEnum):
    RISK = "risk"
    HOTSPOT = "hotspot"
    ASSUMPTION = "assumption"


class ModelSuggestionAction(BaseModel):
    """One concrete step; ``target`` is a file path, event id or intent id."""

    model_config = ConfigDict(frozen=True, extra="forbid", from_attributes=True)

    type: EnumSuggestionAction
    label: str
    target: str | None = None


class ModelSuggestion(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", from_attributes=True)

    id: str
    source_id: str
    source_type: EnumSuggestionSource
    category: EnumSuggestionCategory
    title: str
    description: str | None = None
    actions: list[ModelSuggestionAction] = Field(min_length=1)
    priority: EnumRiskLevel
    confidence: float = Field(ge=0.0, le=1.0)

    @property
    def action_types(self) -> frozenset[EnumSuggestionAction]:
        return frozenset(action.type for action in self.actions)


__all__ = [
    "EnumSuggestionAction",
    "EnumSuggestionCategory",
    "EnumSuggestionSource",
    "ModelSuggestion",
    "ModelSuggestionAction",
]
