# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Reviewer action recommendations."""

from agentlens.recommendations.engine import generate_suggestions, select_suggestions
from agentlens.recommendations.models import (
    EnumSuggestionAction,
    EnumSuggestionCategory,
    EnumSuggestionSource,
    ModelSuggestion,
    ModelSuggestionAction,
)

__all__ = [
    "EnumSuggestionAction",
    "EnumSuggestionCategory",
    "EnumSuggestionSource",
    "ModelSuggestion",
    "ModelSuggestionAction",
    "generate_suggestions",
    "select_suggestions",
]
