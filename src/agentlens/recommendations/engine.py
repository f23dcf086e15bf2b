# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Recommendation engine.

Maps risk, hotspot and unresolved-assumption artifacts to concrete
reviewer actions. Pure function of its inputs.

Selection:
    - at most MAX_PER_ARTIFACT suggestions per source artifact
    - duplicates (same source id, category and action-type set) dropped
    - ordered by priority, then confidence (desc), then source id
    - at most MAX_PER_CATEGORY of one category, MAX_TOTAL overall
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence

from agentlens.audit.enums import EnumRiskFactor, EnumRiskLevel
from agentlens.audit.models import (
    ModelImpactArtifact,
    ModelNormalizedAssumption,
    ModelReviewHotspot,
    ModelRiskArtifact,
)
from agentlens.recommendations.models import (
    EnumSuggestionAction,
    EnumSuggestionCategory,
    EnumSuggestionSource,
    ModelSuggestion,
    ModelSuggestionAction,
)

logger = logging.getLogger(__name__)

MAX_PER_ARTIFACT = 3
MAX_PER_CATEGORY = 3
MAX_TOTAL = 5

RISK_CONFIDENCE: dict[EnumRiskLevel, float] = {
    EnumRiskLevel.HIGH: 0.85,
    EnumRiskLevel.MEDIUM: 0.7,
    EnumRiskLevel.LOW: 0.55,
}
HOTSPOT_HIGH_PRIORITY = 0.7
HOTSPOT_MEDIUM_PRIORITY = 0.4
INVALIDATED_ASSUMPTION_CONFIDENCE = 0.8
OPEN_ASSUMPTION_CONFIDENCE = 0.6

_PRIORITY_RANK = {EnumRiskLevel.HIGH: 0, EnumRiskLevel.MEDIUM: 1, EnumRiskLevel.LOW: 2}


def _action(
    kind: EnumSuggestionAction, label: str, target: str | None = None
) -> ModelSuggestionAction:
    return ModelSuggestionAction(type=kind, label=label, target=target)


def _suggestion(
    source_type: EnumSuggestionSource,
    source_id: str,
    category: EnumSuggestionCategory,
    title: str,
    actions: list[ModelSuggestionAction],
    priority: EnumRiskLevel,
    confidence: float,
    description: str | None = None,
) -> ModelSuggestion:
    return ModelSuggestion(
        id=f"sugg_{source_type.value}_{source_id}_{category.value}",
        source_id=source_id,
        source_type=source_type,
        category=category,
        title=title,
        description=description,
        actions=actions,
        priority=priority,
        confidence=round(confidence, 2),
    )


# =============================================================================
# Per-artifact rules
# =============================================================================


def suggest_for_risk(
    risk: ModelRiskArtifact, files: Sequence[str] = ()
) -> list[ModelSuggestion]:
    """Suggestions for one risk; ``files`` are the files its impact touched."""
    confidence = RISK_CONFIDENCE[risk.level]
    first_file = files[0] if files else None
    scope = risk.intent_id or "session"
    reasons = "; ".join(risk.reasons) or None
    verification_gap = risk.has_factor(
        EnumRiskFactor.VERIFICATION_MISSING, EnumRiskFactor.VERIFICATION_FAILED
    )

    def make(
        category: EnumSuggestionCategory, title: str, actions: list[ModelSuggestionAction]
    ) -> ModelSuggestion:
        return _suggestion(
            EnumSuggestionSource.RISK,
            risk.id,
            category,
            title,
            actions,
            risk.level,
            confidence,
            reasons,
        )

    mitigation_actions = [_action(EnumSuggestionAction.OPEN_DIFF, "Open diff", scope)]
    if first_file:
        mitigation_actions.append(
            _action(EnumSuggestionAction.OPEN_FILE, f"Open {first_file}", first_file)
        )
    mitigation = make(
        EnumSuggestionCategory.MITIGATION,
        risk.mitigations[0] if risk.mitigations else "Review the risky change",
        mitigation_actions,
    )

    verification_actions = [
        _action(EnumSuggestionAction.RUN_VERIFICATION, "Run verification", scope)
    ]
    if risk.level == EnumRiskLevel.HIGH and verification_gap:
        verification_actions.append(
            _action(EnumSuggestionAction.GENERATE_TESTS, "Generate tests", first_file or scope)
        )
    verification = make(
        EnumSuggestionCategory.VERIFICATION,
        "Verify the change before merging",
        verification_actions,
    )

    match risk.level:
        case EnumRiskLevel.HIGH:
            investigation = make(
                EnumSuggestionCategory.INVESTIGATION,
                "Ask the agent to explain the risky change",
                [_action(EnumSuggestionAction.PROMPT_AGENT, "Prompt agent", scope)],
            )
            suggestions = [mitigation, verification, investigation]
        case EnumRiskLevel.MEDIUM:
            suggestions = [mitigation, verification]
        case _:
            suggestions = [
                make(
                    EnumSuggestionCategory.INVESTIGATION,
                    "Request a quick analysis of the change",
                    [_action(EnumSuggestionAction.REQUEST_ANALYSIS, "Request analysis", scope)],
                )
            ]
    return suggestions[:MAX_PER_ARTIFACT]


def hotspot_priority(score: float) -> EnumRiskLevel:
    if score >= HOTSPOT_HIGH_PRIORITY:
        return EnumRiskLevel.HIGH
    if score >= HOTSPOT_MEDIUM_PRIORITY:
        return EnumRiskLevel.MEDIUM
    return EnumRiskLevel.LOW


def suggest_for_hotspot(hotspot: ModelReviewHotspot) -> list[ModelSuggestion]:
    priority = hotspot_priority(hotspot.score)
    confidence = min(1.0, 0.5 + 0.4 * hotspot.score)
    suggestions = [
        _suggestion(
            EnumSuggestionSource.HOTSPOT,
            hotspot.id,
            EnumSuggestionCategory.INVESTIGATION,
            f"Inspect {hotspot.file}",
            [
                _action(EnumSuggestionAction.OPEN_FILE, f"Open {hotspot.file}", hotspot.file),
                _action(EnumSuggestionAction.REPLAY_FILE, "Replay edits", hotspot.file),
            ],
            priority,
            confidence,
            f"Edited {hotspot.edit_count} time(s), {hotspot.lines_changed:g} line(s) changed",
        )
    ]
    if hotspot.score >= HOTSPOT_MEDIUM_PRIORITY:
        suggestions.append(
            _suggestion(
                EnumSuggestionSource.HOTSPOT,
                hotspot.id,
                EnumSuggestionCategory.VERIFICATION,
                f"Add tests for {hotspot.file}",
                [_action(EnumSuggestionAction.GENERATE_TESTS, "Generate tests", hotspot.file)],
                priority,
                confidence,
            )
        )
    return suggestions[:MAX_PER_ARTIFACT]


def suggest_for_assumption(assumption: ModelNormalizedAssumption) -> list[ModelSuggestion]:
    """Validated assumptions yield nothing."""
    if not assumption.is_unresolved:
        return []

    source_id = assumption.event_id
    if assumption.validated is False:
        return [
            _suggestion(
                EnumSuggestionSource.ASSUMPTION,
                source_id,
                EnumSuggestionCategory.MITIGATION,
                "Revisit work built on an invalidated assumption",
                [_action(EnumSuggestionAction.PROMPT_AGENT, "Prompt agent", source_id)],
                assumption.risk or EnumRiskLevel.MEDIUM,
                INVALIDATED_ASSUMPTION_CONFIDENCE,
                assumption.statement,
            )
        ]

    priority = assumption.risk or EnumRiskLevel.LOW
    suggestions = [
        _suggestion(
            EnumSuggestionSource.ASSUMPTION,
            source_id,
            EnumSuggestionCategory.VERIFICATION,
            "Verify an open assumption",
            [_action(EnumSuggestionAction.RUN_VERIFICATION, "Run verification", source_id)],
            priority,
            OPEN_ASSUMPTION_CONFIDENCE,
            assumption.statement,
        )
    ]
    if assumption.risk in (EnumRiskLevel.MEDIUM, EnumRiskLevel.HIGH):
        suggestions.append(
            _suggestion(
                EnumSuggestionSource.ASSUMPTION,
                source_id,
                EnumSuggestionCategory.INVESTIGATION,
                "Request analysis of a risky assumption",
                [
                    _action(
                        EnumSuggestionAction.REQUEST_ANALYSIS, "Request analysis", source_id
                    ),
                    _action(EnumSuggestionAction.JUMP_TO_EVENT, "Jump to event", source_id),
                ],
                priority,
                OPEN_ASSUMPTION_CONFIDENCE,
                assumption.statement,
            )
        )
    return suggestions[:MAX_PER_ARTIFACT]


# =============================================================================
# Selection
# =============================================================================


def select_suggestions(candidates: Iterable[ModelSuggestion]) -> list[ModelSuggestion]:
    """Dedupe, order and cap a candidate list."""
    seen: set[tuple[str, EnumSuggestionCategory, frozenset[EnumSuggestionAction]]] = set()
    unique: list[ModelSuggestion] = []
    for suggestion in candidates:
        key = (suggestion.source_id, suggestion.category, suggestion.action_types)
        if key in seen:
            continue
        seen.add(key)
        unique.append(suggestion)

    unique.sort(key=lambda s: (_PRIORITY_RANK[s.priority], -s.confidence, s.source_id))

    per_category: dict[EnumSuggestionCategory, int] = {}
    selected: list[ModelSuggestion] = []
    for suggestion in unique:
        if per_category.get(suggestion.category, 0) >= MAX_PER_CATEGORY:
            continue
        per_category[suggestion.category] = per_category.get(suggestion.category, 0) + 1
        selected.append(suggestion)
        if len(selected) >= MAX_TOTAL:
            break
    return selected


def generate_suggestions(
    risks: Sequence[ModelRiskArtifact] = (),
    hotspots: Sequence[ModelReviewHotspot] = (),
    assumptions: Sequence[ModelNormalizedAssumption] = (),
    impacts: Sequence[ModelImpactArtifact] = (),
) -> list[ModelSuggestion]:
    """Recommended reviewer actions, most important first.

    ``impacts`` is optional; when given, risk suggestions target the files
    their intent touched.
    """
    files_by_intent: Mapping[str | None, list[str]] = {
        impact.intent_id: impact.files_touched for impact in impacts
    }
    candidates: list[ModelSuggestion] = []
    for risk in risks:
        candidates += suggest_for_risk(risk, files_by_intent.get(risk.intent_id, []))
    for hotspot in hotspots:
        candidates += suggest_for_hotspot(hotspot)
    for assumption in assumptions:
        candidates += suggest_for_assumption(assumption)

    selected = select_suggestions(candidates)
    logger.debug(
        "Suggestions generated",
        extra={"candidate_count": len(candidates), "selected_count": len(selected)},
    )
    return selected


__all__ = [
    "MAX_PER_ARTIFACT",
    "MAX_PER_CATEGORY",
    "MAX_TOTAL",
    "generate_suggestions",
    "hotspot_priority",
    "select_suggestions",
    "suggest_for_assumption",
    "suggest_for_hotspot",
    "suggest_for_risk",
]
