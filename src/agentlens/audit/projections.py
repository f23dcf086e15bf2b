# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Per-kind payload projections: decisions, assumptions, verifications."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from agentlens.audit.enums import EnumRiskLevel, EnumSessionOutcome
from agentlens.audit.models import (
    ModelNormalizedAssumption,
    ModelNormalizedDecision,
    ModelVerificationArtifact,
)
from agentlens.audit.segmentation import event_intent_id
from agentlens.events.models import CanonicalEvent
from agentlens.events.payloads import (
    AssumptionPayload,
    DecisionPayload,
    SessionEndPayload,
    VerificationPayload,
    parse_payload,
)


@dataclass
class Projections:
    decisions: list[ModelNormalizedDecision] = field(default_factory=list)
    assumptions: list[ModelNormalizedAssumption] = field(default_factory=list)
    verifications: list[ModelVerificationArtifact] = field(default_factory=list)


def project_events(events: Sequence[CanonicalEvent]) -> Projections:
    """Project decision, assumption and verification events in seq order."""
    out = Projections()
    for event in events:
        intent_id = event_intent_id(event)
        match parse_payload(event.kind, event.payload):
            case DecisionPayload() as decision:
                out.decisions.append(
                    ModelNormalizedDecision(
                        event_id=event.id,
                        intent_id=intent_id,
                        summary=decision.summary or "Decision",
                        rationale=decision.rationale,
                        options=decision.options,
                        chosen_option=decision.chosen_option,
                        reversibility=decision.reversibility,
                        ts=event.ts,
                    )
                )
            case AssumptionPayload() as assumption:
                out.assumptions.append(
                    ModelNormalizedAssumption(
                        event_id=event.id,
                        intent_id=intent_id,
                        statement=assumption.statement or "Assumption",
                        validated=assumption.validated,
                        risk=EnumRiskLevel(assumption.risk) if assumption.risk else None,
                        ts=event.ts,
                    )
                )
            case VerificationPayload() as verification:
                out.verifications.append(
                    ModelVerificationArtifact(
                        event_id=event.id,
                        intent_id=intent_id,
                        type=verification.type,
                        result=verification.result,
                        details=verification.details,
                        ts=event.ts,
                    )
                )
            case _:
                pass
    return out


def parse_outcome(events: Sequence[CanonicalEvent]) -> EnumSessionOutcome:
    """Outcome of the last session_end; UNKNOWN if absent or unrecognized."""
    for event in reversed(events):
        match parse_payload(event.kind, event.payload):
            case SessionEndPayload(outcome=outcome):
                try:
                    return EnumSessionOutcome(outcome)
                except ValueError:
                    return EnumSessionOutcome.UNKNOWN
            case _:
                continue
    return EnumSessionOutcome.UNKNOWN


__all__ = ["Projections", "parse_outcome", "project_events"]
