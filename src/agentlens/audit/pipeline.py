# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Audit normalization pipeline.

``normalize_session`` turns a full canonical event log into a
ModelSessionNormalized. Every step is a pure function of its inputs, so the
result is rebuildable from scratch and safe to compute concurrently for
different sessions.

Steps:
    1. Sort by seq (ts breaks ties between invalid duplicate seqs).
    2. Segment events into intents and compute intent status.
    3. Project decisions, assumptions, verifications.
    4. Detect revisions.
    5. Aggregate impacts per intent and for the session.
    6. Score risks and rank hotspots through the pluggable scorer.
    7. Summarize token usage.

With ``enable_insights`` off, assumptions, risks and hotspots are empty.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from agentlens.audit.config import ConfigAuditPipeline
from agentlens.audit.impacts import SESSION_IMPACT_ID, derive_impact
from agentlens.audit.models import ModelSessionMetadata, ModelSessionNormalized
from agentlens.audit.projections import parse_outcome, project_events
from agentlens.audit.revisions import derive_revisions
from agentlens.audit.scoring import DefaultRiskScorer, ProtocolRiskScorer
from agentlens.audit.segmentation import build_intents, segment_intents
from agentlens.audit.tokens import summarize_token_usage
from agentlens.events.enums import EnumEventKind
from agentlens.events.models import EVENT_SCHEMA_VERSION, CanonicalEvent
from agentlens.events.payloads import SessionStartPayload
from agentlens.events.sequencing import by_seq

logger = logging.getLogger(__name__)

UNKNOWN_SESSION_ID = "unknown"
UNKNOWN_GOAL = "Unknown goal"


def normalize_session(
    raw_events: Iterable[CanonicalEvent],
    config: ConfigAuditPipeline | None = None,
    scorer: ProtocolRiskScorer | None = None,
) -> ModelSessionNormalized:
    """Build the audit projection of one session's events."""
    cfg = config or ConfigAuditPipeline()
    scorer = scorer or DefaultRiskScorer()
    events = by_seq(raw_events)

    start = next((e for e in events if e.kind == EnumEventKind.SESSION_START), None)
    end = next((e for e in reversed(events) if e.kind == EnumEventKind.SESSION_END), None)
    start_payload = SessionStartPayload.model_validate(start.payload if start else {})
    outcome = parse_outcome(events)

    segments = segment_intents(events)
    intents = build_intents(segments)
    projections = project_events(events)
    assumptions = projections.assumptions if cfg.enable_insights else []
    revisions = derive_revisions(events, intents, cfg)

    impacts = [
        derive_impact(f"impact_{intent.id}", intent.id, segments.events_for(intent.id))
        for intent in intents
    ]
    impacts.append(derive_impact(SESSION_IMPACT_ID, None, events))

    if cfg.enable_insights:
        risks = scorer.score_risks(
            outcome,
            impacts,
            assumptions,
            projections.decisions,
            revisions,
            projections.verifications,
        )
        hotspots = scorer.rank_hotspots(
            impacts, assumptions, projections.decisions, cfg.hotspot_limit
        )
    else:
        risks, hotspots = [], []

    first = events[0] if events else None
    normalized = ModelSessionNormalized(
        metadata=ModelSessionMetadata(
            session_id=first.session_id if first else UNKNOWN_SESSION_ID,
            goal=start_payload.goal or UNKNOWN_GOAL,
            started_at=start.ts if start else None,
            ended_at=end.ts if end else None,
            outcome=outcome,
            repo=start_payload.repo,
            branch=start_payload.branch,
            token_usage=summarize_token_usage(events),
            schema_version=first.schema_version if first else EVENT_SCHEMA_VERSION,
        ),
        intents=intents,
        decisions=projections.decisions,
        assumptions=assumptions,
        verifications=projections.verifications,
        revisions=revisions,
        impacts=impacts,
        risks=risks,
        hotspots=hotspots,
        raw_events=events,
    )

    logger.debug(
        "Session normalized",
        extra={
            "session_id": normalized.metadata.session_id,
            "event_count": len(events),
            "intent_count": len(intents),
            "revision_count": len(revisions),
            "risk_count": len(risks),
        },
    )
    return normalized


__all__ = ["normalize_session"]
