# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Intent segmentation.

Every ``intent`` event opens a boundary. Each other event belongs to:

    1. the intent named by its scope (or payload) ``intent_id``, else
    2. the most recent boundary at or before its position, else
    3. the synthetic fallback intent.

session_start and session_end belong to no intent. Intent order is the
fallback intent (it only holds work from before the first boundary), then
boundary order, then any intent ids only referenced by scoped events. The
fallback intent is never superseded.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from agentlens.audit.enums import EnumIntentStatus
from agentlens.audit.models import ModelNormalizedIntent
from agentlens.events.enums import EnumEventKind
from agentlens.events.models import CanonicalEvent
from agentlens.events.payloads import IntentPayload, coerce_text

FALLBACK_INTENT_ID = "intent_fallback"
FALLBACK_INTENT_TITLE = "Fallback intent"

_UNSEGMENTED_KINDS = frozenset({EnumEventKind.SESSION_START, EnumEventKind.SESSION_END})
_WORK_KINDS = frozenset({EnumEventKind.FILE_OP, EnumEventKind.TOOL_CALL})


def event_intent_id(event: CanonicalEvent) -> str | None:
    """Explicit intent of an event: scope first, then payload."""
    if event.scope is not None and event.scope.intent_id:
        return event.scope.intent_id
    return coerce_text(event.payload.get("intent_id"))


def file_target(event: CanonicalEvent) -> str | None:
    """File a file_op touches: payload target, else scope.file."""
    if event.kind != EnumEventKind.FILE_OP:
        return None
    target = coerce_text(event.payload.get("target"))
    if target:
        return target
    return event.scope.file if event.scope is not None else None


@dataclass(frozen=True)
class IntentBoundary:
    intent_id: str
    index: int


@dataclass
class IntentSegments:
    """Events grouped by intent, in intent order."""

    boundaries: list[IntentBoundary] = field(default_factory=list)
    events_by_intent: dict[str, list[CanonicalEvent]] = field(default_factory=dict)

    @property
    def ordered_ids(self) -> list[str]:
        ordered: dict[str, None] = {}
        if FALLBACK_INTENT_ID in self.events_by_intent:
            ordered[FALLBACK_INTENT_ID] = None
        ordered.update(dict.fromkeys(b.intent_id for b in self.boundaries))
        ordered.update(dict.fromkeys(self.events_by_intent))
        return list(ordered)

    def events_for(self, intent_id: str) -> list[CanonicalEvent]:
        return self.events_by_intent.get(intent_id, [])


def build_boundaries(events: Sequence[CanonicalEvent]) -> list[IntentBoundary]:
    return [
        IntentBoundary(event_intent_id(event) or f"intent_auto_{event.seq}", index)
        for index, event in enumerate(events)
        if event.kind == EnumEventKind.INTENT
    ]


def assign_intent(
    event: CanonicalEvent,
    index: int,
    boundaries: Sequence[IntentBoundary],
) -> str:
    explicit = event_intent_id(event)
    if explicit:
        return explicit
    latest: IntentBoundary | None = None
    for boundary in boundaries:
        if boundary.index > index:
            break
        latest = boundary
    return latest.intent_id if latest else FALLBACK_INTENT_ID


def segment_intents(events: Sequence[CanonicalEvent]) -> IntentSegments:
    """Group seq-ordered ``events`` by intent."""
    boundaries = build_boundaries(events)
    segments = IntentSegments(boundaries=boundaries)
    for index, event in enumerate(events):
        if event.kind in _UNSEGMENTED_KINDS:
            continue
        intent_id = assign_intent(event, index, boundaries)
        segments.events_by_intent.setdefault(intent_id, []).append(event)
    return segments


def intent_status(events: Sequence[CanonicalEvent], superseded: bool) -> EnumIntentStatus:
    passed = any(
        e.kind == EnumEventKind.VERIFICATION and e.payload.get("result") == "pass" for e in events
    )
    if passed:
        return EnumIntentStatus.COMPLETED
    if superseded and any(e.kind in _WORK_KINDS for e in events):
        return EnumIntentStatus.ABANDONED
    return EnumIntentStatus.PARTIAL


def build_intents(segments: IntentSegments) -> list[ModelNormalizedIntent]:
    ordered_ids = segments.ordered_ids
    last_position = len(ordered_ids) - 1
    intents: list[ModelNormalizedIntent] = []
    for position, intent_id in enumerate(ordered_ids):
        events = segments.events_for(intent_id)
        intent_event = next((e for e in events if e.kind == EnumEventKind.INTENT), None)
        payload = IntentPayload.model_validate(intent_event.payload if intent_event else {})
        default_title = FALLBACK_INTENT_TITLE if intent_id == FALLBACK_INTENT_ID else intent_id
        start_seq = events[0].seq if events else 0
        is_superseded = position < last_position and intent_id != FALLBACK_INTENT_ID
        intents.append(
            ModelNormalizedIntent(
                id=intent_id,
                title=payload.title or default_title,
                description=payload.description,
                priority=payload.priority,
                start_seq=start_seq,
                end_seq=events[-1].seq if events else start_seq,
                status=intent_status(events, superseded=is_superseded),
                event_ids=[e.id for e in events],
            )
        )
    return intents


__all__ = [
    "FALLBACK_INTENT_ID",
    "FALLBACK_INTENT_TITLE",
    "IntentBoundary",
    "IntentSegments",
    "assign_intent",
    "build_boundaries",
    "build_intents",
    "event_intent_id",
    "file_target",
    "intent_status",
    "segment_intents",
]
