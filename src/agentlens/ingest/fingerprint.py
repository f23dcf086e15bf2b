# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Session fingerprints and similarity scoring.

A fingerprint is the little a persisted session log says about "what the
session was for and when": its representative prompt plus its start/end
timestamps. Fingerprints are recomputed from disk on demand and never
persisted.

Scoring:
    prompt_score  1.0 exact, 0.9 containment (both >= 18 chars), else Jaccard
                  over words longer than 2 characters.
    time_score    step function of the hour distance (see TIME_SCORE_STEPS).
    confidence    prompt_score * prompt_weight + time_score * time_weight,
                  rounded to 3 decimals.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict

from agentlens.events.enums import EnumEventKind
from agentlens.events.models import AdaptedSession, CanonicalEvent
from agentlens.events.payloads import (
    IntentPayload,
    SessionEndPayload,
    SessionStartPayload,
    parse_payload,
)
from agentlens.events.timestamps import to_epoch_ms

FINGERPRINT_MAX_CHARS = 320
CONTAINMENT_MIN_CHARS = 18
CONTAINMENT_SCORE = 0.9
MIN_TOKEN_CHARS = 3

# (max hours, score), evaluated in order
TIME_SCORE_STEPS: tuple[tuple[float, float], ...] = (
    (0.5, 1.0),
    (6.0, 0.8),
    (24.0, 0.5),
    (72.0, 0.25),
)

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")

MS_PER_HOUR = 60 * 60 * 1000


class ModelSessionFingerprint(BaseModel):
    """Identity summary of one persisted session."""

    model_config = ConfigDict(frozen=True, extra="forbid", from_attributes=True)

    session_id: str
    prompt: str | None = None
    started_at: str | None = None
    ended_at: str | None = None
    updated_at: str

    @property
    def best_timestamp(self) -> str:
        """ended_at, else started_at, else file mtime."""
        return self.ended_at or self.started_at or self.updated_at


# =============================================================================
# Scoring
# =============================================================================


def normalize_fingerprint(value: str | None) -> str:
    if not value:
        return ""
    text = _NON_ALNUM.sub(" ", value.lower())
    return _WHITESPACE.sub(" ", text).strip()[:FINGERPRINT_MAX_CHARS]


def _tokens(value: str) -> set[str]:
    return {word for word in value.split(" ") if len(word) >= MIN_TOKEN_CHARS}


def jaccard(a: set[str], b: set[str]) -> float:
    if not a or not b:
        return 0.0
    overlap = len(a & b)
    union = len(a) + len(b) - overlap
    return overlap / union if union > 0 else 0.0


def prompt_score(a_raw: str | None, b_raw: str | None) -> float:
    a = normalize_fingerprint(a_raw)
    b = normalize_fingerprint(b_raw)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    if len(a) >= CONTAINMENT_MIN_CHARS and len(b) >= CONTAINMENT_MIN_CHARS and (a in b or b in a):
        return CONTAINMENT_SCORE
    return jaccard(_tokens(a), _tokens(b))


def time_score(distance_hours: float) -> float:
    for max_hours, score in TIME_SCORE_STEPS:
        if distance_hours <= max_hours:
            return score
    return 0.0


def distance_hours(source_ms: int, target_ms: int) -> float:
    return abs(source_ms - target_ms) / MS_PER_HOUR


# =============================================================================
# Extraction
# =============================================================================


def _intent_text(payload: IntentPayload) -> str | None:
    return payload.description or payload.title


def source_prompt(adapted: AdaptedSession) -> str | None:
    """Representative prompt of an incoming session.

    user_prompt, else the first intent's description or title, else goal.
    """
    if adapted.user_prompt and adapted.user_prompt.strip():
        return adapted.user_prompt
    for event in adapted.events:
        if event.kind == EnumEventKind.INTENT:
            intent = IntentPayload.model_validate(event.payload)
            return _intent_text(intent) or adapted.goal
    return adapted.goal


def source_epoch_ms(adapted: AdaptedSession, now_ms: int) -> int:
    """started_at, else the earliest parseable event ts, else ended_at, else now."""
    started = to_epoch_ms(adapted.started_at)
    if started is not None:
        return started
    event_times = [ms for ms in (to_epoch_ms(e.ts) for e in adapted.events) if ms is not None]
    if event_times:
        return min(event_times)
    ended = to_epoch_ms(adapted.ended_at)
    return ended if ended is not None else now_ms


def fingerprint_from_events(
    session_id: str,
    events: Sequence[CanonicalEvent],
    updated_at: str,
) -> ModelSessionFingerprint:
    """Derive the fingerprint of a persisted log.

    The prompt is the session_start user_prompt; without one the goal is
    used until an intent supplies a description or title.
    """
    prompt: str | None = None
    start_goal: str | None = None
    started_at = events[0].ts if events else None
    ended_at: str | None = None

    for event in events:
        match parse_payload(event.kind, event.payload):
            case SessionStartPayload() as start:
                if start.user_prompt:
                    prompt = start.user_prompt
                else:
                    start_goal = start.goal
                    prompt = prompt or start.goal
                started_at = event.ts
            case IntentPayload() as intent:
                text = _intent_text(intent)
                if text and (not prompt or prompt == start_goal):
                    prompt = text
            case SessionEndPayload():
                ended_at = event.ts
            case _:
                pass

    return ModelSessionFingerprint(
        session_id=session_id,
        prompt=prompt,
        started_at=started_at,
        ended_at=ended_at,
        updated_at=updated_at,
    )


__all__ = [
    "ModelSessionFingerprint",
    "distance_hours",
    "fingerprint_from_events",
    "jaccard",
    "normalize_fingerprint",
    "prompt_score",
    "source_epoch_ms",
    "source_prompt",
    "time_score",
]
