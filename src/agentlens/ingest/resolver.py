# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Session identity resolution.

Decides which persisted session an incoming AdaptedSession continues.
Strategies are evaluated in order; the first match wins:

    1. explicit_merge      caller named the target session
    2. adapted_session_id  adapter supplied an id whose log already exists
    3. fingerprint_match   prompt + time similarity against persisted logs
    4. new_session         adapter id with no log (reused), else a fresh id

Resolution never fails: an empty prompt, no candidates, or no candidate
above threshold all fall through to new_session.
"""

from __future__ import annotations

import logging
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from agentlens.events.models import AdaptedSession
from agentlens.events.sequencing import make_session_id
from agentlens.events.timestamps import now_epoch_ms, to_epoch_ms
from agentlens.ingest.config import ConfigIngest
from agentlens.ingest.fingerprint import (
    ModelSessionFingerprint,
    distance_hours,
    fingerprint_from_events,
    normalize_fingerprint,
    prompt_score,
    source_epoch_ms,
    source_prompt,
    time_score,
)
from agentlens.lib.errors import ParseError, PersistenceIOError
from agentlens.storage.session_log import SessionLogStore

logger = logging.getLogger(__name__)


class EnumMergeStrategy(StrEnum):
    """How the target session of an ingest was chosen."""

    EXPLICIT_MERGE = "explicit_merge"
    ADAPTED_SESSION_ID = "adapted_session_id"
    FINGERPRINT_MATCH = "fingerprint_match"
    NEW_SESSION = "new_session"


class ModelSessionSelection(BaseModel):
    """Resolver verdict."""

    model_config = ConfigDict(frozen=True, extra="forbid", from_attributes=True)

    session_id: str = Field(min_length=1)
    strategy: EnumMergeStrategy
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)


class ModelFingerprintMatch(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", from_attributes=True)

    session_id: str
    confidence: float


class SessionIdentityResolver:
    """Chooses the target session for an adapted session.

    Candidates are scanned from the sessions directory on every call; the
    scan is not cached because an ingest can create or rewrite logs.
    """

    def __init__(
        self,
        log_store: SessionLogStore,
        config: ConfigIngest | None = None,
    ) -> None:
        self._log_store = log_store
        self._config = config or ConfigIngest()

    def resolve(
        self,
        adapted: AdaptedSession,
        merge_session_id: str | None = None,
    ) -> ModelSessionSelection:
        if merge_session_id and merge_session_id.strip():
            return ModelSessionSelection(
                session_id=merge_session_id.strip(),
                strategy=EnumMergeStrategy.EXPLICIT_MERGE,
            )

        adapted_id = adapted.session_id.strip() if adapted.session_id else None
        if adapted_id and self._log_store.exists(adapted_id):
            return ModelSessionSelection(
                session_id=adapted_id,
                strategy=EnumMergeStrategy.ADAPTED_SESSION_ID,
            )

        match = self.find_fingerprint_match(adapted)
        if match is not None:
            return ModelSessionSelection(
                session_id=match.session_id,
                strategy=EnumMergeStrategy.FINGERPRINT_MATCH,
                confidence=match.confidence,
            )

        return ModelSessionSelection(
            session_id=adapted_id or make_session_id(now_epoch_ms()),
            strategy=EnumMergeStrategy.NEW_SESSION,
        )

    # =========================================================================
    # Fingerprinting
    # =========================================================================

    def load_fingerprints(self) -> list[ModelSessionFingerprint]:
        """Fingerprint every readable canonical log, in filename order.

        Logs that fail to parse are logged and left out; they are never
        merge targets.
        """
        fingerprints: list[ModelSessionFingerprint] = []
        entries = sorted(self._log_store.list_sessions(), key=lambda e: e.path.name)
        for entry in entries:
            try:
                events = self._log_store.read_log(entry.path)
            except (ParseError, PersistenceIOError) as exc:
                logger.warning(
                    "Excluding unreadable session from fingerprint matching",
                    extra={"session_id": entry.session_id, "error": str(exc)},
                )
                continue
            if not events:
                continue
            fingerprints.append(
                fingerprint_from_events(entry.session_id, events, entry.updated_at)
            )
        return fingerprints

    def find_fingerprint_match(self, adapted: AdaptedSession) -> ModelFingerprintMatch | None:
        cfg = self._config
        normalized = normalize_fingerprint(source_prompt(adapted))
        if not normalized:
            return None

        source_ms = source_epoch_ms(adapted, now_epoch_ms())
        best: ModelFingerprintMatch | None = None

        for candidate in self.load_fingerprints():
            candidate_prompt = normalize_fingerprint(candidate.prompt)
            if not candidate_prompt:
                continue
            p_score = prompt_score(normalized, candidate_prompt)
            if p_score < cfg.fingerprint_min_prompt_score:
                continue

            candidate_ms = to_epoch_ms(candidate.best_timestamp)
            if candidate_ms is None:
                continue
            hours = distance_hours(source_ms, candidate_ms)
            if hours > cfg.fingerprint_max_window_hours:
                continue

            confidence = round(
                p_score * cfg.fingerprint_prompt_weight
                + time_score(hours) * cfg.fingerprint_time_weight,
                3,
            )
            logger.debug(
                "Fingerprint candidate scored",
                extra={
                    "session_id": candidate.session_id,
                    "prompt_score": p_score,
                    "distance_hours": hours,
                    "confidence": confidence,
                },
            )
            if best is None or confidence > best.confidence:
                best = ModelFingerprintMatch(
                    session_id=candidate.session_id, confidence=confidence
                )

        if best is None or best.confidence < cfg.fingerprint_min_confidence:
            return None
        return best


__all__ = [
    "EnumMergeStrategy",
    "ModelFingerprintMatch",
    "ModelSessionSelection",
    "SessionIdentityResolver",
]
