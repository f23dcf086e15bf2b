# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Merge/append persistence of accepted events.

Write modes:
    APPEND        target log is empty or missing: write the accepted events,
                  continuing the seq counter.
    FULL_REWRITE  merging new events into a non-empty log: existing + new are
                  sorted by (ts, seq) and renumbered 1..N with fresh ids.
    NONE          merging with nothing new: the canonical log is untouched.

The raw sidecar is written after the canonical log and is best-effort
relative to it; the canonical log is authoritative if the two disagree.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from pathlib import Path

from agentlens.events.models import AdaptedEvent, CanonicalEvent
from agentlens.events.sequencing import make_event_id, resequence
from agentlens.events.timestamps import canonical_ts
from agentlens.storage.session_log import SessionLogStore

logger = logging.getLogger(__name__)


class EnumWriteMode(StrEnum):
    APPEND = "append"
    FULL_REWRITE = "full_rewrite"
    NONE = "none"


def build_canonical_event(
    session_id: str,
    seq: int,
    event: AdaptedEvent,
    fallback_ts: str,
) -> CanonicalEvent:
    """Assign identity and ordering to an adapted event.

    A missing or unparseable ``ts`` becomes ``fallback_ts``.
    """
    return CanonicalEvent(
        id=make_event_id(session_id, seq),
        session_id=session_id,
        seq=seq,
        ts=canonical_ts(event.ts, fallback_ts),
        kind=event.kind,
        actor=event.actor,
        scope=event.scope,
        payload=event.payload,
        derived=event.derived,
        confidence=event.confidence,
        visibility=event.visibility,
    )


def choose_write_mode(
    existing: list[CanonicalEvent], accepted: list[CanonicalEvent]
) -> EnumWriteMode:
    if not existing:
        return EnumWriteMode.APPEND
    return EnumWriteMode.FULL_REWRITE if accepted else EnumWriteMode.NONE


class MergeWriter:
    """Persists one ingest's accepted events and its raw sidecar."""

    def __init__(self, log_store: SessionLogStore) -> None:
        self._log_store = log_store

    def write(
        self,
        session_id: str,
        existing: list[CanonicalEvent],
        accepted: list[CanonicalEvent],
    ) -> tuple[EnumWriteMode, Path]:
        """Persist ``accepted`` against ``existing`` and return the mode used."""
        mode = choose_write_mode(existing, accepted)

        if mode == EnumWriteMode.APPEND:
            path = self._log_store.append_events(session_id, accepted)
        elif mode == EnumWriteMode.FULL_REWRITE:
            combined = resequence(session_id, [*existing, *accepted])
            path = self._log_store.write_full(session_id, combined)
            logger.info(
                "Session log rewritten after merge",
                extra={
                    "session_id": session_id,
                    "existing_count": len(existing),
                    "inserted_count": len(accepted),
                    "total_count": len(combined),
                },
            )
        else:
            path = self._log_store.session_path(session_id)

        return mode, path

    def write_raw(self, session_id: str, source: str, raw: bytes | str) -> Path:
        return self._log_store.write_raw_sidecar(session_id, source, raw)


__all__ = [
    "EnumWriteMode",
    "MergeWriter",
    "build_canonical_event",
    "choose_write_mode",
]
