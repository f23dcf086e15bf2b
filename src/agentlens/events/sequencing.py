# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Per-session sequencing rules.

``seq`` ordering is authoritative for replay. A full re-sequence (used when
merging a second source into a non-empty session) orders by ``(ts, seq)``
and reassigns ``seq`` densely from 1, minting ids that match the new seq.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from uuid import uuid4

from agentlens.events.models import CanonicalEvent


def make_event_id(session_id: str, seq: int) -> str:
    """Return an event id of the form ``{session_id}:{seq}:{8 hex}``."""
    return f"{session_id}:{seq}:{uuid4().hex[:8]}"


def make_session_id(epoch_ms: int) -> str:
    return f"sess_{epoch_ms}_{uuid4().hex[:8]}"


def by_seq(events: Iterable[CanonicalEvent]) -> list[CanonicalEvent]:
    """Replay order: ``seq``, then ``ts`` for (invalid) duplicate seqs."""
    return sorted(events, key=lambda e: (e.seq, e.ts))


def next_seq(events: Sequence[CanonicalEvent]) -> int:
    return max((e.seq for e in events), default=0) + 1


def is_dense(events: Sequence[CanonicalEvent]) -> bool:
    """True when the seq values are exactly 1..N."""
    return sorted(e.seq for e in events) == list(range(1, len(events) + 1))


def resequence(session_id: str, events: Iterable[CanonicalEvent]) -> list[CanonicalEvent]:
    """Order by ``(ts, seq)`` and renumber densely from 1 with fresh ids."""
    ordered = sorted(events, key=lambda e: (e.ts, e.seq))
    return [
        event.model_copy(
            update={
                "session_id": session_id,
                "seq": position,
                "id": make_event_id(session_id, position),
            }
        )
        for position, event in enumerate(ordered, start=1)
    ]


__all__ = [
    "by_seq",
    "is_dense",
    "make_event_id",
    "make_session_id",
    "next_seq",
    "resequence",
]
