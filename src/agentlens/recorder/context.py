# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Explicit session context passed to every recording call.

The context is the live-recording cursor: which session events go to, the
next seq to mint, and the intent new events are scoped to. It is advisory;
the persisted log is the source of truth and ``SessionStore.resume_session``
rebuilds a context from disk.

State Machine:
    ACTIVE ---(end_active_session)---> ENDED

    ENDED is terminal; recording into it is an InvalidStateError.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class EnumSessionStatus(StrEnum):
    """Lifecycle of a recording session."""

    ACTIVE = "active"
    ENDED = "ended"


@dataclass
class SessionContext:
    """Mutable recording cursor for one session.

    Attributes:
        session_id: Session the cursor writes to.
        goal: Goal recorded in session_start.
        started_at: Canonical timestamp of session_start.
        next_seq: Seq the next minted event receives.
        active_intent_id: Intent new events are scoped to, if any.
        status: ACTIVE until the session_end event is written.
        ended_at: Canonical timestamp of session_end.
    """

    session_id: str
    goal: str
    started_at: str
    next_seq: int = 1
    user_prompt: str | None = None
    repo: str | None = None
    branch: str | None = None
    active_intent_id: str | None = None
    status: EnumSessionStatus = EnumSessionStatus.ACTIVE
    ended_at: str | None = None

    @property
    def is_ended(self) -> bool:
        return self.status == EnumSessionStatus.ENDED

    def claim_seq(self) -> int:
        seq = self.next_seq
        self.next_seq += 1
        return seq

    def release_seq(self, seq: int) -> None:
        """Hand back ``seq`` if it is the most recently claimed one."""
        if self.next_seq == seq + 1:
            self.next_seq = seq
