# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Live session recording.

Key Components:
    - SessionStore: mints, sequences and persists events for the active session
    - SessionContext: explicit recording cursor passed to every call
    - ConfigRecorder: auto-creation and reuse policy
"""

from agentlens.recorder.config import ConfigRecorder
from agentlens.recorder.context import EnumSessionStatus, SessionContext
from agentlens.recorder.store import SessionStore, make_intent_id

__all__ = [
    "ConfigRecorder",
    "EnumSessionStatus",
    "SessionContext",
    "SessionStore",
    "make_intent_id",
]
