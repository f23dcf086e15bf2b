# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Canonical event model.

Key Components:
    - CanonicalEvent: the immutable, sequenced record every session activity
      is reduced to
    - AdaptedEvent / AdaptedSession: adapter output contract
    - parse_payload: typed payload variant per event kind
    - validate_canonical_event / validate_adapted_event: Ok/Err validation
    - resequence / make_event_id: per-session sequencing rules
"""

from agentlens.events.enums import EnumActorType, EnumEventKind, EnumVisibility
from agentlens.events.models import (
    EVENT_SCHEMA_VERSION,
    AdaptedEvent,
    AdaptedSession,
    CanonicalEvent,
    ModelActor,
    ModelEventScope,
)
from agentlens.events.payloads import EventPayload, parse_payload
from agentlens.events.sequencing import (
    by_seq,
    is_dense,
    make_event_id,
    make_session_id,
    next_seq,
    resequence,
)
from agentlens.events.validation import (
    EnumFieldErrorKind,
    Err,
    FieldError,
    Ok,
    validate_adapted_event,
    validate_canonical_event,
)

__all__ = [
    "EVENT_SCHEMA_VERSION",
    "AdaptedEvent",
    "AdaptedSession",
    "CanonicalEvent",
    "EnumActorType",
    "EnumEventKind",
    "EnumFieldErrorKind",
    "EnumVisibility",
    "Err",
    "EventPayload",
    "FieldError",
    "ModelActor",
    "ModelEventScope",
    "Ok",
    "by_seq",
    "is_dense",
    "make_event_id",
    "make_session_id",
    "next_seq",
    "parse_payload",
    "resequence",
    "validate_adapted_event",
    "validate_canonical_event",
]
