# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Duplicate detection for ingested events.

Two key strategies:

EXACT
    Structural key over ``(kind, ts, actor.type, actor.id, scope, payload)``.
    Used when ingesting into an empty session, where the only duplicates are
    repeated records inside the incoming batch.

SEMANTIC
    Used when merging into a session that already has events. Two sources
    record the same real-world action at slightly different times, so
    ``ts`` is bucketed (two minutes by default) and several kinds reduce to
    the fields that identify the action:

    ==========================  =============================================
    Kind                        Key
    ==========================  =============================================
    session_start / session_end the kind alone
    intent                      normalized description (or title)
    tool_call                   actor type, action[:80], target[:200]
    artifact_created            artifact type, intent id, text[:300]
    token_usage_checkpoint      ts bucket, intent id
    anything else               exact shape with the bucketed ts
    ==========================  =============================================

A candidate is skipped iff its key is already in the index. Keys of accepted
candidates are added immediately so duplicates inside one batch are caught.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from agentlens.events.enums import EnumEventKind
from agentlens.events.models import CanonicalEvent
from agentlens.events.timestamps import format_ts, to_epoch_ms

logger = logging.getLogger(__name__)

DEFAULT_BUCKET_SECONDS = 120
SEMANTIC_TEXT_LIMIT = 400

_WHITESPACE = re.compile(r"\s+")


class EnumDedupStrategy(StrEnum):
    """Which key function a DedupIndex uses."""

    EXACT = "exact"
    SEMANTIC = "semantic"


# =============================================================================
# Key helpers
# =============================================================================


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _first_present(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return None


def semantic_norm(value: Any, limit: int = SEMANTIC_TEXT_LIMIT) -> str:
    """Lowercase, collapse whitespace, strip, truncate to ``limit``."""
    if not isinstance(value, str) or not value:
        return ""
    return _WHITESPACE.sub(" ", value.lower()).strip()[:limit]


def ts_bucket(ts: str, bucket_seconds: int = DEFAULT_BUCKET_SECONDS) -> str:
    """Floor ``ts`` to its bucket; unparseable values are returned unchanged."""
    ms = to_epoch_ms(ts)
    if ms is None:
        return ts
    width = bucket_seconds * 1000
    floored = (ms // width) * width
    return format_ts(datetime.fromtimestamp(floored / 1000, tz=UTC))


def _structural_key(event: CanonicalEvent, ts: str) -> str:
    return json.dumps(
        [
            event.kind.value,
            ts,
            event.actor.type.value,
            event.actor.id or "",
            event.scope.as_key() if event.scope else {},
            event.payload,
        ],
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
        default=str,
    )


def exact_key(event: CanonicalEvent) -> str:
    return _structural_key(event, event.ts)


def semantic_key(event: CanonicalEvent, bucket_seconds: int = DEFAULT_BUCKET_SECONDS) -> str:
    """Return the merge-time identity key for ``event`` (see module docstring)."""
    payload = event.payload
    intent_id = event.scope.intent_id if event.scope and event.scope.intent_id else ""

    match event.kind:
        case EnumEventKind.SESSION_START | EnumEventKind.SESSION_END:
            return event.kind.value
        case EnumEventKind.INTENT:
            text = semantic_norm(_text(_first_present(payload, "description", "title")))
            return f"intent:{text}"
        case EnumEventKind.TOOL_CALL:
            details = payload.get("details")
            raw_target = payload.get("target")
            if raw_target is None and isinstance(details, Mapping):
                raw_target = details.get("raw")
            action = semantic_norm(_text(payload.get("action")), 80)
            target = semantic_norm(_text(raw_target), 200)
            return f"tool_call:{event.actor.type.value}:{action}:{target}"
        case EnumEventKind.ARTIFACT_CREATED:
            artifact_type = _text(payload.get("artifact_type"))
            text = semantic_norm(_text(_first_present(payload, "text", "summary")), 300)
            return f"artifact:{artifact_type}:{intent_id}:{text}"
        case EnumEventKind.TOKEN_USAGE_CHECKPOINT:
            return f"token_usage:{ts_bucket(event.ts, bucket_seconds)}:{intent_id}"
        case _:
            return _structural_key(event, ts_bucket(event.ts, bucket_seconds))


# =============================================================================
# Running index
# =============================================================================


class DedupIndex:
    """Running key set for one target session.

    Example:
        >>> index = DedupIndex.for_session(existing_events)
        >>> accepted = [e for e in candidates if index.admit(e)]
    """

    def __init__(
        self,
        strategy: EnumDedupStrategy,
        existing: Iterable[CanonicalEvent] = (),
        bucket_seconds: int = DEFAULT_BUCKET_SECONDS,
    ) -> None:
        self.strategy = strategy
        self._bucket_seconds = bucket_seconds
        self._keys: set[str] = {self.key(event) for event in existing}

    @classmethod
    def for_session(
        cls,
        existing: list[CanonicalEvent],
        bucket_seconds: int = DEFAULT_BUCKET_SECONDS,
    ) -> DedupIndex:
        """Semantic keys when merging into existing events, exact keys otherwise."""
        strategy = EnumDedupStrategy.SEMANTIC if existing else EnumDedupStrategy.EXACT
        return cls(strategy, existing, bucket_seconds)

    def __len__(self) -> int:
        return len(self._keys)

    def key(self, event: CanonicalEvent) -> str:
        if self.strategy == EnumDedupStrategy.SEMANTIC:
            return semantic_key(event, self._bucket_seconds)
        return exact_key(event)

    def contains(self, event: CanonicalEvent) -> bool:
        return self.key(event) in self._keys

    def add(self, event: CanonicalEvent) -> None:
        self._keys.add(self.key(event))

    def admit(self, event: CanonicalEvent) -> bool:
        """Record ``event`` and return True unless its key was already seen."""
        key = self.key(event)
        if key in self._keys:
            logger.debug(
                "Skipping duplicate event",
                extra={
                    "session_id": event.session_id,
                    "kind": event.kind.value,
                    "strategy": self.strategy.value,
                },
            )
            return False
        self._keys.add(key)
        return True


__all__ = [
    "DEFAULT_BUCKET_SECONDS",
    "DedupIndex",
    "EnumDedupStrategy",
    "exact_key",
    "semantic_key",
    "semantic_norm",
    "ts_bucket",
]
