# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Adapter for Codex CLI rollout logs.

Record types handled (everything else is ignored):

    session_meta                      -> session_start
    event_msg/user_message            -> intent (opens a new intent)
    event_msg/token_count             -> token_usage_checkpoint
    event_msg/agent_reasoning         -> artifact_created (reasoning)
    event_msg/agent_message           -> artifact_created (assistant_message)
    response_item/*_call              -> tool_call (agent)
    response_item/*_call_output       -> tool_call (tool)
    response_item/reasoning, message  -> artifact_created

A session_end is synthesized at the timestamp of the last record. Missing
timestamps are left unset; ingest substitutes its own wall-clock time.
"""

from __future__ import annotations

from typing import Any

from agentlens.events.enums import EnumActorType, EnumEventKind, EnumVisibility
from agentlens.events.models import AdaptedEvent, AdaptedSession, ModelActor, ModelEventScope
from agentlens.ingest.adapters.base import SNIFF_CHARS, iter_json_records
from agentlens.lib.errors import ParseError

ADAPTER_NAME = "codex_jsonl"

_AGENT = ModelActor(type=EnumActorType.AGENT, id="codex")
_SYSTEM = ModelActor(type=EnumActorType.SYSTEM, id="codex")
_TOOL = ModelActor(type=EnumActorType.TOOL, id="codex-tool")
_USER = ModelActor(type=EnumActorType.USER, id="codex-user")

_CALL_TYPES = frozenset({"function_call", "custom_tool_call", "web_search_call"})
_CALL_OUTPUT_TYPES = frozenset({"function_call_output", "custom_tool_call_output"})

_USAGE_FIELDS = (
    "input_tokens",
    "cached_input_tokens",
    "output_tokens",
    "reasoning_output_tokens",
    "total_tokens",
)


def _obj(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _short(value: Any, limit: int = 800) -> str | None:
    """Trimmed string, ellipsized past ``limit``; None for non-strings and blanks."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    return f"{text[:limit]}..." if len(text) > limit else text


def _number(value: Any) -> int | float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return value


def _scope(intent_id: str | None, module: str | None = None) -> ModelEventScope | None:
    if intent_id is None and module is None:
        return None
    return ModelEventScope(intent_id=intent_id, module=module)


def normalize_token_usage(info: Any) -> dict[str, Any] | None:
    """Map a Codex ``token_count.info`` block to prompt/completion/total counts.

    ``last_token_usage`` wins over ``total_token_usage`` when present.
    """
    info = _obj(info)
    last = _obj(info.get("last_token_usage"))
    primary = last or _obj(info.get("total_token_usage"))
    if not primary:
        return None
    usage: dict[str, Any] = {
        "prompt_tokens": _number(primary.get("input_tokens")),
        "completion_tokens": _number(primary.get("output_tokens")),
        "source_model_context_window": _number(info.get("model_context_window")),
    }
    for field in _USAGE_FIELDS:
        usage[field] = _number(primary.get(field))
    return usage


class CodexJsonlAdapter:
    """Parses Codex CLI ``rollout-*.jsonl`` files."""

    @property
    def name(self) -> str:
        return ADAPTER_NAME

    def can_adapt(self, text: str) -> bool:
        sample = text[:SNIFF_CHARS]
        return '"type":"session_meta"' in sample or '"type": "session_meta"' in sample

    def parse(self, text: str) -> AdaptedSession:
        records = [record for _, record in iter_json_records(text, ADAPTER_NAME)]
        meta_record = next((r for r in records if r.get("type") == "session_meta"), None)
        if meta_record is None:
            raise ParseError(f"No session_meta record found in {ADAPTER_NAME} input")

        meta = _obj(meta_record.get("payload"))
        session_id = _short(meta.get("id"))
        goal = _short(meta.get("user_goal")) or _short(meta.get("goal"))
        user_prompt = _short(meta.get("user_prompt"), 3000)
        started_at = _short(meta.get("timestamp")) or _short(meta_record.get("timestamp"))
        ended_at = _short(records[-1].get("timestamp"))

        events: list[AdaptedEvent] = [
            AdaptedEvent(
                kind=EnumEventKind.SESSION_START,
                ts=started_at,
                actor=_SYSTEM,
                payload={
                    "goal": goal or "Imported Codex session",
                    "user_prompt": user_prompt,
                    "repo": _short(_obj(meta.get("git")).get("repository_url")),
                    "branch": _short(_obj(meta.get("git")).get("branch")),
                    "source": ADAPTER_NAME,
                },
                derived=True,
                confidence=0.95,
                visibility=EnumVisibility.REVIEW,
            )
        ]

        intent_counter = 0
        intent_id: str | None = None
        for record in records:
            record_type = record.get("type")
            ts = _short(record.get("timestamp"))
            payload = _obj(record.get("payload"))

            if record_type == "event_msg":
                if payload.get("type") == "user_message" and _short(payload.get("message"), 3000):
                    intent_counter += 1
                    intent_id = f"intent_{session_id or 'codex'}_{intent_counter}"
                events.extend(self._map_event_msg(payload, ts, intent_id))
            elif record_type == "response_item":
                events.extend(self._map_response_item(payload, ts, intent_id))

        events.append(
            AdaptedEvent(
                kind=EnumEventKind.SESSION_END,
                ts=ended_at,
                actor=_SYSTEM,
                payload={
                    "outcome": "unknown",
                    "summary": "Imported from raw Codex JSONL",
                    "source": ADAPTER_NAME,
                },
                derived=True,
                confidence=0.9,
                visibility=EnumVisibility.REVIEW,
            )
        )

        return AdaptedSession(
            source=ADAPTER_NAME,
            session_id=session_id,
            goal=goal,
            user_prompt=user_prompt,
            started_at=started_at,
            ended_at=ended_at,
            events=events,
        )

    # =========================================================================
    # Record mappers
    # =========================================================================

    @staticmethod
    def _map_event_msg(
        payload: dict[str, Any], ts: str | None, intent_id: str | None
    ) -> list[AdaptedEvent]:
        msg_type = payload.get("type")

        if msg_type == "user_message":
            message = _short(payload.get("message"), 3000)
            if not message:
                return []
            return [
                AdaptedEvent(
                    kind=EnumEventKind.INTENT,
                    ts=ts,
                    actor=_USER,
                    scope=_scope(intent_id),
                    payload={
                        "intent_id": intent_id,
                        "title": message.split("\n")[0][:120] or "User message",
                        "description": message,
                        "source": "codex_event_msg",
                    },
                    derived=True,
                    confidence=0.85,
                    visibility=EnumVisibility.REVIEW,
                )
            ]

        if msg_type == "token_count":
            return [
                AdaptedEvent(
                    kind=EnumEventKind.TOKEN_USAGE_CHECKPOINT,
                    ts=ts,
                    actor=_SYSTEM,
                    scope=_scope(intent_id, "llm"),
                    payload={
                        "source": "codex_event_msg",
                        "usage": normalize_token_usage(payload.get("info")),
                        "raw": payload.get("info"),
                    },
                    derived=True,
                    confidence=0.75,
                    visibility=EnumVisibility.RAW,
                )
            ]

        if msg_type in ("agent_reasoning", "agent_message"):
            is_reasoning = msg_type == "agent_reasoning"
            text = _short(payload.get("text" if is_reasoning else "message"), 3500)
            if not text:
                return []
            return [
                AdaptedEvent(
                    kind=EnumEventKind.ARTIFACT_CREATED,
                    ts=ts,
                    actor=_AGENT,
                    scope=_scope(intent_id, "reasoning" if is_reasoning else "assistant_output"),
                    payload={
                        "artifact_type": "reasoning" if is_reasoning else "assistant_message",
                        "text": text,
                        "source": "codex_event_msg",
                    },
                    derived=True,
                    confidence=0.9 if is_reasoning else 0.85,
                    visibility=EnumVisibility.DEBUG if is_reasoning else EnumVisibility.REVIEW,
                )
            ]

        return []

    @staticmethod
    def _map_response_item(
        payload: dict[str, Any], ts: str | None, intent_id: str | None
    ) -> list[AdaptedEvent]:
        item_type = _short(payload.get("type")) or "unknown"

        if item_type in _CALL_TYPES:
            action = (
                _short(payload.get("name"))
                or _short(_obj(payload.get("action")).get("type"))
                or item_type
            )
            return [
                AdaptedEvent(
                    kind=EnumEventKind.TOOL_CALL,
                    ts=ts,
                    actor=_AGENT,
                    scope=_scope(intent_id),
                    payload={
                        "category": "search" if item_type == "web_search_call" else "tool",
                        "action": action,
                        "target": _short(payload.get("arguments"), 1600)
                        or _short(payload.get("input"), 1600),
                        "details": {
                            "call_id": _short(payload.get("call_id")),
                            "status": _short(payload.get("status")),
                            "source": "codex_response_item",
                        },
                    },
                    derived=True,
                    confidence=0.85,
                    visibility=EnumVisibility.RAW,
                )
            ]

        if item_type in _CALL_OUTPUT_TYPES:
            return [
                AdaptedEvent(
                    kind=EnumEventKind.TOOL_CALL,
                    ts=ts,
                    actor=_TOOL,
                    scope=_scope(intent_id),
                    payload={
                        "category": "execution",
                        "action": item_type,
                        "target": _short(payload.get("call_id")),
                        "details": {
                            "output": _short(payload.get("output"), 3500),
                            "source": "codex_response_item",
                        },
                    },
                    derived=True,
                    confidence=0.8,
                    visibility=EnumVisibility.RAW,
                )
            ]

        if item_type == "reasoning":
            raw_summary = payload.get("summary")
            summary_parts = [
                _short(_obj(entry).get("text"), 500)
                for entry in (raw_summary if isinstance(raw_summary, list) else [])
            ]
            summary = " ".join(part for part in summary_parts if part) or None
            encrypted = _short(payload.get("encrypted_content"), 400)
            if not summary and not encrypted:
                return []
            return [
                AdaptedEvent(
                    kind=EnumEventKind.ARTIFACT_CREATED,
                    ts=ts,
                    actor=_AGENT,
                    scope=_scope(intent_id, "reasoning"),
                    payload={
                        "artifact_type": "reasoning",
                        "summary": summary,
                        "encrypted_content_preview": encrypted,
                        "source": "codex_response_item",
                    },
                    derived=True,
                    confidence=0.9,
                    visibility=EnumVisibility.DEBUG,
                )
            ]

        if item_type == "message":
            content = payload.get("content")
            texts = [
                _short(_obj(entry).get("text"), 3000)
                for entry in (content if isinstance(content, list) else [])
            ]
            merged = "\n".join(t for t in texts if t).strip()
            if not merged:
                return []
            return [
                AdaptedEvent(
                    kind=EnumEventKind.ARTIFACT_CREATED,
                    ts=ts,
                    actor=_AGENT,
                    scope=_scope(intent_id, "assistant_output"),
                    payload={
                        "artifact_type": "assistant_message",
                        "role": _short(payload.get("role")),
                        "phase": _short(payload.get("phase")),
                        "text": _short(merged, 3200),
                        "source": "codex_response_item",
                    },
                    derived=True,
                    confidence=0.85,
                    visibility=EnumVisibility.REVIEW,
                )
            ]

        return []


__all__ = ["ADAPTER_NAME", "CodexJsonlAdapter", "normalize_token_usage"]
