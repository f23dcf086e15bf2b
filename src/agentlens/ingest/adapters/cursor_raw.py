# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Adapter for raw Cursor chat transcripts.

Cursor exports are plain text, not JSON. Blocks are recognised by markup:

    <user_query>...</user_query>      -> intent (opens a new intent)
    <think>...</think>                -> artifact_created (reasoning)
    "Tool call: ..." line + body      -> tool_call (agent)
    "Tool result: ..." line + body    -> tool_call (tool)
    line with ``*_tokens: N``         -> token_usage_checkpoint

Blocks are emitted in the order they appear in the text. A block's ts is the
first ISO-8601 UTC timestamp found inside it, if any; otherwise it is left
unset and ingest substitutes its own wall-clock time. The session id is left
unset so the resolver can match a re-import to the session it created.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from agentlens.events.enums import EnumActorType, EnumEventKind, EnumVisibility
from agentlens.events.models import AdaptedEvent, AdaptedSession, ModelActor, ModelEventScope
from agentlens.ingest.adapters.base import SNIFF_CHARS

ADAPTER_NAME = "cursor_raw"

_AGENT = ModelActor(type=EnumActorType.AGENT, id="cursor-agent")
_SYSTEM = ModelActor(type=EnumActorType.SYSTEM, id="cursor")
_TOOL = ModelActor(type=EnumActorType.TOOL, id="cursor-tool")
_USER = ModelActor(type=EnumActorType.USER, id="cursor-user")

_TAG_PATTERNS = {
    tag: re.compile(rf"<{tag}>(.*?)</{tag}>", re.IGNORECASE | re.DOTALL)
    for tag in ("user_query", "think")
}
_TOOL_LINE = re.compile(r"^\s*Tool (call|result)\s*:?\s*(.*)$", re.IGNORECASE)
_TAG_LINE = re.compile(r"^\s*<(user_query|think)>", re.IGNORECASE)
_SNIFF_TOOL_LINE = re.compile(r"^\s*Tool (call|result)\s*:?", re.IGNORECASE | re.MULTILINE)
_TOKEN_LINE = re.compile(
    r"^[^\n]*(input_tokens|output_tokens|total_tokens|prompt_tokens|completion_tokens)"
    r"\s*[:=]\s*\d+[^\n]*",
    re.IGNORECASE | re.MULTILINE,
)
_ISO_TS = re.compile(r"\b\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d{1,3})?Z\b")


@dataclass(frozen=True)
class _Block:
    kind: str
    offset: int
    text: str

    @property
    def ts(self) -> str | None:
        match = _ISO_TS.search(self.text)
        return match.group(0) if match else None

    @property
    def first_line(self) -> str:
        return self.text.split("\n", 1)[0]


def _short(value: str, limit: int = 3000) -> str | None:
    text = value.strip()
    if not text:
        return None
    return f"{text[:limit]}..." if len(text) > limit else text


def _scope(intent_id: str | None, module: str | None = None) -> ModelEventScope | None:
    if intent_id is None and module is None:
        return None
    return ModelEventScope(intent_id=intent_id, module=module)


def _tagged_blocks(text: str, tag: str) -> list[_Block]:
    blocks = []
    for match in _TAG_PATTERNS[tag].finditer(text):
        body = _short(match.group(1))
        if body:
            blocks.append(_Block(tag, match.start(), body))
    return blocks


def _tool_blocks(text: str) -> list[_Block]:
    """A tool block runs from its header line to the next tool header or tag line."""
    lines = text.split("\n")
    blocks = []
    offset = 0
    index = 0
    while index < len(lines):
        header = _TOOL_LINE.match(lines[index])
        if header is None:
            offset += len(lines[index]) + 1
            index += 1
            continue

        kind = f"tool_{header.group(1).lower()}"
        start = offset
        body = [header.group(2)] if header.group(2) else []
        offset += len(lines[index]) + 1
        index += 1
        while index < len(lines):
            line = lines[index]
            if _TOOL_LINE.match(line) or _TAG_LINE.match(line):
                break
            body.append(line)
            offset += len(line) + 1
            index += 1

        merged = _short("\n".join(body))
        if merged:
            blocks.append(_Block(kind, start, merged))
    return blocks


def _token_blocks(text: str) -> list[_Block]:
    blocks = []
    for match in _TOKEN_LINE.finditer(text):
        body = _short(match.group(0), 1000)
        if body:
            blocks.append(_Block("token_usage", match.start(), body))
    return blocks


def parse_token_usage(text: str) -> dict[str, int] | None:
    """Pull prompt/completion/total counts out of a ``name: N`` style line.

    ``input_tokens`` and ``output_tokens`` stand in for the prompt and
    completion counts; a missing total is their sum.
    """

    def pull(name: str) -> int | None:
        match = re.search(rf"{name}\s*[:=]\s*(\d+)", text, re.IGNORECASE)
        return int(match.group(1)) if match else None

    prompt = pull("prompt_tokens")
    if prompt is None:
        prompt = pull("input_tokens")
    completion = pull("completion_tokens")
    if completion is None:
        completion = pull("output_tokens")
    total = pull("total_tokens")
    if prompt is None and completion is None and total is None:
        return None
    return {
        "prompt_tokens": prompt or 0,
        "completion_tokens": completion or 0,
        "total_tokens": total if total is not None else (prompt or 0) + (completion or 0),
    }


class CursorRawAdapter:
    """Parses plain-text Cursor transcripts."""

    @property
    def name(self) -> str:
        return ADAPTER_NAME

    def can_adapt(self, text: str) -> bool:
        sample = text[:SNIFF_CHARS]
        return any(
            pattern.search(sample) for pattern in (*_TAG_PATTERNS.values(), _SNIFF_TOOL_LINE)
        )

    def parse(self, text: str) -> AdaptedSession:
        blocks = sorted(
            [
                *_tagged_blocks(text, "user_query"),
                *_tagged_blocks(text, "think"),
                *_tool_blocks(text),
                *_token_blocks(text),
            ],
            key=lambda block: block.offset,
        )
        started_at = blocks[0].ts if blocks else None
        ended_at = blocks[-1].ts if blocks else None

        events = [
            AdaptedEvent(
                kind=EnumEventKind.SESSION_START,
                ts=started_at,
                actor=_SYSTEM,
                payload={"goal": "Imported Cursor raw log", "source": ADAPTER_NAME},
                derived=True,
                confidence=0.9,
                visibility=EnumVisibility.REVIEW,
            )
        ]

        intent_counter = 0
        intent_id: str | None = None
        first_prompt: str | None = None
        for block in blocks:
            if block.kind == "user_query":
                intent_counter += 1
                intent_id = f"intent_cursor_{intent_counter}"
                first_prompt = first_prompt or block.text
            events.append(self._map_block(block, intent_id))

        events.append(
            AdaptedEvent(
                kind=EnumEventKind.SESSION_END,
                ts=ended_at,
                actor=_SYSTEM,
                payload={
                    "outcome": "unknown",
                    "summary": "Imported from raw Cursor log",
                    "source": ADAPTER_NAME,
                },
                derived=True,
                confidence=0.88,
                visibility=EnumVisibility.REVIEW,
            )
        )

        return AdaptedSession(
            source=ADAPTER_NAME,
            goal=first_prompt.split("\n", 1)[0][:200] if first_prompt else None,
            user_prompt=first_prompt,
            started_at=started_at,
            ended_at=ended_at,
            events=events,
        )

    @staticmethod
    def _map_block(block: _Block, intent_id: str | None) -> AdaptedEvent:
        if block.kind == "user_query":
            return AdaptedEvent(
                kind=EnumEventKind.INTENT,
                ts=block.ts,
                actor=_USER,
                scope=_scope(intent_id),
                payload={
                    "intent_id": intent_id,
                    "title": block.first_line[:120] or "User query",
                    "description": block.text,
                    "source": ADAPTER_NAME,
                },
                derived=True,
                confidence=0.92,
                visibility=EnumVisibility.REVIEW,
            )

        if block.kind == "think":
            return AdaptedEvent(
                kind=EnumEventKind.ARTIFACT_CREATED,
                ts=block.ts,
                actor=_AGENT,
                scope=_scope(intent_id, "reasoning"),
                payload={
                    "artifact_type": "reasoning",
                    "text": block.text,
                    "source": ADAPTER_NAME,
                },
                derived=True,
                confidence=0.82,
                visibility=EnumVisibility.DEBUG,
            )

        if block.kind == "tool_call":
            return AdaptedEvent(
                kind=EnumEventKind.TOOL_CALL,
                ts=block.ts,
                actor=_AGENT,
                scope=_scope(intent_id),
                payload={
                    "category": "tool",
                    "action": " ".join(block.first_line.split()[:6]),
                    "details": {"source": ADAPTER_NAME, "raw": block.text},
                },
                derived=True,
                confidence=0.86,
                visibility=EnumVisibility.RAW,
            )

        if block.kind == "tool_result":
            return AdaptedEvent(
                kind=EnumEventKind.TOOL_CALL,
                ts=block.ts,
                actor=_TOOL,
                scope=_scope(intent_id),
                payload={
                    "category": "execution",
                    "action": "tool_result",
                    "details": {"source": ADAPTER_NAME, "output": _short(block.text, 3500)},
                },
                derived=True,
                confidence=0.84,
                visibility=EnumVisibility.RAW,
            )

        return AdaptedEvent(
            kind=EnumEventKind.TOKEN_USAGE_CHECKPOINT,
            ts=block.ts,
            actor=_SYSTEM,
            scope=_scope(intent_id, "llm"),
            payload={
                "usage": parse_token_usage(block.text),
                "raw": block.text,
                "source": ADAPTER_NAME,
            },
            derived=True,
            confidence=0.72,
            visibility=EnumVisibility.RAW,
        )


__all__ = ["ADAPTER_NAME", "CursorRawAdapter", "parse_token_usage"]
