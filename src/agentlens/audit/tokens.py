# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Token usage aggregation.

Any event whose payload carries a ``usage`` object (or ``details.llm_usage``)
contributes. ``total_tokens`` falls back to prompt + completion. Events with
no positive count are ignored.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from agentlens.audit.models import ModelCategoryTokens, ModelIntentTokens, ModelTokenUsageSummary
from agentlens.audit.segmentation import event_intent_id
from agentlens.events.enums import EnumEventKind
from agentlens.events.models import CanonicalEvent
from agentlens.events.payloads import coerce_number, coerce_text

SESSION_BUCKET = "session"


def _usage_block(payload: Mapping[str, Any]) -> Mapping[str, Any] | None:
    usage = payload.get("usage")
    if isinstance(usage, Mapping):
        return usage
    details = payload.get("details")
    nested = details.get("llm_usage") if isinstance(details, Mapping) else None
    return nested if isinstance(nested, Mapping) else None


def usage_from_event(event: CanonicalEvent) -> tuple[float, float, float, float] | None:
    """(prompt, completion, total, cost) for one event, or None."""
    usage = _usage_block(event.payload)
    if usage is None:
        return None
    prompt = coerce_number(usage.get("prompt_tokens"))
    completion = coerce_number(usage.get("completion_tokens"))
    total = coerce_number(usage.get("total_tokens"))
    if total <= 0:
        total = prompt + completion
    if total <= 0 and prompt <= 0 and completion <= 0:
        return None
    cost = coerce_number(usage.get("estimated_cost_usd"))
    return prompt, completion, total, max(cost, 0.0)


def _category(event: CanonicalEvent) -> str:
    if event.kind == EnumEventKind.FILE_OP:
        return coerce_text(event.payload.get("category")) or "file"
    if event.kind == EnumEventKind.TOOL_CALL:
        return coerce_text(event.payload.get("category")) or "tool"
    return event.kind.value


def summarize_token_usage(events: Sequence[CanonicalEvent]) -> ModelTokenUsageSummary | None:
    prompt = completion = total = cost = 0.0
    seen = False
    by_category: dict[str, float] = {}
    by_intent: dict[str, float] = {}

    for event in events:
        usage = usage_from_event(event)
        if usage is None:
            continue
        seen = True
        e_prompt, e_completion, e_total, e_cost = usage
        prompt += e_prompt
        completion += e_completion
        total += e_total
        cost += e_cost

        category = _category(event)
        by_category[category] = by_category.get(category, 0.0) + e_total
        bucket = event_intent_id(event) or SESSION_BUCKET
        by_intent[bucket] = by_intent.get(bucket, 0.0) + e_total

    if not seen:
        return None

    return ModelTokenUsageSummary(
        prompt_tokens=prompt,
        completion_tokens=completion,
        total_tokens=total,
        estimated_cost_usd=round(cost, 6) if cost > 0 else None,
        by_category=sorted(
            (ModelCategoryTokens(category=k, total_tokens=v) for k, v in by_category.items()),
            key=lambda c: c.total_tokens,
            reverse=True,
        ),
        by_intent=sorted(
            (
                ModelIntentTokens(intent_id=None if k == SESSION_BUCKET else k, total_tokens=v)
                for k, v in by_intent.items()
            ),
            key=lambda i: i.total_tokens,
            reverse=True,
        ),
    )


__all__ = ["summarize_token_usage", "usage_from_event"]
