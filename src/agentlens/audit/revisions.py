# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Revision detection: risky editing patterns.

Per file (file_op events grouped by target path, seq order):
    repeat_file_edits                  edit count > repeated_edit_threshold
    create_then_delete                 both a create and a delete exist
    large_change_after_recent_change   consecutive edits where the later one
                                       changes >= large_change_line_threshold
                                       lines within recent_change_window_ms

Per intent:
    intent_superseded                  a non-final intent that is abandoned
                                       or partial (never the fallback intent)
"""

from __future__ import annotations

from collections.abc import Sequence

from agentlens.audit.config import ConfigAuditPipeline
from agentlens.audit.enums import EnumIntentStatus, EnumRevisionType
from agentlens.audit.models import ModelNormalizedIntent, ModelRevisionArtifact
from agentlens.audit.segmentation import FALLBACK_INTENT_ID, event_intent_id, file_target
from agentlens.events.enums import EnumEventKind
from agentlens.events.models import CanonicalEvent
from agentlens.events.payloads import FileOpPayload
from agentlens.events.timestamps import to_epoch_ms

REPEAT_CONFIDENCE = 0.82
CREATE_DELETE_CONFIDENCE = 0.92
LARGE_QUICK_CONFIDENCE = 0.76
SUPERSEDED_CONFIDENCE = 0.72
SUPERSEDED_MAX_RELATED = 12


def group_file_ops(events: Sequence[CanonicalEvent]) -> dict[str, list[CanonicalEvent]]:
    """file_op events by target path, first-seen file order."""
    by_file: dict[str, list[CanonicalEvent]] = {}
    for event in events:
        if event.kind != EnumEventKind.FILE_OP:
            continue
        target = file_target(event)
        if target:
            by_file.setdefault(target, []).append(event)
    return by_file


def _action(event: CanonicalEvent) -> str | None:
    return FileOpPayload.model_validate(event.payload).action


def _file_revisions(
    file: str,
    ops: list[CanonicalEvent],
    cfg: ConfigAuditPipeline,
) -> list[ModelRevisionArtifact]:
    revisions: list[ModelRevisionArtifact] = []

    if len(ops) > cfg.repeated_edit_threshold:
        revisions.append(
            ModelRevisionArtifact(
                id=f"rev_repeat_{file}",
                intent_id=event_intent_id(ops[0]),
                type=EnumRevisionType.REPEAT_FILE_EDITS,
                file=file,
                related_event_ids=[e.id for e in ops],
                explanation=(
                    f"{file} was modified {len(ops)} times "
                    f"(threshold {cfg.repeated_edit_threshold})."
                ),
                confidence=REPEAT_CONFIDENCE,
            )
        )

    created = next((e for e in ops if _action(e) == "create"), None)
    deleted = next((e for e in ops if _action(e) == "delete"), None)
    if created is not None and deleted is not None:
        revisions.append(
            ModelRevisionArtifact(
                id=f"rev_create_delete_{file}",
                intent_id=event_intent_id(deleted) or event_intent_id(created),
                type=EnumRevisionType.CREATE_THEN_DELETE,
                file=file,
                related_event_ids=[created.id, deleted.id],
                explanation=f"{file} was created and later deleted in the same session.",
                confidence=CREATE_DELETE_CONFIDENCE,
            )
        )

    for prev, curr in zip(ops, ops[1:], strict=False):
        lines = FileOpPayload.model_validate(curr.payload).changed_lines
        prev_ms, curr_ms = to_epoch_ms(prev.ts), to_epoch_ms(curr.ts)
        if prev_ms is None or curr_ms is None:
            continue
        dt = curr_ms - prev_ms
        if lines >= cfg.large_change_line_threshold and 0 <= dt <= cfg.recent_change_window_ms:
            revisions.append(
                ModelRevisionArtifact(
                    id=f"rev_large_quick_{file}_{curr.seq}",
                    intent_id=event_intent_id(curr),
                    type=EnumRevisionType.LARGE_CHANGE_AFTER_RECENT_CHANGE,
                    file=file,
                    related_event_ids=[prev.id, curr.id],
                    explanation=(
                        f"{file} had a large change ({lines:g} lines) shortly after an "
                        f"earlier change ({round(dt / 1000)}s)."
                    ),
                    confidence=LARGE_QUICK_CONFIDENCE,
                )
            )

    return revisions


def derive_revisions(
    events: Sequence[CanonicalEvent],
    intents: Sequence[ModelNormalizedIntent],
    cfg: ConfigAuditPipeline,
) -> list[ModelRevisionArtifact]:
    revisions: list[ModelRevisionArtifact] = []
    for file, ops in group_file_ops(events).items():
        revisions.extend(_file_revisions(file, ops, cfg))

    for current, following in zip(intents, intents[1:], strict=False):
        if current.id == FALLBACK_INTENT_ID:
            continue
        if current.status not in (EnumIntentStatus.ABANDONED, EnumIntentStatus.PARTIAL):
            continue
        revisions.append(
            ModelRevisionArtifact(
                id=f"rev_supersede_{current.id}",
                intent_id=current.id,
                type=EnumRevisionType.INTENT_SUPERSEDED,
                related_event_ids=[*current.event_ids, *following.event_ids][
                    :SUPERSEDED_MAX_RELATED
                ],
                explanation=(
                    f'Intent "{current.title}" was superseded by "{following.title}" '
                    "before completion."
                ),
                confidence=SUPERSEDED_CONFIDENCE,
            )
        )
    return revisions


__all__ = ["derive_revisions", "group_file_ops"]
