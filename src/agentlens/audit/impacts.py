# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Impact aggregation and blast-radius classification.

Path heuristics (case-insensitive):
    public API   contains /api/, /routes/ or /controller, or ends in /index.ts
    schema       contains /migrations/ or /migration/, ends in .sql, or
                 names schema.prisma
    dependency   basename is a package manifest or lockfile
                 (package.json, pnpm-lock.yaml, package-lock.json, yarn.lock,
                 pyproject.toml, requirements.txt, poetry.lock), or the
                 file_op payload sets ``dependency_added``

Blast radius:
    large   public API or schema hit, or >= 10 files
    medium  dependency hit, or >= 4 files
    small   otherwise
"""

from __future__ import annotations

from collections.abc import Iterable
from posixpath import basename

from agentlens.audit.enums import EnumBlastRadius, EnumCriticality
from agentlens.audit.models import ModelFileStat, ModelImpactArtifact
from agentlens.audit.segmentation import file_target
from agentlens.events.enums import EnumEventKind
from agentlens.events.models import CanonicalEvent
from agentlens.events.payloads import FileOpPayload

SESSION_IMPACT_ID = "impact_session_total"

LARGE_BLAST_FILE_COUNT = 10
MEDIUM_BLAST_FILE_COUNT = 4

PUBLIC_API_MARKERS = ("/api/", "/routes/", "/controller")
PUBLIC_API_SUFFIXES = ("/index.ts",)
SCHEMA_MARKERS = ("/migrations/", "/migration/", "schema.prisma")
SCHEMA_SUFFIXES = (".sql",)
DEPENDENCY_MANIFESTS = frozenset(
    {
        "package.json",
        "pnpm-lock.yaml",
        "package-lock.json",
        "yarn.lock",
        "pyproject.toml",
        "requirements.txt",
        "poetry.lock",
    }
)


def module_of(path: str) -> str:
    """First path segment, or ``root`` for an empty path."""
    parts = [part for part in path.split("/") if part]
    return parts[0] if parts else "root"


def classify_path(path: str) -> list[EnumCriticality]:
    lower = path.lower()
    hits: list[EnumCriticality] = []
    if any(m in lower for m in PUBLIC_API_MARKERS) or lower.endswith(PUBLIC_API_SUFFIXES):
        hits.append(EnumCriticality.PUBLIC_API)
    if any(m in lower for m in SCHEMA_MARKERS) or lower.endswith(SCHEMA_SUFFIXES):
        hits.append(EnumCriticality.SCHEMA)
    if basename(lower) in DEPENDENCY_MANIFESTS:
        hits.append(EnumCriticality.DEPENDENCY)
    return hits


def blast_radius(
    file_count: int,
    public_api: bool,
    schema: bool,
    dependency: bool,
) -> EnumBlastRadius:
    if public_api or schema or file_count >= LARGE_BLAST_FILE_COUNT:
        return EnumBlastRadius.LARGE
    if dependency or file_count >= MEDIUM_BLAST_FILE_COUNT:
        return EnumBlastRadius.MEDIUM
    return EnumBlastRadius.SMALL


def derive_impact(
    impact_id: str,
    intent_id: str | None,
    events: Iterable[CanonicalEvent],
) -> ModelImpactArtifact:
    """Aggregate the file_op events in ``events`` into one impact."""
    edit_counts: dict[str, int] = {}
    changed: dict[str, float] = {}
    criticality: dict[str, list[EnumCriticality]] = {}
    dependency_flag = False
    lines_added = 0.0
    lines_removed = 0.0

    for event in events:
        if event.kind != EnumEventKind.FILE_OP:
            continue
        path = file_target(event)
        if not path:
            continue
        payload = FileOpPayload.model_validate(event.payload)
        edit_counts[path] = edit_counts.get(path, 0) + 1
        changed[path] = changed.get(path, 0.0) + payload.changed_lines
        criticality.setdefault(path, classify_path(path))
        dependency_flag = dependency_flag or payload.dependency_added is True
        lines_added += payload.added_lines
        lines_removed += payload.removed_lines

    hits = {hit for path_hits in criticality.values() for hit in path_hits}
    public_api = EnumCriticality.PUBLIC_API in hits
    schema = EnumCriticality.SCHEMA in hits
    dependency = dependency_flag or EnumCriticality.DEPENDENCY in hits
    files = list(edit_counts)

    return ModelImpactArtifact(
        id=impact_id,
        intent_id=intent_id,
        files_touched=files,
        modules_affected=list(dict.fromkeys(module_of(f) for f in files)),
        public_api_changed=public_api,
        dependency_added=dependency,
        schema_changed=schema,
        lines_added=lines_added,
        lines_removed=lines_removed,
        blast_radius=blast_radius(len(files), public_api, schema, dependency),
        file_stats=[
            ModelFileStat(
                file=f,
                module=module_of(f),
                edit_count=edit_counts[f],
                lines_changed=changed[f],
                criticality=criticality[f],
            )
            for f in files
        ],
    )


__all__ = [
    "SESSION_IMPACT_ID",
    "blast_radius",
    "classify_path",
    "derive_impact",
    "module_of",
]
