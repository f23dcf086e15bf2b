# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Raw-log ingestion: adapters, identity resolution, dedup and merge writes.

Key Components:
    - IngestService: the ingest entry point
    - SessionIdentityResolver: explicit / adapted id / fingerprint / new session
    - DedupIndex: exact and semantic duplicate detection
    - MergeWriter: append, full rewrite, raw sidecar
"""

from agentlens.ingest.config import ConfigIngest
from agentlens.ingest.dedup import (
    DedupIndex,
    EnumDedupStrategy,
    exact_key,
    semantic_key,
    ts_bucket,
)
from agentlens.ingest.fingerprint import (
    ModelSessionFingerprint,
    fingerprint_from_events,
    normalize_fingerprint,
    prompt_score,
    time_score,
)
from agentlens.ingest.resolver import (
    EnumMergeStrategy,
    ModelSessionSelection,
    SessionIdentityResolver,
)
from agentlens.ingest.service import IngestService, ModelIngestResult
from agentlens.ingest.writer import EnumWriteMode, MergeWriter, build_canonical_event

__all__ = [
    "ConfigIngest",
    "DedupIndex",
    "EnumDedupStrategy",
    "EnumMergeStrategy",
    "EnumWriteMode",
    "IngestService",
    "MergeWriter",
    "ModelIngestResult",
    "ModelSessionFingerprint",
    "ModelSessionSelection",
    "SessionIdentityResolver",
    "build_canonical_event",
    "exact_key",
    "fingerprint_from_events",
    "normalize_fingerprint",
    "prompt_score",
    "semantic_key",
    "time_score",
    "ts_bucket",
]
