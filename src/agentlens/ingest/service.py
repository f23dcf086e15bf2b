# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Ingest entry point: raw bytes in, canonical session log out.

Flow for one call:

    1. Resolve the adapter (UnsupportedAdapterError before any write).
    2. Parse raw text into an AdaptedSession.
    3. Resolve the target session (SessionIdentityResolver).
    4. Read the target's existing events (strict).
    5. Build canonical events, continuing the existing seq counter, and
       drop duplicates through a DedupIndex (semantic keys when merging
       into existing events, exact keys otherwise).
    6. Persist through MergeWriter, then write the raw sidecar.

Re-ingesting identical content is idempotent with dedup on: the second call
resolves to the same session and skips every event.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from agentlens.events.models import CanonicalEvent
from agentlens.events.sequencing import next_seq
from agentlens.events.timestamps import now_iso
from agentlens.ingest.adapters.registry import AUTO_ADAPTER, AdapterRegistry, default_registry
from agentlens.ingest.config import ConfigIngest
from agentlens.ingest.dedup import DedupIndex
from agentlens.ingest.resolver import EnumMergeStrategy, SessionIdentityResolver
from agentlens.ingest.writer import EnumWriteMode, MergeWriter, build_canonical_event
from agentlens.lib.errors import EnumCoreErrorCode, PersistenceIOError
from agentlens.storage.session_log import SessionLogStore

logger = logging.getLogger(__name__)


class ModelIngestResult(BaseModel):
    """Outcome of one ingest call."""

    model_config = ConfigDict(frozen=True, extra="forbid", from_attributes=True)

    session_id: str
    adapter: str
    inserted: int = Field(ge=0)
    skipped_duplicates: int = Field(ge=0)
    session_path: Path
    raw_path: Path
    merge_strategy: EnumMergeStrategy
    merge_confidence: float | None = None
    write_mode: EnumWriteMode


class IngestService:
    """Ingests raw session logs into the sessions directory.

    Example:
        >>> service = IngestService(SessionLogStore(ConfigSessionStorage(sessions_dir=tmp)))
        >>> result = service.ingest_file(Path("rollout.jsonl"))
        >>> result.merge_strategy
        <EnumMergeStrategy.NEW_SESSION: 'new_session'>
    """

    def __init__(
        self,
        log_store: SessionLogStore,
        config: ConfigIngest | None = None,
        registry: AdapterRegistry | None = None,
    ) -> None:
        self._log_store = log_store
        self._config = config or ConfigIngest()
        self._registry = registry or default_registry()
        self._resolver = SessionIdentityResolver(log_store, self._config)
        self._writer = MergeWriter(log_store)

    @property
    def resolver(self) -> SessionIdentityResolver:
        return self._resolver

    def ingest_raw(
        self,
        raw: bytes | str,
        adapter: str = AUTO_ADAPTER,
        merge_session_id: str | None = None,
        dedupe: bool | None = None,
    ) -> ModelIngestResult:
        """Ingest raw log content.

        Args:
            raw: Raw log content; bytes are decoded as UTF-8.
            adapter: Registered adapter name, or "auto" to sniff the format.
            merge_session_id: Force the target session (explicit_merge).
            dedupe: Skip duplicate events; defaults to ``dedupe_default``.

        Raises:
            UnsupportedAdapterError: No adapter for ``adapter`` or the input.
            ParseError: Raw input or the target's canonical log is malformed.
            PersistenceIOError: Writing the canonical log or sidecar failed.
        """
        text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        raw_adapter = self._registry.resolve(adapter, text)
        adapted = raw_adapter.parse(text)
        source = adapted.source or raw_adapter.name

        selection = self._resolver.resolve(adapted, merge_session_id)
        session_id = selection.session_id
        existing = self._log_store.read_events(session_id)
        do_dedupe = self._config.dedupe_default if dedupe is None else dedupe
        fallback_ts = now_iso()

        index = DedupIndex.for_session(existing, self._config.dedupe_bucket_seconds)
        seq = next_seq(existing)
        accepted: list[CanonicalEvent] = []
        skipped = 0
        for adapted_event in adapted.events:
            candidate = build_canonical_event(session_id, seq, adapted_event, fallback_ts)
            if do_dedupe and not index.admit(candidate):
                skipped += 1
                continue
            accepted.append(candidate)
            seq += 1

        write_mode, session_path = self._writer.write(session_id, existing, accepted)
        try:
            raw_path = self._writer.write_raw(session_id, source, raw)
        except PersistenceIOError:
            logger.error(
                "Raw sidecar write failed after canonical log was written",
                extra={"session_id": session_id, "source": source},
            )
            raise

        logger.info(
            "Ingest completed",
            extra={
                "session_id": session_id,
                "adapter": source,
                "inserted": len(accepted),
                "skipped_duplicates": skipped,
                "merge_strategy": selection.strategy.value,
                "write_mode": write_mode.value,
            },
        )
        return ModelIngestResult(
            session_id=session_id,
            adapter=source,
            inserted=len(accepted),
            skipped_duplicates=skipped,
            session_path=session_path,
            raw_path=raw_path,
            merge_strategy=selection.strategy,
            merge_confidence=selection.confidence,
            write_mode=write_mode,
        )

    def ingest_file(
        self,
        path: Path,
        adapter: str = AUTO_ADAPTER,
        merge_session_id: str | None = None,
        dedupe: bool | None = None,
    ) -> ModelIngestResult:
        """Read ``path`` and ingest its content (see ingest_raw)."""
        try:
            raw = Path(path).read_bytes()
        except FileNotFoundError as exc:
            raise PersistenceIOError(
                f"Raw log not found: {path}",
                code=EnumCoreErrorCode.FILE_NOT_FOUND,
                details={"path": str(path)},
            ) from exc
        except OSError as exc:
            raise PersistenceIOError(
                f"Cannot read raw log {path}: {exc}", details={"path": str(path)}
            ) from exc
        return self.ingest_raw(
            raw, adapter=adapter, merge_session_id=merge_session_id, dedupe=dedupe
        )


__all__ = ["IngestService", "ModelIngestResult"]
