# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""JSONL storage for canonical session logs.

Layout (one directory, see ConfigSessionStorage):
    - ``<session_id>.jsonl``: canonical log, one CanonicalEvent per line,
      line order = seq order. Source of truth once any event is written.
    - ``<session_id>.<source>.raw.jsonl``: verbatim copy of ingested raw
      input. Best-effort; never read back as canonical.

Read semantics:
    A malformed line is a hard ParseError naming the line number. The one
    tolerated anomaly is a torn final line (no trailing newline and not
    parseable), left by an interrupted append: it is ignored with a warning
    and the last complete line is treated as truth. The next append cuts
    the fragment off before writing.

Concurrency:
    Single writer per session. Nothing here locks; concurrent writers from
    different processes can interleave lines.
"""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from agentlens.events.models import CanonicalEvent
from agentlens.events.sequencing import by_seq
from agentlens.events.timestamps import format_ts
from agentlens.events.validation import Err, validate_canonical_event
from agentlens.lib.errors import ParseError, PersistenceIOError
from agentlens.storage.config import ConfigSessionStorage

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]")
_LOG_SUFFIX = ".jsonl"
_RAW_MARKER = ".raw."


class ModelSessionFileInfo(BaseModel):
    """Listing entry for one canonical session log."""

    model_config = ConfigDict(frozen=True, extra="forbid", from_attributes=True)

    session_id: str
    path: Path
    size_bytes: int
    updated_at: str


def safe_filename(value: str) -> str:
    """Replace every character outside ``[a-zA-Z0-9._-]`` with ``_``."""
    return _UNSAFE_FILENAME_CHARS.sub("_", value)


def is_raw_sidecar(path: Path) -> bool:
    return _RAW_MARKER in path.name


class SessionLogStore:
    """Reads and writes canonical session logs and raw sidecars.

    Example:
        >>> store = SessionLogStore(ConfigSessionStorage(sessions_dir=tmp_dir))
        >>> store.append_events("sess_1", events)
        >>> store.read_events("sess_1")
    """

    def __init__(self, config: ConfigSessionStorage | None = None) -> None:
        self._config = config or ConfigSessionStorage()
        self._dir = Path(self._config.sessions_dir)

    @property
    def sessions_dir(self) -> Path:
        return self._dir

    # =========================================================================
    # Paths
    # =========================================================================

    def session_path(self, session_id: str) -> Path:
        return self._dir / f"{safe_filename(session_id)}{_LOG_SUFFIX}"

    def raw_sidecar_path(self, session_id: str, source: str) -> Path:
        return self._dir / f"{safe_filename(session_id)}.{safe_filename(source)}.raw{_LOG_SUFFIX}"

    def exists(self, session_id: str) -> bool:
        return self.session_path(session_id).is_file()

    def _ensure_dir(self) -> None:
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceIOError(
                f"Cannot create sessions directory {self._dir}: {exc}",
                details={"sessions_dir": str(self._dir)},
            ) from exc

    # =========================================================================
    # Reads
    # =========================================================================

    def read_events(self, session_id: str) -> list[CanonicalEvent]:
        """Return the session's events in seq order ([] if no log exists)."""
        return self.read_log(self.session_path(session_id))

    def read_log(self, path: Path) -> list[CanonicalEvent]:
        """Parse a canonical log file strictly (see module docstring)."""
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise PersistenceIOError(
                f"Cannot read session log {path}: {exc}", details={"path": str(path)}
            ) from exc

        lines = text.split("\n")
        torn_tail = bool(text) and not text.endswith("\n")
        last_index = len(lines)
        events: list[CanonicalEvent] = []

        for line_number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            is_tail = torn_tail and line_number == last_index
            try:
                data = json.loads(line)
            except json.JSONDecodeError as exc:
                if is_tail:
                    self._warn_torn_tail(path, line_number)
                    break
                raise ParseError(
                    f"Invalid JSONL in {path} at line {line_number}: {exc.msg}",
                    path=path,
                    line_number=line_number,
                ) from exc

            result = validate_canonical_event(data)
            if isinstance(result, Err):
                if is_tail:
                    self._warn_torn_tail(path, line_number)
                    break
                raise ParseError(
                    f"Invalid event in {path} at line {line_number}: {result.describe()}",
                    path=path,
                    line_number=line_number,
                    details={"fields": [e.field for e in result.errors]},
                )
            events.append(result.value)

        return by_seq(events)

    @staticmethod
    def _warn_torn_tail(path: Path, line_number: int) -> None:
        logger.warning(
            "Ignoring torn final line in session log",
            extra={"path": str(path), "line_number": line_number},
        )

    def mtime_iso(self, session_id: str) -> str | None:
        try:
            stat = self.session_path(session_id).stat()
        except FileNotFoundError:
            return None
        return format_ts(datetime.fromtimestamp(stat.st_mtime, tz=UTC))

    def list_sessions(self) -> list[ModelSessionFileInfo]:
        """List canonical logs newest-first; raw sidecars are skipped."""
        if not self._dir.is_dir():
            return []
        entries: list[ModelSessionFileInfo] = []
        for path in self._dir.glob(f"*{_LOG_SUFFIX}"):
            if is_raw_sidecar(path) or not path.is_file():
                continue
            stat = path.stat()
            entries.append(
                ModelSessionFileInfo(
                    session_id=path.name[: -len(_LOG_SUFFIX)],
                    path=path,
                    size_bytes=stat.st_size,
                    updated_at=format_ts(datetime.fromtimestamp(stat.st_mtime, tz=UTC)),
                )
            )
        entries.sort(key=lambda e: (e.updated_at, e.session_id), reverse=True)
        return entries

    # =========================================================================
    # Writes
    # =========================================================================

    def initialize(self, session_id: str) -> Path:
        """Create an empty log for ``session_id`` if none exists."""
        self._ensure_dir()
        path = self.session_path(session_id)
        try:
            path.touch(exist_ok=True)
        except OSError as exc:
            raise PersistenceIOError(
                f"Cannot create session log {path}: {exc}", details={"path": str(path)}
            ) from exc
        return path

    def append_events(self, session_id: str, events: Iterable[CanonicalEvent]) -> Path:
        """Append events to the session log, one line each."""
        self._ensure_dir()
        path = self.session_path(session_id)
        body = "".join(f"{event.to_json_line()}\n" for event in events)
        try:
            self._repair_tail(path)
            with path.open("a", encoding="utf-8") as handle:
                handle.write(body)
        except OSError as exc:
            raise PersistenceIOError(
                f"Cannot append to session log {path}: {exc}",
                details={"path": str(path), "session_id": session_id},
            ) from exc
        return path

    def write_full(self, session_id: str, events: Iterable[CanonicalEvent]) -> Path:
        """Replace the session log with ``events`` (already sequenced)."""
        self._ensure_dir()
        path = self.session_path(session_id)
        tmp_path = path.with_name(f"{path.name}.tmp")
        body = "".join(f"{event.to_json_line()}\n" for event in events)
        try:
            tmp_path.write_text(body, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as exc:
            raise PersistenceIOError(
                f"Cannot rewrite session log {path}: {exc}",
                details={"path": str(path), "session_id": session_id},
            ) from exc
        return path

    def write_raw_sidecar(self, session_id: str, source: str, raw: bytes | str) -> Path:
        """Write the raw ingest input verbatim next to the canonical log."""
        self._ensure_dir()
        path = self.raw_sidecar_path(session_id, source)
        data = raw.encode("utf-8") if isinstance(raw, str) else raw
        try:
            path.write_bytes(data)
        except OSError as exc:
            raise PersistenceIOError(
                f"Cannot write raw sidecar {path}: {exc}",
                details={"path": str(path), "session_id": session_id, "source": source},
            ) from exc
        return path

    @staticmethod
    def _tail_is_event(tail: bytes) -> bool:
        try:
            data = json.loads(tail)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return False
        return not isinstance(validate_canonical_event(data), Err)

    def _repair_tail(self, path: Path) -> None:
        """Make the log end in a newline before appending.

        A final line without its newline is kept when it reads as a complete
        event, matching ``read_log``; otherwise it is truncated.
        """
        if not path.is_file():
            return
        data = path.read_bytes()
        if not data or data.endswith(b"\n"):
            return
        keep = data.rfind(b"\n") + 1
        if self._tail_is_event(data[keep:]):
            with path.open("ab") as handle:
                handle.write(b"\n")
            return
        logger.warning(
            "Truncating torn final line before append",
            extra={"path": str(path), "dropped_bytes": len(data) - keep},
        )
        with path.open("r+b") as handle:
            handle.truncate(keep)


__all__ = [
    "ModelSessionFileInfo",
    "SessionLogStore",
    "is_raw_sidecar",
    "safe_filename",
]
