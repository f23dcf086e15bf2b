# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Adapter contract.

An adapter turns one vendor's raw session log into an AdaptedSession. Its
internal parsing is private; ingest only relies on this protocol.

Contract:
    - ``name`` is stable; it becomes the raw sidecar's source tag unless the
      adapter reports a different ``AdaptedSession.source``.
    - ``can_adapt`` is cheap and side-effect free; it inspects a prefix of
      the text only.
    - ``parse`` raises ParseError (with a line number where one applies)
      for input it cannot read. It never writes anything.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any, Protocol, runtime_checkable

from agentlens.events.models import AdaptedSession
from agentlens.lib.errors import ParseError

# Prefix inspected by can_adapt implementations
SNIFF_CHARS = 3000


@runtime_checkable
class ProtocolRawAdapter(Protocol):
    """Capability interface for raw-log adapters."""

    @property
    def name(self) -> str:
        """Registry key for this adapter."""
        ...

    def can_adapt(self, text: str) -> bool:
        """Return True if ``text`` looks like this adapter's format."""
        ...

    def parse(self, text: str) -> AdaptedSession:
        """Convert raw text into an AdaptedSession.

        Raises:
            ParseError: The input is not valid for this format.
        """
        ...


def iter_json_records(text: str, source: str) -> Iterator[tuple[int, dict[str, Any]]]:
    """Yield ``(line_number, record)`` for every non-blank JSONL line.

    Raises:
        ParseError: A line is not a JSON object.
    """
    for line_number, line in enumerate(text.split("\n"), start=1):
        stripped = line.strip()
        if not stripped:
            continue
        try:
            record = json.loads(stripped)
        except json.JSONDecodeError as exc:
            raise ParseError(
                f"Invalid JSONL in {source} input at line {line_number}: {exc.msg}",
                line_number=line_number,
                details={"source": source},
            ) from exc
        if not isinstance(record, dict):
            raise ParseError(
                f"Expected a JSON object in {source} input at line {line_number}",
                line_number=line_number,
                details={"source": source},
            )
        yield line_number, record


def first_json_record(text: str) -> dict[str, Any] | None:
    """Best-effort parse of the first non-blank line, for format sniffing."""
    first_line = text.lstrip().split("\n", 1)[0].strip()
    if not first_line:
        return None
    try:
        record = json.loads(first_line)
    except json.JSONDecodeError:
        return None
    return record if isinstance(record, dict) else None


__all__ = [
    "SNIFF_CHARS",
    "ProtocolRawAdapter",
    "first_json_record",
    "iter_json_records",
]
