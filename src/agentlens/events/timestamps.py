# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Timestamp helpers.

Canonical timestamps are ISO-8601 UTC strings with millisecond precision and
a ``Z`` suffix (``2026-02-15T10:00:00.000Z``). Fixed width means lexical
comparison of two canonical timestamps equals chronological comparison,
which the full-rewrite sort relies on.
"""

from __future__ import annotations

from datetime import UTC, datetime


def now_utc() -> datetime:
    return datetime.now(UTC)


def format_ts(value: datetime) -> str:
    """Format an aware (or naive, assumed UTC) datetime canonically."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_ts(raw: object) -> datetime | None:
    """Parse an ISO-8601 string into an aware UTC datetime.

    Returns None for non-strings, blank strings and unparseable input.
    """
    if not isinstance(raw, str) or not raw.strip():
        return None
    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def canonical_ts(raw: object, fallback: str) -> str:
    """Return ``raw`` in canonical form, or ``fallback`` if it does not parse."""
    parsed = parse_ts(raw)
    return format_ts(parsed) if parsed is not None else fallback


def to_epoch_ms(raw: object) -> int | None:
    parsed = parse_ts(raw)
    if parsed is None:
        return None
    return int(parsed.timestamp() * 1000)


def now_iso() -> str:
    return format_ts(now_utc())


def now_epoch_ms() -> int:
    return int(now_utc().timestamp() * 1000)


__all__ = [
    "canonical_ts",
    "format_ts",
    "now_epoch_ms",
    "now_iso",
    "now_utc",
    "parse_ts",
    "to_epoch_ms",
]
