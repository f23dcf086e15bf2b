# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Error codes and exception classes for agentlens.

This module is the single source of truth for error handling across all
agentlens packages. Every exception raised on purpose by the library is an
``AgentLensError`` carrying a stable ``EnumCoreErrorCode`` so callers (the CLI,
a protocol layer) can map failures without string matching.

Recoverability:
    - NoActiveSessionError: recoverable, start or resume a session.
    - UnsupportedAdapterError: raised before anything is written.
    - ParseError: a canonical log is unreadable; never skip it silently.
    - InvalidStateError: caller error (e.g. ending a session twice).
    - PersistenceIOError: surfaced I/O failure; the event was NOT persisted.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any


class EnumCoreErrorCode(str, Enum):
    """Core error codes for agentlens operations."""

    # Validation / parsing
    VALIDATION_ERROR = "VALIDATION_ERROR"
    PARSE_ERROR = "PARSE_ERROR"

    # Ingest
    UNSUPPORTED_ADAPTER = "UNSUPPORTED_ADAPTER"

    # Recorder state machine
    NO_ACTIVE_SESSION = "NO_ACTIVE_SESSION"
    INVALID_STATE = "INVALID_STATE"

    # File/IO errors
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    IO_ERROR = "IO_ERROR"


class AgentLensError(Exception):
    """Base exception class for agentlens operations.

    Attributes:
        code: Error code from EnumCoreErrorCode
        message: Human-readable error message
        details: Additional error context and details
    """

    default_code = EnumCoreErrorCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        code: EnumCoreErrorCode | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code or self.default_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code.value}, message={self.message!r}, "
            f"details={self.details})"
        )


class ParseError(AgentLensError):
    """A canonical log line or raw input record could not be parsed."""

    default_code = EnumCoreErrorCode.PARSE_ERROR

    def __init__(
        self,
        message: str,
        path: Path | str | None = None,
        line_number: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.path = str(path) if path is not None else None
        self.line_number = line_number
        context = dict(details or {})
        if self.path is not None:
            context["path"] = self.path
        if line_number is not None:
            context["line_number"] = line_number
        super().__init__(message, details=context)


class UnsupportedAdapterError(AgentLensError):
    """No registered adapter matches the requested name or input."""

    default_code = EnumCoreErrorCode.UNSUPPORTED_ADAPTER


class NoActiveSessionError(AgentLensError):
    """An operation needs a live session and none exists."""

    default_code = EnumCoreErrorCode.NO_ACTIVE_SESSION


class InvalidStateError(AgentLensError):
    """Operation is not valid for the session's current lifecycle state."""

    default_code = EnumCoreErrorCode.INVALID_STATE


class PersistenceIOError(AgentLensError):
    """Writing to the session directory failed."""

    default_code = EnumCoreErrorCode.IO_ERROR


__all__ = [
    "AgentLensError",
    "EnumCoreErrorCode",
    "InvalidStateError",
    "NoActiveSessionError",
    "ParseError",
    "PersistenceIOError",
    "UnsupportedAdapterError",
]
