# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Shared library code for agentlens."""

from agentlens.lib.errors import (
    AgentLensError,
    EnumCoreErrorCode,
    InvalidStateError,
    NoActiveSessionError,
    ParseError,
    PersistenceIOError,
    UnsupportedAdapterError,
)

__all__ = [
    "AgentLensError",
    "EnumCoreErrorCode",
    "InvalidStateError",
    "NoActiveSessionError",
    "ParseError",
    "PersistenceIOError",
    "UnsupportedAdapterError",
]
