# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Raw-log adapters and their registry."""

from agentlens.ingest.adapters.agentlens_jsonl import AgentLensJsonlAdapter
from agentlens.ingest.adapters.base import ProtocolRawAdapter
from agentlens.ingest.adapters.codex_jsonl import CodexJsonlAdapter
from agentlens.ingest.adapters.cursor_raw import CursorRawAdapter
from agentlens.ingest.adapters.registry import AUTO_ADAPTER, AdapterRegistry, default_registry

__all__ = [
    "AUTO_ADAPTER",
    "AdapterRegistry",
    "AgentLensJsonlAdapter",
    "CodexJsonlAdapter",
    "CursorRawAdapter",
    "ProtocolRawAdapter",
    "default_registry",
]
