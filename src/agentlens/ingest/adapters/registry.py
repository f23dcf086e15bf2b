# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Adapter registry.

Maps adapter names to ProtocolRawAdapter instances. ``"auto"`` selects the
first registered adapter whose ``can_adapt`` accepts the input, in
registration order, so more specific formats are registered first. The
plain-text Cursor sniff is the loosest and goes last.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from agentlens.ingest.adapters.agentlens_jsonl import AgentLensJsonlAdapter
from agentlens.ingest.adapters.base import ProtocolRawAdapter
from agentlens.ingest.adapters.codex_jsonl import CodexJsonlAdapter
from agentlens.ingest.adapters.cursor_raw import CursorRawAdapter
from agentlens.lib.errors import UnsupportedAdapterError

logger = logging.getLogger(__name__)

AUTO_ADAPTER = "auto"


class AdapterRegistry:
    """Ordered name -> adapter mapping."""

    def __init__(self, adapters: list[ProtocolRawAdapter] | None = None) -> None:
        self._adapters: dict[str, ProtocolRawAdapter] = {}
        for adapter in adapters or []:
            self.register(adapter)

    def register(self, adapter: ProtocolRawAdapter) -> None:
        if not isinstance(adapter, ProtocolRawAdapter):
            raise TypeError(f"{type(adapter).__name__} does not implement ProtocolRawAdapter")
        if adapter.name == AUTO_ADAPTER:
            raise ValueError(f"Adapter name {AUTO_ADAPTER!r} is reserved")
        if adapter.name in self._adapters:
            raise ValueError(f"Adapter already registered: {adapter.name}")
        self._adapters[adapter.name] = adapter

    @property
    def names(self) -> list[str]:
        return list(self._adapters)

    def get(self, name: str) -> ProtocolRawAdapter:
        try:
            return self._adapters[name]
        except KeyError:
            raise UnsupportedAdapterError(
                f"Unknown adapter: {name}",
                details={"adapter": name, "available": self.names},
            ) from None

    def resolve(self, name: str, text: str) -> ProtocolRawAdapter:
        """Return the adapter for ``name``, sniffing ``text`` when name is auto.

        Raises:
            UnsupportedAdapterError: Unknown name, or no adapter accepts the input.
        """
        if name != AUTO_ADAPTER:
            return self.get(name)
        for adapter in self._adapters.values():
            if adapter.can_adapt(text):
                logger.debug("Adapter auto-selected", extra={"adapter": adapter.name})
                return adapter
        raise UnsupportedAdapterError(
            "No raw adapter matched input",
            details={"available": self.names},
        )


@lru_cache(maxsize=1)
def default_registry() -> AdapterRegistry:
    """Registry with the built-in adapters, built once per process."""
    return AdapterRegistry([CodexJsonlAdapter(), AgentLensJsonlAdapter(), CursorRawAdapter()])


__all__ = ["AUTO_ADAPTER", "AdapterRegistry", "default_registry"]
