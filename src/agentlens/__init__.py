"""agentlens - agent session event ingestion and audit normalization.

Records agent coding sessions as canonical JSONL event logs, ingests
third-party session logs into the same format, and turns a log into
reviewable artifacts (intents, revisions, impacts, risks, hotspots,
recommended actions).
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("agentlens")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
