# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Configuration for session log storage.

Loads from environment variables with AGENTLENS_STORAGE_ prefix.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigSessionStorage(BaseSettings):
    """Configuration for the JSONL session directory.

    Environment variables use the AGENTLENS_STORAGE_ prefix.
    Example: AGENTLENS_STORAGE_SESSIONS_DIR=/var/lib/agentlens/sessions
    """

    model_config = SettingsConfigDict(
        env_prefix="AGENTLENS_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    sessions_dir: Path = Field(
        default=Path("./sessions"),
        description=(
            "Directory holding one canonical <session_id>.jsonl per session plus raw sidecars"
        ),
    )
