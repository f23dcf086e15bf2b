# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Configuration for live session recording.

Loads from environment variables with AGENTLENS_RECORDER_ prefix.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigRecorder(BaseSettings):
    """Configuration for SessionStore.

    Environment variables use the AGENTLENS_RECORDER_ prefix.
    Example: AGENTLENS_RECORDER_AUTO_CREATE_SESSION=true
    """

    model_config = SettingsConfigDict(
        env_prefix="AGENTLENS_RECORDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    auto_create_session: bool = Field(
        default=False,
        description="Start a session implicitly when an event is recorded with no active session",
    )
    reuse_active_session: bool = Field(
        default=True,
        description="start_session returns the active session instead of raising InvalidStateError",
    )
    auto_session_goal: str = Field(
        default="Auto-created session",
        min_length=1,
        description="Goal recorded for implicitly created sessions",
    )
