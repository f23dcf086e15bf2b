# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Configuration for the audit normalization pipeline.

Defines revision thresholds and insight switches.
Loads from environment variables with AGENTLENS_AUDIT_ prefix.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigAuditPipeline(BaseSettings):
    """Configuration for normalize_session and the reviewer view.

    Environment variables use the AGENTLENS_AUDIT_ prefix.
    Example: AGENTLENS_AUDIT_REPEATED_EDIT_THRESHOLD=5
    """

    model_config = SettingsConfigDict(
        env_prefix="AGENTLENS_AUDIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Revision detection
    repeated_edit_threshold: int = Field(
        default=3,
        ge=1,
        le=1000,
        description="A file edited more than this many times yields repeat_file_edits",
    )
    large_change_line_threshold: int = Field(
        default=120,
        ge=1,
        description="Changed-line count at which a quick follow-up edit counts as large",
    )
    recent_change_window_ms: int = Field(
        default=600_000,  # 10 minutes
        ge=0,
        description="Max gap between two edits of a file for large_change_after_recent_change",
    )

    # Insights (risks, hotspots, assumptions, recommendations)
    enable_insights: bool = Field(
        default=True,
        description="Derive risks, hotspots, assumptions and recommended actions",
    )
    hotspot_limit: int = Field(
        default=10,
        ge=0,
        le=500,
        description="Maximum number of hotspots kept after ranking",
    )
