# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Configuration for raw-log ingestion.

Loads from environment variables with AGENTLENS_INGEST_ prefix.
Values are loaded from environment variables with the following precedence:
1. Environment variables (highest priority)
2. .env file in current directory
3. Default values defined here (lowest priority)

The fingerprint weights and the dedup bucket width are tunable; the defaults
reproduce the long-standing constants (0.78 / 0.22, two minutes).
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigIngest(BaseSettings):
    """Configuration for IngestService and SessionIdentityResolver.

    Environment variables use the AGENTLENS_INGEST_ prefix.
    Example: AGENTLENS_INGEST_FINGERPRINT_MAX_WINDOW_HOURS=24
    """

    model_config = SettingsConfigDict(
        env_prefix="AGENTLENS_INGEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Identity resolution
    fingerprint_max_window_hours: float = Field(
        default=72.0,
        ge=0.0,
        description="Candidates further apart than this (hours) never match",
    )
    fingerprint_min_confidence: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Minimum combined confidence to accept a fingerprint match",
    )
    fingerprint_min_prompt_score: float = Field(
        default=0.52,
        ge=0.0,
        le=1.0,
        description="Candidates whose prompt similarity is below this are discarded",
    )
    fingerprint_prompt_weight: float = Field(
        default=0.78,
        ge=0.0,
        le=1.0,
        description="Weight of prompt similarity in the combined confidence",
    )
    fingerprint_time_weight: float = Field(
        default=0.22,
        ge=0.0,
        le=1.0,
        description="Weight of time proximity in the combined confidence",
    )

    # Deduplication
    dedupe_bucket_seconds: int = Field(
        default=120,
        ge=1,
        le=86400,
        description="Width of the timestamp bucket used by semantic dedup keys",
    )
    dedupe_default: bool = Field(
        default=True,
        description="Deduplicate when the caller does not say otherwise",
    )

    @model_validator(mode="after")
    def weights_sum_to_one(self) -> ConfigIngest:
        total = self.fingerprint_prompt_weight + self.fingerprint_time_weight
        if abs(total - 1.0) > 1e-6:
            raise ValueError(
                f"fingerprint_prompt_weight + fingerprint_time_weight must be 1.0, got {total}"
            )
        return self
