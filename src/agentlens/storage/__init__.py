# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Storage module for canonical session logs."""

from agentlens.storage.config import ConfigSessionStorage
from agentlens.storage.session_log import (
    ModelSessionFileInfo,
    SessionLogStore,
    is_raw_sidecar,
    safe_filename,
)

__all__ = [
    "ConfigSessionStorage",
    "ModelSessionFileInfo",
    "SessionLogStore",
    "is_raw_sidecar",
    "safe_filename",
]
