# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Shared fixtures for agentlens tests.

Every test runs with AGENTLENS_* variables cleared and the working directory
set to a temporary path, so neither the caller's environment nor a stray
``.env`` file leaks into settings.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from agentlens.storage.config import ConfigSessionStorage
from agentlens.storage.session_log import SessionLogStore


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("AGENTLENS_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def sessions_dir(tmp_path: Path) -> Path:
    return tmp_path / "sessions"


@pytest.fixture
def log_store(sessions_dir: Path) -> SessionLogStore:
    return SessionLogStore(ConfigSessionStorage(sessions_dir=sessions_dir))
