# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Fixtures for audit tests."""

from __future__ import annotations

import pytest
from session_builder import SessionEventsBuilder


@pytest.fixture
def builder() -> SessionEventsBuilder:
    return SessionEventsBuilder()
