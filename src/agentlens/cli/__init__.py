# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Command-line interface."""

from agentlens.cli.main import cli

__all__ = ["cli"]
