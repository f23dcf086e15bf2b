# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

from agentlens.cli.main import cli

if __name__ == "__main__":
    cli()
