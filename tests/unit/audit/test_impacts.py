# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Tests for impact aggregation, path classification and token usage."""

from __future__ import annotations

import pytest
from session_builder import SessionEventsBuilder

from agentlens.audit.enums import EnumBlastRadius, EnumCriticality
from agentlens.audit.impacts import blast_radius, classify_path, derive_impact, module_of
from agentlens.audit.tokens import summarize_token_usage, usage_from_event
from agentlens.events.enums import EnumEventKind

pytestmark = pytest.mark.unit


class TestClassifyPath:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("src/api/users.ts", [EnumCriticality.PUBLIC_API]),
            ("app/routes/login.py", [EnumCriticality.PUBLIC_API]),
            ("web/src/index.ts", [EnumCriticality.PUBLIC_API]),
            ("db/migrations/0001_init.py", [EnumCriticality.SCHEMA]),
            ("db/seed.SQL", [EnumCriticality.SCHEMA]),
            ("prisma/schema.prisma", [EnumCriticality.SCHEMA]),
            ("frontend/package.json", [EnumCriticality.DEPENDENCY]),
            ("pyproject.toml", [EnumCriticality.DEPENDENCY]),
            ("docs/package.json.md", []),
            ("src/auth.py", []),
        ],
    )
    def test_classify(self, path: str, expected: list[EnumCriticality]) -> None:
        assert classify_path(path) == expected

    def test_module_of(self) -> None:
        assert module_of("src/auth/login.py") == "src"
        assert module_of("/README.md") == "README.md"
        assert module_of("") == "root"


class TestBlastRadius:
    @pytest.mark.parametrize(
        ("files", "api", "schema", "dep", "expected"),
        [
            (1, True, False, False, EnumBlastRadius.LARGE),
            (1, False, True, False, EnumBlastRadius.LARGE),
            (10, False, False, False, EnumBlastRadius.LARGE),
            (4, False, False, False, EnumBlastRadius.MEDIUM),
            (1, False, False, True, EnumBlastRadius.MEDIUM),
            (3, False, False, False, EnumBlastRadius.SMALL),
        ],
    )
    def test_classification(
        self, files: int, api: bool, schema: bool, dep: bool, expected: EnumBlastRadius
    ) -> None:
        assert blast_radius(files, api, schema, dep) == expected


class TestDeriveImpact:
    def test_aggregates_file_ops(self, builder: SessionEventsBuilder) -> None:
        builder.file_op("src/auth.py", added=10, removed=2)
        builder.file_op("src/auth.py", added=3)
        builder.file_op("lib/util.py", removed=5)
        builder.verification()

        impact = derive_impact("impact_x", "intent_x", builder.events)
        assert impact.files_touched == ["src/auth.py", "lib/util.py"]
        assert impact.modules_affected == ["src", "lib"]
        assert (impact.lines_added, impact.lines_removed) == (13, 7)
        assert impact.lines_changed == 20
        assert impact.blast_radius == EnumBlastRadius.SMALL
        stats = {s.file: s for s in impact.file_stats}
        assert stats["src/auth.py"].edit_count == 2
        assert stats["src/auth.py"].lines_changed == 15

    def test_flags_from_paths(self, builder: SessionEventsBuilder) -> None:
        builder.file_op("src/api/users.ts")
        builder.file_op("package.json")
        impact = derive_impact("impact_x", None, builder.events)
        assert impact.public_api_changed
        assert impact.dependency_added
        assert not impact.schema_changed
        assert impact.blast_radius == EnumBlastRadius.LARGE

    def test_dependency_flag_from_payload(self, builder: SessionEventsBuilder) -> None:
        builder.file_op("src/setup_env.py", dependency_added=True)
        impact = derive_impact("impact_x", None, builder.events)
        assert impact.dependency_added
        assert impact.blast_radius == EnumBlastRadius.MEDIUM

    def test_no_file_ops(self, builder: SessionEventsBuilder) -> None:
        builder.decision("Use JWT")
        impact = derive_impact("impact_x", None, builder.events)
        assert impact.files_touched == []
        assert impact.blast_radius == EnumBlastRadius.SMALL


class TestTokenUsage:
    def test_totals_and_breakdowns(self, builder: SessionEventsBuilder) -> None:
        builder.add(
            EnumEventKind.TOKEN_USAGE_CHECKPOINT,
            {"usage": {"prompt_tokens": 100, "completion_tokens": 50}},
            intent_id="intent_a",
        )
        builder.add(
            EnumEventKind.TOOL_CALL,
            {
                "category": "search",
                "details": {"llm_usage": {"total_tokens": 500, "estimated_cost_usd": 0.01}},
            },
        )
        summary = summarize_token_usage(builder.events)

        assert summary is not None
        assert summary.prompt_tokens == 100
        assert summary.completion_tokens == 50
        assert summary.total_tokens == 650
        assert summary.estimated_cost_usd == 0.01
        assert [c.category for c in summary.by_category] == ["search", "token_usage_checkpoint"]
        assert [i.intent_id for i in summary.by_intent] == [None, "intent_a"]

    def test_no_usage(self, builder: SessionEventsBuilder) -> None:
        builder.decision("Use JWT")
        builder.add(EnumEventKind.TOKEN_USAGE_CHECKPOINT, {"usage": {"total_tokens": 0}})
        assert summarize_token_usage(builder.events) is None

    def test_total_falls_back_to_sum(self, builder: SessionEventsBuilder) -> None:
        event = builder.add(
            EnumEventKind.TOKEN_USAGE_CHECKPOINT,
            {"usage": {"prompt_tokens": "7", "completion_tokens": 3}},
        )
        assert usage_from_event(event) == (7.0, 3.0, 10.0, 0.0)
