# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Tests for Ok/Err record validation and per-session sequencing."""

from __future__ import annotations

import pytest

from agentlens.events.enums import EnumActorType, EnumEventKind
from agentlens.events.models import CanonicalEvent, ModelActor
from agentlens.events.sequencing import (
    by_seq,
    is_dense,
    make_event_id,
    make_session_id,
    next_seq,
    resequence,
)
from agentlens.events.validation import (
    EnumFieldErrorKind,
    Err,
    Ok,
    validate_adapted_event,
    validate_canonical_event,
)

pytestmark = pytest.mark.unit


def canonical_record(**overrides) -> dict:
    record = {
        "id": "sess_1:1:abcd1234",
        "session_id": "sess_1",
        "seq": 1,
        "ts": "2026-02-15T10:00:00.000Z",
        "kind": "intent",
        "actor": {"type": "user"},
        "payload": {"title": "Fix login"},
    }
    record.update(overrides)
    return record


def make_event(seq: int, ts: str, session_id: str = "sess_1") -> CanonicalEvent:
    return CanonicalEvent(
        id=make_event_id(session_id, seq),
        session_id=session_id,
        seq=seq,
        ts=ts,
        kind=EnumEventKind.TOOL_CALL,
        actor=ModelActor(type=EnumActorType.AGENT),
        payload={"action": f"step-{seq}"},
    )


class TestValidateCanonicalEvent:
    def test_valid_record_is_ok(self) -> None:
        result = validate_canonical_event(canonical_record())
        assert isinstance(result, Ok)
        assert result.ok
        assert result.value.kind == EnumEventKind.INTENT

    def test_each_bad_field_reported_once(self) -> None:
        result = validate_canonical_event(canonical_record(seq=0, kind="nope", actor=None))
        assert isinstance(result, Err)
        by_field = {e.field: e.kind for e in result.errors}
        assert by_field["seq"] == EnumFieldErrorKind.OUT_OF_RANGE
        assert by_field["kind"] == EnumFieldErrorKind.UNKNOWN_VALUE
        assert "actor" in by_field

    def test_missing_fields(self) -> None:
        record = canonical_record()
        del record["ts"]
        result = validate_canonical_event(record)
        assert isinstance(result, Err)
        assert [(e.field, e.kind) for e in result.errors] == [
            ("ts", EnumFieldErrorKind.MISSING)
        ]

    def test_wrong_type(self) -> None:
        result = validate_canonical_event(canonical_record(payload="text"))
        assert isinstance(result, Err)
        assert result.errors[0].field == "payload"
        assert result.errors[0].kind == EnumFieldErrorKind.WRONG_TYPE

    def test_non_object_record(self) -> None:
        result = validate_canonical_event(["not", "an", "object"])
        assert isinstance(result, Err)
        assert result.errors[0].field == "<root>"
        assert not result.ok

    def test_describe_names_fields(self) -> None:
        result = validate_canonical_event(canonical_record(seq=-1))
        assert isinstance(result, Err)
        assert result.describe().startswith("seq:")


class TestValidateAdaptedEvent:
    def test_canonical_only_keys_are_rejected(self) -> None:
        result = validate_adapted_event(canonical_record())
        assert isinstance(result, Err)
        assert {e.kind for e in result.errors} == {EnumFieldErrorKind.UNKNOWN_VALUE}

    def test_ts_is_optional(self) -> None:
        result = validate_adapted_event({"kind": "file_op", "actor": {"type": "agent"}})
        assert isinstance(result, Ok)
        assert result.value.ts is None


class TestSequencing:
    def test_event_id_shape(self) -> None:
        session, seq, suffix = make_event_id("sess_1", 7).split(":")
        assert (session, seq) == ("sess_1", "7")
        assert len(suffix) == 8

    def test_session_id_shape(self) -> None:
        assert make_session_id(1_700_000_000_000).startswith("sess_1700000000000_")

    def test_next_seq(self) -> None:
        assert next_seq([]) == 1
        events = [make_event(1, "2026-01-01T00:00:00Z"), make_event(4, "2026-01-01T00:00:01Z")]
        assert next_seq(events) == 5

    def test_by_seq_orders_by_seq_then_ts(self) -> None:
        events = [
            make_event(2, "2026-01-01T00:00:00Z"),
            make_event(1, "2026-01-01T00:00:05Z"),
        ]
        assert [e.seq for e in by_seq(events)] == [1, 2]

    @pytest.mark.parametrize("count", [0, 1, 5])
    def test_resequence_is_dense(self, count: int) -> None:
        events = [
            make_event(seq * 10, f"2026-01-01T00:00:{59 - seq:02d}Z")
            for seq in range(1, count + 1)
        ]
        result = resequence("sess_1", events)
        assert is_dense(result)
        assert [e.seq for e in result] == list(range(1, count + 1))

    def test_resequence_orders_by_ts_then_seq(self) -> None:
        events = [
            make_event(1, "2026-01-01T00:00:10Z"),
            make_event(2, "2026-01-01T00:00:05Z"),
            make_event(3, "2026-01-01T00:00:05Z"),
        ]
        result = resequence("sess_1", events)
        assert [e.payload["action"] for e in result] == ["step-2", "step-3", "step-1"]
        assert all(e.id.startswith(f"sess_1:{e.seq}:") for e in result)

    def test_resequence_rebinds_session(self) -> None:
        result = resequence("sess_2", [make_event(1, "2026-01-01T00:00:00Z")])
        assert result[0].session_id == "sess_2"

    def test_is_dense_detects_gaps(self) -> None:
        events = [make_event(1, "2026-01-01T00:00:00Z"), make_event(3, "2026-01-01T00:00:01Z")]
        assert not is_dense(events)
