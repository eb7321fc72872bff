"""Unit tests for replcheck.models."""

from __future__ import annotations

import uuid

import pytest
from pydantic import ValidationError
from replcheck.models import (
    CheckOutcome,
    DiffResult,
    DocumentPair,
    HashRecord,
    LogicalTimestamp,
    MismatchRecord,
    RetryState,
    Topology,
    TopologyType,
)


def _make_hash(name: str = "coll", host: str = "n1:27017", digest: str = "aaa") -> HashRecord:
    return HashRecord(uuid=uuid.UUID(int=1), name=name, host=host, hash=digest)


def _make_mismatch(db_name: str = "test", name: str = "coll") -> MismatchRecord:
    return MismatchRecord(
        db_name=db_name,
        primary=_make_hash(name=name),
        secondary=_make_hash(name=name, host="n2:27017", digest="bbb"),
        read_timestamp=LogicalTimestamp(10, 1),
    )


# ---------------------------------------------------------------------------
# LogicalTimestamp
# ---------------------------------------------------------------------------


class TestLogicalTimestamp:
    def test_ordering(self):
        assert LogicalTimestamp(1, 5) < LogicalTimestamp(2, 0)
        assert LogicalTimestamp(2, 1) > LogicalTimestamp(2, 0)
        assert max(LogicalTimestamp(3, 0), LogicalTimestamp(3, 2), LogicalTimestamp(1, 9)) == LogicalTimestamp(3, 2)

    def test_next(self):
        assert LogicalTimestamp(4, 2).next() == LogicalTimestamp(4, 3)

    def test_hashable_and_frozen(self):
        ts = LogicalTimestamp(1, 1)
        assert {ts: "x"}[LogicalTimestamp(1, 1)] == "x"
        with pytest.raises(AttributeError):
            ts.seconds = 2  # type: ignore[misc]

    def test_str(self):
        assert str(LogicalTimestamp(7, 3)) == "Timestamp(7, 3)"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class TestMismatchRecord:
    def test_namespace(self):
        assert _make_mismatch("test", "coll").namespace == "test.coll"

    def test_immutable(self):
        record = _make_mismatch()
        with pytest.raises(ValidationError):
            record.db_name = "other"  # type: ignore[misc]

    def test_json_dump_includes_timestamp(self):
        dumped = _make_mismatch().model_dump(mode="json")
        assert dumped["read_timestamp"] == {"seconds": 10, "increment": 1}
        assert dumped["primary"]["uuid"] == str(uuid.UUID(int=1))


class TestDiffResult:
    def test_empty(self):
        assert DiffResult().is_empty

    def test_not_empty(self):
        diff = DiffResult(docs_with_different_contents=[DocumentPair(primary={"_id": 1}, secondary={"_id": 1, "x": 2})])
        assert not diff.is_empty


# ---------------------------------------------------------------------------
# CheckOutcome.merge
# ---------------------------------------------------------------------------


class TestCheckOutcomeMerge:
    def test_all_ok(self):
        merged = CheckOutcome.merge([CheckOutcome(ok=1, hosts=["a"]), CheckOutcome(ok=1, hosts=["b", "c"])])
        assert merged.ok == 1
        assert merged.error is None
        assert merged.hosts == ["a", "b", "c"]

    def test_any_failure_fails(self):
        failed = CheckOutcome(ok=0, hosts=["b"], error="dbhash mismatch", mismatches=[_make_mismatch()])
        merged = CheckOutcome.merge([CheckOutcome(ok=1, hosts=["a"]), failed])
        assert merged.ok == 0
        assert merged.error == "dbhash mismatch"
        assert len(merged.mismatches) == 1

    def test_errors_joined_in_order(self):
        merged = CheckOutcome.merge([CheckOutcome(ok=0, error="first"), CheckOutcome(ok=0, error="second")])
        assert merged.error == "first; second"

    def test_empty_list_is_ok(self):
        assert CheckOutcome.merge([]).succeeded

    def test_ok_must_be_zero_or_one(self):
        with pytest.raises(ValidationError):
            CheckOutcome(ok=2)


# ---------------------------------------------------------------------------
# RetryState
# ---------------------------------------------------------------------------


class TestRetryState:
    def test_first_attempt_has_no_previous(self):
        state = RetryState(db_name="test")
        state.begin_attempt(LogicalTimestamp(5, 0))
        assert state.attempt == 1
        assert state.previous_timestamp is None
        assert not state.timestamp_unchanged

    def test_unchanged_timestamp_detected(self):
        state = RetryState(db_name="test")
        state.begin_attempt(LogicalTimestamp(5, 0))
        state.begin_attempt(LogicalTimestamp(5, 0))
        assert state.timestamp_unchanged

    def test_new_attempt_resets_flags(self):
        state = RetryState(db_name="test")
        state.begin_attempt(LogicalTimestamp(5, 0))
        state.transient_error_seen = True
        state.noop_write_requested = True
        state.begin_attempt(LogicalTimestamp(6, 0))
        assert state.previous_timestamp == LogicalTimestamp(5, 0)
        assert not state.transient_error_seen
        assert not state.noop_write_requested


class TestTopology:
    def test_multi_node_replica_set(self):
        assert Topology(type=TopologyType.REPLICA_SET, nodes=["a", "b"]).is_multi_node_replica_set
        assert not Topology(type=TopologyType.REPLICA_SET, nodes=["a"]).is_multi_node_replica_set

    def test_nested_sharded_topology(self):
        topology = Topology(
            type=TopologyType.SHARDED_CLUSTER,
            nodes=["mongos:27017"],
            configsvr={"type": "REPLICA_SET", "nodes": ["c1", "c2"]},
            shards={"shard0": {"type": "REPLICA_SET", "nodes": ["s1", "s2"]}},
        )
        assert topology.configsvr is not None
        assert topology.configsvr.type == TopologyType.REPLICA_SET
        assert topology.shards["shard0"].nodes == ["s1", "s2"]
