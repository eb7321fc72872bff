"""Unit tests for replcheck.checker.report."""

from __future__ import annotations

import json
import uuid

import pytest
from replcheck.checker.report import ReportBuilder, render_mismatch
from replcheck.config import Settings
from replcheck.errors import CommandError
from replcheck.models import DiffResult, DocumentPair, HashRecord, LogicalTimestamp, MismatchRecord
from replcheck.testing import SimulatedConnector, SimulatedReplicaSet


def _make_mismatch(diff: DiffResult | None = None, db_name: str = "test", name: str = "coll") -> MismatchRecord:
    coll_uuid = uuid.UUID(int=7)
    return MismatchRecord(
        db_name=db_name,
        primary=HashRecord(uuid=coll_uuid, name=name, host="p:1", hash="aaa"),
        secondary=HashRecord(uuid=coll_uuid, name=name, host="s1:1", hash="bbb"),
        diff=diff or DiffResult(),
        read_timestamp=LogicalTimestamp(3, 1),
    )


class TestRenderMismatch:
    def test_empty_diff_sections(self):
        heading, section = render_mismatch(_make_mismatch())
        assert heading == "dbhash mismatch for test.coll"
        assert "No documents have different contents on the primary and secondary" in section
        assert "No documents are missing from the primary" in section
        assert "No documents are missing from the secondary" in section

    def test_record_rendered_without_diff(self):
        _, section = render_mismatch(_make_mismatch())
        record_json = section.split(": ", 1)[1].split("\nNo documents", 1)[0]
        record = json.loads(record_json)
        assert "diff" not in record
        assert record["primary"]["hash"] == "aaa"
        assert record["read_timestamp"] == {"seconds": 3, "increment": 1}

    def test_listings(self):
        diff = DiffResult(
            docs_with_different_contents=[DocumentPair(primary={"_id": 1, "a": 1}, secondary={"_id": 1, "a": 2})],
            docs_missing_on_primary=[{"_id": 5}],
            docs_missing_on_secondary=[{"_id": 6}, {"_id": 7}],
        )
        _, section = render_mismatch(_make_mismatch(diff))
        assert "The following documents have different contents on the primary and secondary:" in section
        assert '  primary:   {"_id": 1, "a": 1}' in section
        assert '  secondary: {"_id": 1, "a": 2}' in section
        assert "The following documents aren't present on the primary:\n  {\"_id\": 5}" in section
        assert "The following documents aren't present on the secondary:\n  {\"_id\": 6}\n  {\"_id\": 7}" in section


class TestReportBuilder:
    @pytest.mark.asyncio
    async def test_no_mismatches_is_ok(self):
        rs = SimulatedReplicaSet(["p:1", "s1:1"])
        sessions = await SimulatedConnector(rs).connect(rs.hosts)

        outcome = await ReportBuilder(Settings()).build([], sessions, rs.hosts)

        assert outcome.ok == 1
        assert outcome.error is None
        assert outcome.report == ""
        assert outcome.hosts == rs.hosts

    @pytest.mark.asyncio
    async def test_mismatches_dump_oplog_and_list_headings(self, caplog):
        rs = SimulatedReplicaSet(["p:1", "s1:1"])
        rs.insert("test", "coll", {"_id": 1})
        sessions = await SimulatedConnector(rs).connect(rs.hosts)
        mismatches = [_make_mismatch(), _make_mismatch(db_name="other", name="c2")]

        with caplog.at_level("INFO", logger="replcheck.checker.report"):
            outcome = await ReportBuilder(Settings(oplog_dump_limit=1)).build(mismatches, sessions, rs.hosts)

        assert outcome.ok == 0
        assert outcome.error is not None
        assert outcome.error.startswith("dbhash mismatch (search for the following headings): ")
        assert "test.coll" in outcome.error
        assert "other.c2" in outcome.error
        assert outcome.report.count("dbhash mismatch for ") == 2
        assert caplog.text.count("Dumping the latest 1 oplog entries") == 2

    @pytest.mark.asyncio
    async def test_oplog_dump_failure_does_not_hide_report(self):
        session = _BrokenOplogSession()

        outcome = await ReportBuilder(Settings()).build([_make_mismatch()], [session], ["p:1"])

        assert outcome.ok == 0


class _BrokenOplogSession:
    host = "p:1"

    async def read_oplog(self, query, limit):
        raise CommandError(13, "not authorized on local")
