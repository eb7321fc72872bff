"""Consistency check of a single replica set."""

from __future__ import annotations

import logging

from replcheck.checker.failpoint import FailpointGuard
from replcheck.checker.report import ReportBuilder
from replcheck.checker.retry import RetryOrchestrator
from replcheck.checker.trail import DebugTrail
from replcheck.config import Settings
from replcheck.models.outcome import CheckOutcome, MismatchRecord
from replcheck.session.base import NodeSession, SessionConnector

logger = logging.getLogger(__name__)


class ReplicaSetRunner:
    """Checks every replicated database of one replica set.

    Opens one session per member through *connector*, keeps snapshot
    history pinned with a :class:`FailpointGuard` while databases are
    checked one after another, and closes the sessions before returning.

    Parameters
    ----------
    hosts:
        Member hosts, primary first.
    connector:
        Opens the sessions.
    settings:
        Checker settings.
    """

    def __init__(self, hosts: list[str], connector: SessionConnector, settings: Settings) -> None:
        if not hosts:
            raise ValueError("ReplicaSetRunner requires at least one host")
        self._hosts = list(hosts)
        self._connector = connector
        self._settings = settings
        self.trail = DebugTrail()

    @property
    def url(self) -> str:
        return ",".join(self._hosts)

    async def run(self) -> CheckOutcome:
        sessions = await self._connector.connect(self._hosts)
        try:
            return await self._check(sessions)
        finally:
            await self._close_sessions(sessions)

    async def _close_sessions(self, sessions: list[NodeSession]) -> None:
        for session in sessions:
            try:
                await session.close()
            except Exception:
                logger.warning(
                    "Failed to close session on %s",
                    session.host,
                    exc_info=True,
                    extra={"replica_set": self.url},
                )

    async def _check(self, sessions: list[NodeSession]) -> CheckOutcome:
        primary = sessions[0]
        status = await primary.run_command("admin", {"serverStatus": 1})
        if not status.get("storageEngine", {}).get("supportsSnapshotReadConcern", False):
            logger.info(
                "Skipping data consistency checks for replica set: %s because storage engine "
                "does not support snapshot reads.",
                self.url,
                extra={"replica_set": self.url},
            )
            return CheckOutcome(ok=1, hosts=self._hosts)

        members = [primary]
        for session in sessions[1:]:
            hello = await session.run_command("admin", {"isMaster": 1})
            if not hello.get("arbiterOnly", False):
                members.append(session)

        logger.info(
            "Running data consistency checks for replica set: %s",
            self.url,
            extra={"replica_set": self.url},
        )

        mismatches: list[MismatchRecord] = []
        async with FailpointGuard(members, self._settings.failpoint_name, self.trail):
            db_names = await self._list_databases(members)
            orchestrator = RetryOrchestrator(members, self._settings, self.trail)
            for db_name in db_names:
                logger.debug("Checking database %s", db_name, extra={"replica_set": self.url, "db_name": db_name})
                mismatches.extend(await orchestrator.check_database(db_name))

        return await ReportBuilder(self._settings).build(mismatches, members, self._hosts)

    async def _list_databases(self, sessions: list[NodeSession]) -> list[str]:
        """Union of database names across *sessions*, minus excluded ones."""
        names: set[str] = set()
        for session in sessions:
            reply = await session.run_command("admin", {"listDatabases": 1, "nameOnly": True})
            names.update(info["name"] for info in reply.get("databases", []))
            self.trail.record(node=session.host, list_databases_op_time=reply.get("operationTime"))

        names.difference_update(self._settings.excluded_databases)
        return sorted(names)
