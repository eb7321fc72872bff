"""Selection of a common read timestamp and waiting for secondaries to reach it."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from replcheck.checker.trail import DebugTrail
from replcheck.config import Settings
from replcheck.errors import CommandError, ErrorCode, FatalCheckError, ProgressTimeoutError
from replcheck.models.cluster_time import LogicalTimestamp, SignedClusterTime
from replcheck.session.base import NodeSession

logger = logging.getLogger(__name__)


class ClusterTimeCoordinator:
    """Chooses the snapshot point for one attempt and synchronises secondaries.

    Parameters
    ----------
    settings:
        Supplies the wait strategy, poll interval and deadline.
    trail:
        Diagnostic trail of the enclosing replica-set check.
    """

    def __init__(self, settings: Settings, trail: DebugTrail) -> None:
        self._settings = settings
        self._trail = trail

    def pick_read_timestamp(
        self, sessions: Sequence[NodeSession]
    ) -> tuple[LogicalTimestamp, SignedClusterTime | None]:
        """Return the latest operation time reported by any session.

        A primary is not guaranteed to report a later operation time than
        its secondaries, so the maximum across all nodes is used.  Ties keep
        the earliest session in *sessions*.
        """
        best_time: LogicalTimestamp | None = None
        best_token: SignedClusterTime | None = None
        for session in sessions:
            op_time = session.operation_time
            if op_time is None:
                continue
            if best_time is None or op_time > best_time:
                best_time = op_time
                best_token = session.cluster_time

        if best_time is None:
            raise FatalCheckError(
                "No session has reported an operation time; cannot choose a read timestamp",
                self._trail.entries,
            )
        return best_time, best_token

    async def wait_for_secondaries(
        self,
        timestamp: LogicalTimestamp,
        token: SignedClusterTime | None,
        secondaries: Sequence[NodeSession],
    ) -> None:
        """Block until every secondary has applied up to *timestamp*.

        Each secondary's session first learns *token* so that a later read
        at *timestamp* is not rejected as being ahead of the node's clock.
        Every secondary gets ``secondary_wait_timeout`` seconds to catch up;
        :class:`ProgressTimeoutError` is raised when one does not.
        """
        self._trail.record(wait_for_secondaries=timestamp, signed_cluster_time=token)

        timeout = self._settings.secondary_wait_timeout
        for index, session in enumerate(secondaries, start=1):
            if token is not None:
                session.advance_cluster_time(token)

            try:
                async with asyncio.timeout(timeout):
                    if self._settings.enable_majority_read_concern:
                        await self._wait_with_majority_read(session, timestamp)
                    else:
                        await self._poll_applied_optime(session, timestamp)
            except TimeoutError as exc:
                raise self._progress_timeout(index, session, timestamp) from exc
            except CommandError as exc:
                if exc.code != ErrorCode.MAX_TIME_MS_EXPIRED:
                    raise
                raise self._progress_timeout(index, session, timestamp) from exc

    async def _wait_with_majority_read(self, session: NodeSession, timestamp: LogicalTimestamp) -> None:
        # The collection does not exist; the read only returns once the
        # node's majority snapshot has reached ``timestamp``.
        reply = await session.run_command(
            "admin",
            {
                "find": self._settings.wait_collection,
                "readConcern": {"level": "majority", "afterClusterTime": timestamp},
                "limit": 1,
                "singleBatch": True,
                "maxTimeMS": int(self._settings.secondary_wait_timeout * 1000),
            },
        )
        self._trail.record(node=session.host, majority_read_op_time=reply.get("operationTime"))

    async def _poll_applied_optime(self, session: NodeSession, timestamp: LogicalTimestamp) -> None:
        while True:
            status = await session.run_command("admin", {"replSetGetStatus": 1})
            applied: LogicalTimestamp = status["optimes"]["appliedOpTime"]["ts"]
            if applied >= timestamp:
                self._trail.record(node=session.host, applied_op_time=applied)
                return
            await asyncio.sleep(self._settings.replication_poll_interval)

    def _progress_timeout(
        self, index: int, session: NodeSession, timestamp: LogicalTimestamp
    ) -> ProgressTimeoutError:
        timeout = self._settings.secondary_wait_timeout
        logger.error("Secondary %d (%s) did not reach %s within %.1fs", index, session.host, timestamp, timeout)
        return ProgressTimeoutError(
            f"The majority commit point on secondary {index} failed to reach {timestamp} within {timeout:.0f}s"
        )
