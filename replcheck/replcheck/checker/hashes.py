"""Comparison of per-collection content hashes across a replica set."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any
from uuid import UUID

from replcheck.checker.diff_engine import DiffEngine
from replcheck.models.cluster_time import LogicalTimestamp
from replcheck.models.hashes import HashRecord
from replcheck.models.outcome import MismatchRecord
from replcheck.session.base import NodeSession

logger = logging.getLogger(__name__)


def hashes_by_uuid(host: str, reply: dict[str, Any]) -> dict[UUID, HashRecord]:
    """Index a ``dbHash`` reply by collection UUID.

    Collections reported without a UUID (views, for instance) are ignored.
    """
    collections: dict[str, str] = reply.get("collections", {})
    uuids: dict[str, UUID] = reply.get("uuids", {})

    records: dict[UUID, HashRecord] = {}
    for coll_name, coll_hash in collections.items():
        coll_uuid = uuids.get(coll_name)
        if coll_uuid is None:
            continue
        records[coll_uuid] = HashRecord(uuid=coll_uuid, name=coll_name, host=host, hash=coll_hash)
    return records


class ConsistencyChecker:
    """Reads every node's collection hashes at one cluster time and compares them.

    Collections are matched by UUID rather than name: a drop or rename may
    already be applied on the primary but not yet on a secondary, and that
    lag is not a fault.

    Parameters
    ----------
    sessions:
        Sessions of the replica set, primary first.
    diff_engine:
        Used to explain each mismatch at document level.
    """

    def __init__(self, sessions: Sequence[NodeSession], diff_engine: DiffEngine | None = None) -> None:
        if not sessions:
            raise ValueError("ConsistencyChecker needs at least the primary's session")
        self._sessions = list(sessions)
        self._diff_engine = diff_engine or DiffEngine()

    async def check_collection_hashes_for_db(self, db_name: str, timestamp: LogicalTimestamp) -> list[MismatchRecord]:
        """Return the collections of *db_name* whose hashes diverge at *timestamp*."""
        per_node: list[dict[UUID, HashRecord]] = []
        for session in self._sessions:
            reply = await session.run_command(
                db_name,
                {"dbHash": 1, "$_internalReadAtClusterTime": timestamp},
            )
            per_node.append(hashes_by_uuid(session.host, reply))

        primary_session = self._sessions[0]
        primary_hashes = per_node[0]
        mismatches: list[MismatchRecord] = []

        for secondary_session, secondary_hashes in zip(self._sessions[1:], per_node[1:]):
            all_uuids = sorted(set(primary_hashes) | set(secondary_hashes), key=str)
            for coll_uuid in all_uuids:
                primary_info = primary_hashes.get(coll_uuid)
                secondary_info = secondary_hashes.get(coll_uuid)

                if primary_info is None:
                    logger.info(
                        "Skipping collection because it doesn't exist on the primary: %s",
                        secondary_info.model_dump_json() if secondary_info else coll_uuid,
                    )
                    continue
                if secondary_info is None:
                    logger.info(
                        "Skipping collection because it doesn't exist on the secondary: %s",
                        primary_info.model_dump_json(),
                    )
                    continue
                if primary_info.hash == secondary_info.hash:
                    continue

                logger.warning(
                    "DBHash mismatch found for collection with uuid: %s. Primary info: %s. Secondary info: %s",
                    coll_uuid,
                    primary_info.model_dump_json(),
                    secondary_info.model_dump_json(),
                )
                diff = await self._diff_engine.diff(
                    primary_session, secondary_session, db_name, coll_uuid, timestamp
                )
                mismatches.append(
                    MismatchRecord(
                        db_name=db_name,
                        primary=primary_info,
                        secondary=secondary_info,
                        diff=diff,
                        read_timestamp=timestamp,
                    )
                )

        return mismatches
