"""Abstract interfaces for talking to the nodes of a deployment.

The checker never opens connections itself.  Callers supply a
:class:`SessionConnector` that turns a list of member hosts into live
:class:`NodeSession` objects; everything the checker needs from a node goes
through those two protocols.
"""

from __future__ import annotations

from typing import Any, Protocol
from uuid import UUID

from replcheck.models.cluster_time import LogicalTimestamp, SignedClusterTime
from replcheck.models.topology import NodeRole


class NodeSession(Protocol):
    """Structural interface for a causally-tracked session on one node.

    Implementations are **not** required to subclass this protocol; they only
    need to expose attributes and methods with matching signatures.
    """

    host: str
    role: NodeRole

    @property
    def operation_time(self) -> LogicalTimestamp | None:
        """The ``operationTime`` of the latest response seen on this session."""
        ...

    @property
    def cluster_time(self) -> SignedClusterTime | None:
        """The signed ``$clusterTime`` gossiped by the latest response."""
        ...

    def advance_cluster_time(self, token: SignedClusterTime) -> None:
        """Make the session trust (and forward) a cluster time seen elsewhere."""
        ...

    async def run_command(self, db_name: str, command: dict[str, Any]) -> dict[str, Any]:
        """Run *command* against *db_name* and return the reply document.

        Raises
        ------
        replcheck.errors.CommandError
            When the node replies with ``ok: 0``.
        """
        ...

    async def snapshot_find(
        self,
        db_name: str,
        collection_uuid: UUID,
        read_at: LogicalTimestamp,
    ) -> list[dict[str, Any]]:
        """Return every document of the collection as of *read_at*, sorted by ``_id``."""
        ...

    async def read_oplog(self, query: dict[str, Any], limit: int) -> list[dict[str, Any]]:
        """Return the most recent oplog entries matching *query*, newest first."""
        ...

    async def close(self) -> None:
        """End the session and release its connection."""
        ...


class SessionConnector(Protocol):
    """Opens sessions for the members of one replica set."""

    async def connect(self, hosts: list[str]) -> list[NodeSession]:
        """Open one session per member of the replica set.

        Returns
        -------
        list[NodeSession]
            The primary's session first, followed by the other members.
            Arbiters may be included; the checker skips them.
        """
        ...
