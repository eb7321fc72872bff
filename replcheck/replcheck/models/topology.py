"""Deployment shape as reported by topology discovery."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class TopologyType(str, Enum):
    """Kind of deployment (or shard) a node list belongs to."""

    STANDALONE = "STANDALONE"
    REPLICA_SET = "REPLICA_SET"
    SHARDED_CLUSTER = "SHARDED_CLUSTER"


class NodeRole(str, Enum):
    """Role of a data-bearing member within its replica set."""

    PRIMARY = "PRIMARY"
    SECONDARY = "SECONDARY"


class Topology(BaseModel):
    """A deployment, or one unit of a sharded deployment.

    ``nodes`` lists member host strings with the primary first.  For a
    sharded cluster ``nodes`` holds the routers, ``configsvr`` the config
    server replica set and ``shards`` each shard keyed by shard name.
    """

    type: TopologyType = Field(..., description="Deployment kind.")
    nodes: list[str] = Field(default_factory=list, description="Member hosts, primary first.")
    configsvr: Topology | None = Field(
        default=None,
        description="Config server replica set (sharded clusters only).",
    )
    shards: dict[str, Topology] = Field(
        default_factory=dict,
        description="Shards keyed by shard name (sharded clusters only).",
    )

    @property
    def is_multi_node_replica_set(self) -> bool:
        """True when this unit has secondaries worth validating."""
        return self.type == TopologyType.REPLICA_SET and len(self.nodes) > 1
