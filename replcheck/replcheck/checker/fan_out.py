"""Entry point and concurrent fan-out across the replica sets of a deployment."""

from __future__ import annotations

import asyncio
import logging

from replcheck.checker.replica_set import ReplicaSetRunner
from replcheck.config import Settings, load_settings
from replcheck.errors import UnsupportedTopologyError
from replcheck.models.outcome import CheckOutcome
from replcheck.models.topology import Topology, TopologyType
from replcheck.session.base import SessionConnector

logger = logging.getLogger(__name__)


class FanOutRunner:
    """Runs one :class:`ReplicaSetRunner` per replica set of a sharded cluster.

    Every qualifying unit gets its own asyncio task.  All tasks are awaited
    even when some fail; afterwards the first failure in spawn order is
    re-raised, otherwise the per-unit outcomes are merged.  Per-unit results
    (outcome or exception) remain available on :attr:`outcomes`.
    """

    def __init__(self, topology: Topology, connector: SessionConnector, settings: Settings) -> None:
        if topology.type != TopologyType.SHARDED_CLUSTER:
            raise UnsupportedTopologyError(f"FanOutRunner expects a sharded cluster, got {topology.type.value}")
        self._topology = topology
        self._connector = connector
        self._settings = settings
        self.outcomes: dict[str, CheckOutcome | BaseException] = {}

    def units(self) -> list[tuple[str, list[str]]]:
        """Return ``(name, hosts)`` for every unit with secondaries to validate."""
        units: list[tuple[str, list[str]]] = []

        configsvr = self._topology.configsvr
        if configsvr is not None:
            if configsvr.is_multi_node_replica_set:
                units.append(("config", configsvr.nodes))
            else:
                logger.info("Skipping data consistency checks for 1-node CSRS: %s", configsvr.nodes)

        for shard_name, shard in self._topology.shards.items():
            if shard.type == TopologyType.STANDALONE:
                logger.info("Skipping data consistency checks for stand-alone shard %s: %s", shard_name, shard.nodes)
                continue
            if shard.type != TopologyType.REPLICA_SET:
                raise UnsupportedTopologyError(
                    f"Unrecognized topology format for shard {shard_name}: {shard.type.value}"
                )
            if shard.is_multi_node_replica_set:
                units.append((shard_name, shard.nodes))
            else:
                logger.info("Skipping data consistency checks for 1-node shard %s: %s", shard_name, shard.nodes)

        return units

    async def run(self) -> CheckOutcome:
        units = self.units()
        tasks = [
            asyncio.create_task(
                ReplicaSetRunner(hosts, self._connector, self._settings).run(),
                name=f"replcheck-{name}",
            )
            for name, hosts in units
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        first_error: BaseException | None = None
        outcomes: list[CheckOutcome] = []
        for (name, _hosts), result in zip(units, results):
            self.outcomes[name] = result
            if isinstance(result, BaseException):
                logger.error("Data consistency check of %s failed: %s", name, result)
                if first_error is None:
                    first_error = result
            else:
                outcomes.append(result)

        if first_error is not None:
            raise first_error
        return CheckOutcome.merge(outcomes)


async def check_deployment(
    topology: Topology,
    connector: SessionConnector,
    settings: Settings | None = None,
) -> CheckOutcome:
    """Check that every replica set of *topology* has consistent data.

    Parameters
    ----------
    topology:
        Deployment shape from topology discovery.
    connector:
        Opens sessions to the members of each replica set.
    settings:
        Checker settings; loaded from the environment when ``None``.

    Returns
    -------
    CheckOutcome
        ``ok=1`` when no mismatch was found, otherwise ``ok=0`` with an
        error naming every mismatched ``database.collection``.

    Raises
    ------
    UnsupportedTopologyError
        For standalone deployments or unrecognized shard types.
    replcheck.errors.ReplCheckError
        The first fatal error of any replica set, after all have finished.
    """
    settings = settings or load_settings()

    if topology.type == TopologyType.REPLICA_SET:
        outcome = await ReplicaSetRunner(topology.nodes, connector, settings).run()
    elif topology.type == TopologyType.SHARDED_CLUSTER:
        outcome = await FanOutRunner(topology, connector, settings).run()
    else:
        raise UnsupportedTopologyError(f"Unsupported topology configuration: {topology.type.value}")

    if outcome.succeeded:
        logger.info("Data consistency checks passed for %d host(s)", len(outcome.hosts))
    else:
        logger.error("Data consistency checks failed: %s", outcome.error)
    return outcome
