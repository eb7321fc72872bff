"""In-memory replica sets for exercising the checker without real nodes."""

from replcheck.testing.simulated import (
    SimulatedCollection,
    SimulatedConnector,
    SimulatedNode,
    SimulatedReplicaSet,
    SimulatedSession,
)

__all__ = [
    "SimulatedCollection",
    "SimulatedConnector",
    "SimulatedNode",
    "SimulatedReplicaSet",
    "SimulatedSession",
]
