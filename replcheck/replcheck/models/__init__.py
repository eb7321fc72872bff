"""Pydantic models and value types used throughout the checker."""

from replcheck.models.cluster_time import LogicalTimestamp, SignedClusterTime
from replcheck.models.diff import DiffResult, DocumentPair
from replcheck.models.hashes import HashRecord
from replcheck.models.outcome import CheckOutcome, MismatchRecord
from replcheck.models.retry import RetryPhase, RetryState
from replcheck.models.topology import NodeRole, Topology, TopologyType

__all__ = [
    "CheckOutcome",
    "DiffResult",
    "DocumentPair",
    "HashRecord",
    "LogicalTimestamp",
    "MismatchRecord",
    "NodeRole",
    "RetryPhase",
    "RetryState",
    "SignedClusterTime",
    "Topology",
    "TopologyType",
]
