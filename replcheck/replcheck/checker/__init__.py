"""Background data consistency checker for replicated deployments.

Verifies that the secondaries of every replica set hold the same data as
their primary, reading all nodes at one shared cluster time so the check can
run while traffic continues.

Quick start::

    from replcheck.checker import check_deployment

    outcome = await check_deployment(topology, connector)
    if not outcome.succeeded:
        print(outcome.error)
"""

from replcheck.checker.cluster_time import ClusterTimeCoordinator
from replcheck.checker.diff_engine import DiffEngine
from replcheck.checker.failpoint import FailpointGuard
from replcheck.checker.fan_out import FanOutRunner, check_deployment
from replcheck.checker.hashes import ConsistencyChecker
from replcheck.checker.replica_set import ReplicaSetRunner
from replcheck.checker.report import ReportBuilder
from replcheck.checker.retry import RetryOrchestrator
from replcheck.checker.trail import DebugTrail

__all__ = [
    "ClusterTimeCoordinator",
    "ConsistencyChecker",
    "DebugTrail",
    "DiffEngine",
    "FailpointGuard",
    "FanOutRunner",
    "ReplicaSetRunner",
    "ReportBuilder",
    "RetryOrchestrator",
    "check_deployment",
]
