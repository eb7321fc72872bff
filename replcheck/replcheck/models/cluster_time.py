"""Logical clock value types shared by sessions and the checker.

Both types are immutable.  :class:`LogicalTimestamp` orders by
``(seconds, increment)`` so the coordinator can take a plain ``max`` over
the operation times reported by each node.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, order=True, slots=True)
class LogicalTimestamp:
    """A point in the replicated operation stream."""

    seconds: int
    increment: int = 0

    def next(self) -> LogicalTimestamp:
        """Return the timestamp immediately after this one."""
        return LogicalTimestamp(self.seconds, self.increment + 1)

    def __str__(self) -> str:
        return f"Timestamp({self.seconds}, {self.increment})"


@dataclass(frozen=True, slots=True)
class SignedClusterTime:
    """A cluster time plus the signature a node needs to trust it."""

    cluster_time: LogicalTimestamp
    signature: bytes = b""
    key_id: int = 0
