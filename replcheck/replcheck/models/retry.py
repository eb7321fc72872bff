"""Per-database retry bookkeeping."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from replcheck.models.cluster_time import LogicalTimestamp


class RetryPhase(str, Enum):
    """States of the per-database check loop."""

    SELECT_TIMESTAMP = "SELECT_TIMESTAMP"
    WAIT_SECONDARIES = "WAIT_SECONDARIES"
    CHECK = "CHECK"
    RETRY = "RETRY"
    DONE = "DONE"
    FATAL = "FATAL"


class RetryState(BaseModel):
    """Mutable state of one database's check across attempts."""

    db_name: str
    phase: RetryPhase = RetryPhase.SELECT_TIMESTAMP
    attempt: int = 0
    previous_timestamp: LogicalTimestamp | None = None
    current_timestamp: LogicalTimestamp | None = None
    transient_error_seen: bool = False
    noop_write_requested: bool = False
    transient_errors: list[dict[str, Any]] = Field(default_factory=list)

    def begin_attempt(self, timestamp: LogicalTimestamp) -> None:
        """Start a new attempt reading at *timestamp*."""
        self.attempt += 1
        self.previous_timestamp = self.current_timestamp
        self.current_timestamp = timestamp
        self.transient_error_seen = False
        self.noop_write_requested = False

    @property
    def timestamp_unchanged(self) -> bool:
        return self.previous_timestamp is not None and self.previous_timestamp == self.current_timestamp
