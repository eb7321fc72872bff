"""Mismatch records and the overall check outcome."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from replcheck.models.cluster_time import LogicalTimestamp
from replcheck.models.diff import DiffResult
from replcheck.models.hashes import HashRecord


class MismatchRecord(BaseModel):
    """A collection whose hash differs between the primary and a secondary."""

    model_config = ConfigDict(frozen=True)

    db_name: str = Field(..., description="Database containing the collection.")
    primary: HashRecord = Field(..., description="Hash record read on the primary.")
    secondary: HashRecord = Field(..., description="Hash record read on the secondary.")
    diff: DiffResult = Field(default_factory=DiffResult, description="Document-level differences.")
    read_timestamp: LogicalTimestamp | None = Field(
        default=None,
        description="Cluster time both hashes were read at.",
    )

    @property
    def namespace(self) -> str:
        return f"{self.db_name}.{self.primary.name}"


class CheckOutcome(BaseModel):
    """Result of checking one replica set, or a merged result for a cluster."""

    ok: Literal[0, 1] = Field(..., description="1 when no mismatch was found.")
    error: str | None = Field(default=None, description="Summary naming every mismatched namespace.")
    hosts: list[str] = Field(default_factory=list, description="Hosts that were checked.")
    report: str = Field(default="", description="Full diagnostic report, empty when ok.")
    mismatches: list[MismatchRecord] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.ok == 1

    @staticmethod
    def merge(outcomes: list[CheckOutcome]) -> CheckOutcome:
        """Combine per-unit outcomes into one.

        ``ok`` is 1 only when every unit succeeded; errors and reports are
        joined in input order.
        """
        errors = [o.error for o in outcomes if o.error]
        reports = [o.report for o in outcomes if o.report]
        hosts: list[str] = []
        mismatches: list[MismatchRecord] = []
        for outcome in outcomes:
            hosts.extend(outcome.hosts)
            mismatches.extend(outcome.mismatches)

        return CheckOutcome(
            ok=1 if all(o.succeeded for o in outcomes) else 0,
            error="; ".join(errors) or None,
            hosts=hosts,
            report="\n\n".join(reports),
            mismatches=mismatches,
        )
