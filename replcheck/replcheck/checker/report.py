"""Rendering of mismatches into the hook's diagnostic report."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

from replcheck.config import Settings
from replcheck.errors import CommandError
from replcheck.models.outcome import CheckOutcome, MismatchRecord
from replcheck.session.base import NodeSession

logger = logging.getLogger(__name__)


def _one_line(doc: dict[str, Any]) -> str:
    return json.dumps(doc, default=str)


def render_mismatch(mismatch: MismatchRecord) -> tuple[str, str]:
    """Return ``(heading, section)`` for one mismatch."""
    heading = f"dbhash mismatch for {mismatch.namespace}"
    record = mismatch.model_dump(mode="json", exclude={"diff"})
    lines = [f"{heading}: {json.dumps(record, indent=2, sort_keys=True)}"]

    diff = mismatch.diff
    if diff.docs_with_different_contents:
        lines.append("The following documents have different contents on the primary and secondary:")
        for pair in diff.docs_with_different_contents:
            lines.append(f"  primary:   {_one_line(pair.primary)}")
            lines.append(f"  secondary: {_one_line(pair.secondary)}")
    else:
        lines.append("No documents have different contents on the primary and secondary")

    if diff.docs_missing_on_primary:
        lines.append("The following documents aren't present on the primary:")
        lines.extend(f"  {_one_line(doc)}" for doc in diff.docs_missing_on_primary)
    else:
        lines.append("No documents are missing from the primary")

    if diff.docs_missing_on_secondary:
        lines.append("The following documents aren't present on the secondary:")
        lines.extend(f"  {_one_line(doc)}" for doc in diff.docs_missing_on_secondary)
    else:
        lines.append("No documents are missing from the secondary")

    return heading, "\n".join(lines)


class ReportBuilder:
    """Turns the mismatches of one replica set into a :class:`CheckOutcome`."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    async def build(
        self,
        mismatches: Sequence[MismatchRecord],
        sessions: Sequence[NodeSession],
        hosts: list[str],
    ) -> CheckOutcome:
        """Render *mismatches*; dump recent oplog entries first when any exist."""
        if not mismatches:
            return CheckOutcome(ok=1, hosts=hosts)

        await self.dump_oplogs(sessions)

        headings: list[str] = []
        sections: list[str] = []
        for mismatch in mismatches:
            heading, section = render_mismatch(mismatch)
            headings.append(heading)
            sections.append(section)

        report = "\n\n".join(sections)
        logger.error("%s", report)
        return CheckOutcome(
            ok=0,
            hosts=hosts,
            error=f"dbhash mismatch (search for the following headings): {json.dumps(headings)}",
            report=report,
            mismatches=list(mismatches),
        )

    async def dump_oplogs(self, sessions: Sequence[NodeSession]) -> None:
        limit = self._settings.oplog_dump_limit
        for session in sessions:
            try:
                entries = await session.read_oplog({}, limit)
            except CommandError as exc:
                logger.warning("Could not dump oplog of %s: %s", session.host, exc)
                continue
            logger.info("Dumping the latest %d oplog entries from %s", len(entries), session.host)
            for entry in entries:
                logger.info("  %s", _one_line(entry))
