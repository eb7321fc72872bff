"""Append-only diagnostic trail kept for the duration of one replica-set check."""

from __future__ import annotations

import json
import logging
from typing import Any


class DebugTrail:
    """Chronological record of what the checker observed.

    Entries are plain dicts (node, timestamps, error payloads).  The trail
    is only logged when a fatal error aborts the check, so recording is
    unconditional and cheap.
    """

    def __init__(self) -> None:
        self._entries: list[dict[str, Any]] = []

    def record(self, **entry: Any) -> None:
        self._entries.append(entry)

    @property
    def entries(self) -> list[dict[str, Any]]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def dump(self, logger: logging.Logger, level: int = logging.ERROR) -> None:
        """Log every entry as one JSON line each."""
        logger.log(level, "Diagnostic trail (%d entries):", len(self._entries))
        for entry in self._entries:
            logger.log(level, "  %s", json.dumps(entry, default=str, sort_keys=True))
