"""Logging setup for the checker.

The hook runs frequently in the background, so output defaults to terse
text lines.  Set ``REPLCHECK_STRUCTURED_LOGGING=true`` to emit one JSON
object per line instead::

    {
        "timestamp": "2025-05-15T12:34:56.789012+00:00",
        "level": "INFO",
        "logger": "replcheck.checker.replica_set",
        "message": "Running data consistency checks for replica set: ...",
        "replica_set": "rs0/host1:27017,host2:27017",   // when provided via extra
        "db_name": "test",                              // when provided via extra
        "exc_info": "Traceback ..."                     // only on exceptions
    }
"""

from __future__ import annotations

import json
import logging
import traceback
from datetime import UTC, datetime
from typing import Any

from replcheck.config import Settings

_TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Optional ``extra=`` keys copied into the JSON payload.
_CONTEXT_FIELDS = ("replica_set", "db_name")


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        """Render *record* as a single JSON line."""
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in _CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_info"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(settings: Settings) -> logging.Handler:
    """Install a single handler on the ``replcheck`` logger and return it.

    Existing handlers on that logger are replaced so repeated calls do not
    duplicate output.
    """
    package_logger = logging.getLogger("replcheck")
    package_logger.handlers.clear()

    handler = logging.StreamHandler()
    if settings.structured_logging:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))

    package_logger.addHandler(handler)
    package_logger.setLevel(settings.log_level)
    return handler
