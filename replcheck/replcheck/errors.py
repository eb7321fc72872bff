"""Exception hierarchy and fault classification for the consistency checker.

Server-side failures arrive as :class:`CommandError` carrying the numeric
error code reported by the node.  :func:`classify_fault` maps any exception
onto the closed :class:`FaultKind` enumeration; the retry loop decides what
to do purely from that classification.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode:
    """Server error codes the checker reacts to."""

    INTERRUPTED = 11
    MAX_TIME_MS_EXPIRED = 50
    INVALID_OPTIONS = 72
    LOCK_FAILED = 107
    SNAPSHOT_UNAVAILABLE = 246


class FaultKind(str, Enum):
    """Classification of a failure raised while reading hashes."""

    INTERRUPTED = "INTERRUPTED"
    SNAPSHOT_UNAVAILABLE = "SNAPSHOT_UNAVAILABLE"
    AHEAD_OF_COMMIT_POINT = "AHEAD_OF_COMMIT_POINT"
    FATAL = "FATAL"

    @property
    def is_transient(self) -> bool:
        return self is not FaultKind.FATAL


_TRANSIENT_CODES: dict[int, FaultKind] = {
    # Sessions killed by a concurrently running test.
    ErrorCode.INTERRUPTED: FaultKind.INTERRUPTED,
    # Read timestamp older than the history a node still retains.
    ErrorCode.SNAPSHOT_UNAVAILABLE: FaultKind.SNAPSHOT_UNAVAILABLE,
    # Read timestamp past the all-committed point while a prepared
    # transaction is still in flight.
    ErrorCode.INVALID_OPTIONS: FaultKind.AHEAD_OF_COMMIT_POINT,
}


class ReplCheckError(Exception):
    """Base class for all checker errors."""


class CommandError(ReplCheckError):
    """A command sent to a node returned ``ok: 0``."""

    def __init__(self, code: int, message: str, *, code_name: str = "", host: str = "") -> None:
        self.code = code
        self.code_name = code_name
        self.host = host
        label = code_name or str(code)
        where = f" on {host}" if host else ""
        super().__init__(f"Command failed{where} with {label}: {message}")

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "codeName": self.code_name, "host": self.host, "errmsg": str(self)}


class ProgressTimeoutError(ReplCheckError):
    """A secondary did not apply up to the target timestamp in time."""


class UnsupportedTopologyError(ReplCheckError):
    """The deployment shape is not one the checker knows how to validate."""


class FatalCheckError(ReplCheckError):
    """A non-transient failure aborted the check of one replica set.

    Parameters
    ----------
    message:
        Human-readable description of what failed.
    trail:
        Diagnostic entries accumulated before the failure (timestamps,
        per-node operation times, transient errors seen).
    """

    def __init__(self, message: str, trail: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.trail = list(trail or [])


def classify_fault(exc: BaseException) -> FaultKind:
    """Return the :class:`FaultKind` for *exc*.

    Only :class:`CommandError` instances with one of the known transient
    codes are retryable; everything else is fatal.
    """
    if isinstance(exc, CommandError):
        return _TRANSIENT_CODES.get(exc.code, FaultKind.FATAL)
    return FaultKind.FATAL
