"""Scoped enablement of the snapshot-history retention failpoint.

Keeping snapshot history around lets the primary and every secondary serve
reads at the same cluster time.  The failpoint is switched on when the
guard is entered and back off for every session it reached when the guard
exits, whatever the exit path.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from types import TracebackType

from replcheck.checker.trail import DebugTrail
from replcheck.session.base import NodeSession

logger = logging.getLogger(__name__)


class FailpointGuard:
    """Async context manager toggling one failpoint across a replica set.

    Parameters
    ----------
    sessions:
        Every session of the replica set being checked.
    failpoint:
        Name of the failpoint to configure.
    trail:
        Receives the acknowledgement ``operationTime`` of each enable call.
    """

    def __init__(self, sessions: Sequence[NodeSession], failpoint: str, trail: DebugTrail) -> None:
        self._sessions = list(sessions)
        self._failpoint = failpoint
        self._trail = trail
        self._enabled: list[NodeSession] = []

    @property
    def enabled_hosts(self) -> list[str]:
        """Hosts on which the failpoint is currently on."""
        return [s.host for s in self._enabled]

    async def __aenter__(self) -> FailpointGuard:
        try:
            for session in self._sessions:
                reply = await session.run_command(
                    "admin",
                    {"configureFailPoint": self._failpoint, "mode": "alwaysOn"},
                )
                self._enabled.append(session)
                self._trail.record(node=session.host, preserve_failpoint_op_time=reply.get("operationTime"))
        except BaseException:
            await self._disable_all(propagating=True)
            raise
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self._disable_all(propagating=exc is not None)

    async def _disable_all(self, *, propagating: bool) -> None:
        first_error: Exception | None = None
        while self._enabled:
            session = self._enabled.pop(0)
            try:
                await session.run_command("admin", {"configureFailPoint": self._failpoint, "mode": "off"})
            except Exception as exc:
                logger.error("Failed to turn off %s on %s: %s", self._failpoint, session.host, exc)
                if first_error is None:
                    first_error = exc

        # An error already unwinding the check takes precedence.
        if first_error is not None and not propagating:
            raise first_error
