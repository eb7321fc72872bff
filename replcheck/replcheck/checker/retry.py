"""Per-database check loop with transient-fault retry.

Each attempt selects a fresh read timestamp, waits for the secondaries to
reach it and compares hashes.  Faults classified as transient by
:func:`~replcheck.errors.classify_fault` restart the loop; anything else
aborts the database's check with the diagnostic trail attached.

The loop has no attempt ceiling; a long streak of retries only produces a
periodic warning.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from replcheck.checker.cluster_time import ClusterTimeCoordinator
from replcheck.checker.hashes import ConsistencyChecker
from replcheck.checker.trail import DebugTrail
from replcheck.config import Settings
from replcheck.errors import CommandError, ErrorCode, FatalCheckError, FaultKind, classify_fault
from replcheck.models.cluster_time import SignedClusterTime
from replcheck.models.outcome import MismatchRecord
from replcheck.models.retry import RetryPhase, RetryState
from replcheck.session.base import NodeSession

logger = logging.getLogger(__name__)


class RetryOrchestrator:
    """Drives ``SELECT_TIMESTAMP -> WAIT_SECONDARIES -> CHECK`` until done or fatal.

    Parameters
    ----------
    sessions:
        Sessions of the replica set, primary first.
    settings:
        Checker settings.
    trail:
        Diagnostic trail of the enclosing replica-set check.
    coordinator, checker:
        Optional pre-built collaborators; defaults are built from
        *sessions*, *settings* and *trail*.
    """

    def __init__(
        self,
        sessions: Sequence[NodeSession],
        settings: Settings,
        trail: DebugTrail,
        *,
        coordinator: ClusterTimeCoordinator | None = None,
        checker: ConsistencyChecker | None = None,
    ) -> None:
        self._sessions = list(sessions)
        self._settings = settings
        self._trail = trail
        self._coordinator = coordinator or ClusterTimeCoordinator(settings, trail)
        self._checker = checker or ConsistencyChecker(self._sessions)
        self.last_state: RetryState | None = None

    async def check_database(self, db_name: str) -> list[MismatchRecord]:
        """Check *db_name*, retrying transient faults until a clean read succeeds."""
        state = RetryState(db_name=db_name)
        self.last_state = state
        token: SignedClusterTime | None = None

        while True:
            state.phase = RetryPhase.SELECT_TIMESTAMP
            timestamp, new_token = self._coordinator.pick_read_timestamp(self._sessions)
            if state.current_timestamp is not None and timestamp < state.current_timestamp:
                # Never rewind; keep reading at the newer point already chosen.
                timestamp = state.current_timestamp
            else:
                token = new_token
            state.begin_attempt(timestamp)
            self._warn_if_long_running(state)

            state.phase = RetryPhase.WAIT_SECONDARIES
            try:
                await self._coordinator.wait_for_secondaries(timestamp, token, self._sessions[1:])
            except Exception:
                state.phase = RetryPhase.FATAL
                self._trail.dump(logger)
                raise

            for session in self._sessions:
                self._trail.record(node=session.host, read_at_cluster_time=timestamp)

            state.phase = RetryPhase.CHECK
            try:
                mismatches = await self._checker.check_collection_hashes_for_db(db_name, timestamp)
            except Exception as exc:
                kind = classify_fault(exc)
                if not kind.is_transient:
                    state.phase = RetryPhase.FATAL
                    raise self._fatal(state, exc) from exc
                self._handle_transient(state, kind, exc)
            else:
                state.phase = RetryPhase.DONE
                return mismatches

            if state.noop_write_requested:
                await self._perform_noop_write(state)
            state.phase = RetryPhase.RETRY

    def _handle_transient(self, state: RetryState, kind: FaultKind, exc: Exception) -> None:
        state.transient_error_seen = True
        if kind is FaultKind.SNAPSHOT_UNAVAILABLE:
            # A secondary's oldest retained snapshot can be newer than the
            # primary's; if the cluster time is not moving, force it to.
            state.noop_write_requested = state.timestamp_unchanged

        error_info = exc.to_dict() if isinstance(exc, CommandError) else {"errmsg": str(exc)}
        entry = {
            "attempt": state.attempt,
            "kind": kind.value,
            "read_at_cluster_time": state.current_timestamp,
            "error": error_info,
        }
        state.transient_errors.append(entry)
        self._trail.record(transient_error=entry, perform_noop_write=state.noop_write_requested)
        logger.debug(
            "Transient %s while checking %s at %s; retrying",
            kind.value,
            state.db_name,
            state.current_timestamp,
        )

    async def _perform_noop_write(self, state: RetryState) -> None:
        primary = self._sessions[0]
        try:
            await primary.run_command("admin", {"appendOplogNote": 1, "data": {}})
        except CommandError as exc:
            if exc.code != ErrorCode.LOCK_FAILED:
                state.phase = RetryPhase.FATAL
                raise self._fatal(state, exc) from exc
            # Global lock not acquired in time; a later attempt will try again.
            logger.debug("No-op write on %s failed to take the global lock", primary.host)

    def _warn_if_long_running(self, state: RetryState) -> None:
        if state.attempt % self._settings.retry_warning_interval == 0:
            logger.warning(
                "Database %s still not checked after %d attempts (last error: %s)",
                state.db_name,
                state.attempt,
                state.transient_errors[-1]["kind"] if state.transient_errors else "none",
            )

    def _fatal(self, state: RetryState, exc: Exception) -> FatalCheckError:
        self._trail.record(
            fatal_error=str(exc),
            db_name=state.db_name,
            previous_cluster_time=state.previous_timestamp,
            cluster_time=state.current_timestamp,
            operation_times={s.host: s.operation_time for s in self._sessions},
            transient_errors=len(state.transient_errors),
        )
        self._trail.dump(logger)
        return FatalCheckError(
            f"Data consistency check of database {state.db_name!r} failed at {state.current_timestamp}: {exc}",
            self._trail.entries,
        )
