"""In-memory tracking of deployment runs."""

import asyncio
from datetime import datetime, timedelta
from functools import lru_cache
from uuid import UUID

from client_deployer.models.invocation import InvocationContext
from client_deployer.models.run import DeploymentRun, RunStatus


class SessionManager:
    """Tracks deployment runs and their cancel signals in memory.

    Runs are discarded after `ttl_hours`; nothing is persisted.
    """

    def __init__(self, ttl_hours: int = 24):
        self._runs: dict[UUID, DeploymentRun] = {}
        self._cancel_events: dict[UUID, asyncio.Event] = {}
        self._ttl = timedelta(hours=ttl_hours)

    async def create_run(self, context: InvocationContext) -> DeploymentRun:
        """Register a new pending run."""
        run = DeploymentRun(context=context)
        self._runs[run.id] = run
        self._cancel_events[run.id] = asyncio.Event()
        return run

    async def get_run(self, run_id: UUID) -> DeploymentRun | None:
        """Get a run by ID."""
        run = self._runs.get(run_id)
        if run and datetime.utcnow() - run.created_at > self._ttl:
            await self.delete_run(run_id)
            return None
        return run

    async def update_run(self, run: DeploymentRun) -> DeploymentRun:
        run.updated_at = datetime.utcnow()
        self._runs[run.id] = run
        return run

    async def delete_run(self, run_id: UUID) -> bool:
        self._cancel_events.pop(run_id, None)
        if run_id in self._runs:
            del self._runs[run_id]
            return True
        return False

    def cancel_event(self, run_id: UUID) -> asyncio.Event:
        """Get the cancel signal for a run."""
        if run_id not in self._cancel_events:
            self._cancel_events[run_id] = asyncio.Event()
        return self._cancel_events[run_id]

    async def request_cancel(self, run_id: UUID) -> bool:
        """Signal a running deployment to stop. Returns False if already finished."""
        run = self._runs.get(run_id)
        if run is None or run.is_terminal:
            return False
        self.cancel_event(run_id).set()
        return True

    async def list_runs(
        self,
        status: RunStatus | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[DeploymentRun], int]:
        """List runs, newest first, with optional status filtering."""
        runs = list(self._runs.values())

        if status:
            runs = [r for r in runs if r.status == status]

        runs.sort(key=lambda r: r.created_at, reverse=True)

        total = len(runs)
        return runs[offset : offset + limit], total

    async def cleanup_expired(self) -> int:
        """Remove expired runs. Returns count of removed runs."""
        now = datetime.utcnow()
        expired = [rid for rid, run in self._runs.items() if now - run.created_at > self._ttl]
        for rid in expired:
            await self.delete_run(rid)
        return len(expired)


# Singleton instance
_session_manager: SessionManager | None = None


@lru_cache
def get_session_manager() -> SessionManager:
    """Get the session manager singleton."""
    global _session_manager
    if _session_manager is None:
        _session_manager = SessionManager()
    return _session_manager
