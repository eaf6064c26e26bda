"""Tracked deployment runs."""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from client_deployer.models.deployment import DeploymentReport
from client_deployer.models.invocation import InvocationContext


class RunStatus(str, Enum):
    """Deployment run status."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.CANCELLED})


class DeploymentRun(BaseModel):
    """One host invocation of the client deploy action."""

    id: UUID = Field(default_factory=uuid4)
    status: RunStatus = RunStatus.PENDING
    context: InvocationContext

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: datetime | None = None

    report: DeploymentReport | None = None
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def finish(
        self,
        status: RunStatus,
        report: DeploymentReport | None = None,
        error: str | None = None,
    ) -> None:
        """Move the run into a terminal status."""
        now = datetime.utcnow()
        self.status = status
        self.report = report if report is not None else self.report
        self.error = error
        self.completed_at = now
        self.updated_at = now


class DeploymentRunResponse(BaseModel):
    """API response model for a deployment run."""

    run_id: UUID
    status: RunStatus
    service_name: str
    stage: str
    regions: list[str]
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None

    report: DeploymentReport | None = None
    error: str | None = None

    @classmethod
    def from_run(cls, run: DeploymentRun) -> "DeploymentRunResponse":
        """Create response from a run."""
        return cls(
            run_id=run.id,
            status=run.status,
            service_name=run.context.service_name,
            stage=run.context.stage,
            regions=run.context.regions,
            created_at=run.created_at,
            updated_at=run.updated_at,
            completed_at=run.completed_at,
            report=run.report,
            error=run.error,
        )
