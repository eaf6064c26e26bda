"""Data models for client_deployer."""

from client_deployer.models.deployment import (
    BucketState,
    DeploymentPlan,
    DeploymentReport,
    DeploymentResult,
    DeployOptions,
    DeploymentTarget,
    FileUploadFailure,
    FileUploadUnit,
    ReconcileMode,
    SiteFailure,
    UploadSummary,
)
from client_deployer.models.invocation import (
    ClientSettings,
    CustomSettings,
    InvocationContext,
)
from client_deployer.models.run import (
    DeploymentRun,
    DeploymentRunResponse,
    RunStatus,
)

__all__ = [
    # Deployment models
    "BucketState",
    "DeploymentPlan",
    "DeploymentReport",
    "DeploymentResult",
    "DeployOptions",
    "DeploymentTarget",
    "FileUploadFailure",
    "FileUploadUnit",
    "ReconcileMode",
    "SiteFailure",
    "UploadSummary",
    # Invocation models
    "ClientSettings",
    "CustomSettings",
    "InvocationContext",
    # Run tracking
    "DeploymentRun",
    "DeploymentRunResponse",
    "RunStatus",
]
