"""Invocation context supplied by the host."""

from pathlib import Path

from pydantic import BaseModel, Field

from client_deployer.models.deployment import ReconcileMode


class ClientSettings(BaseModel):
    """The `custom.client` settings block of a service configuration."""

    bucket_name: str | None = None
    clients: list[str] | None = None
    reconcile_mode: ReconcileMode | None = None
    index_document: str | None = None
    error_document: str | None = None
    # Explicit False drops the error document from the website configuration
    use_error_document: bool = True


class CustomSettings(BaseModel):
    """Service-level `custom` block."""

    client: ClientSettings | None = None


class InvocationContext(BaseModel):
    """Everything the host resolves before invoking an action."""

    service_name: str = Field(..., min_length=1)
    stage: str = "dev"
    regions: list[str] = Field(default_factory=list)
    service_path: Path
    custom: CustomSettings = Field(default_factory=CustomSettings)
