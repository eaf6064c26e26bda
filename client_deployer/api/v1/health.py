"""Health check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

from client_deployer import __version__
from client_deployer.api.deps import ActionsDep
from client_deployer.config import settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    environment: str
    timestamp: datetime
    commands: list[str]
    default_regions: list[str]
    reconcile_mode: str


@router.get("/health", response_model=HealthResponse)
async def health_check(actions: ActionsDep) -> HealthResponse:
    """Report API status, the registered commands and deploy defaults."""
    return HealthResponse(
        version=__version__,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc),
        commands=actions.list_commands(),
        default_regions=settings.default_regions,
        reconcile_mode=settings.reconcile_mode,
    )
