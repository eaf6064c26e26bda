"""Dependency injection for API endpoints."""

from functools import lru_cache
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, status

from client_deployer.actions.registry import ActionRegistry, get_action_registry
from client_deployer.core.events import EventBus, get_event_bus
from client_deployer.core.session import SessionManager, get_session_manager
from client_deployer.core.storage import StorageClientFactory
from client_deployer.models.run import DeploymentRun


async def get_session() -> SessionManager:
    """Get the session manager."""
    return get_session_manager()


async def get_events() -> EventBus:
    """Get the event bus."""
    return get_event_bus()


async def get_actions() -> ActionRegistry:
    return get_action_registry()


@lru_cache
def _storage_factory() -> StorageClientFactory:
    return StorageClientFactory()


async def get_storage_factory() -> StorageClientFactory:
    """Get the shared per-region storage client factory."""
    return _storage_factory()


async def get_run_by_id(
    run_id: UUID,
    session: Annotated[SessionManager, Depends(get_session)],
) -> DeploymentRun:
    """Get a deployment run by ID or raise 404."""
    run = await session.get_run(run_id)
    if not run:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Deployment not found: {run_id}",
        )
    return run


# Type aliases for cleaner signatures
SessionDep = Annotated[SessionManager, Depends(get_session)]
EventsDep = Annotated[EventBus, Depends(get_events)]
ActionsDep = Annotated[ActionRegistry, Depends(get_actions)]
StorageFactoryDep = Annotated[StorageClientFactory, Depends(get_storage_factory)]
RunDep = Annotated[DeploymentRun, Depends(get_run_by_id)]
