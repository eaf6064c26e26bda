"""Registered action endpoints."""

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from client_deployer.api.deps import ActionsDep

router = APIRouter()


class ActionListResponse(BaseModel):
    actions: list[dict[str, Any]]


@router.get("", response_model=ActionListResponse, summary="List registered actions")
async def list_actions(actions: ActionsDep) -> ActionListResponse:
    """List the commands the host can invoke and their usage."""
    return ActionListResponse(actions=actions.describe())
