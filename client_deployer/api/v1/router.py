"""Main router for API v1."""

from fastapi import APIRouter

from client_deployer.api.v1 import actions, deployments, health

router = APIRouter(prefix="/v1")

router.include_router(health.router, tags=["health"])
router.include_router(actions.router, prefix="/actions", tags=["actions"])
router.include_router(deployments.router, prefix="/deployments", tags=["deployments"])
