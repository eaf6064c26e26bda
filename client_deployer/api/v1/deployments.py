"""Deployment run endpoints."""

import asyncio
import json
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, status
from pydantic import BaseModel
from sse_starlette.sse import EventSourceResponse

from client_deployer.actions.client_deploy import ClientDeployAction
from client_deployer.api.deps import (
    ActionsDep,
    EventsDep,
    RunDep,
    SessionDep,
    StorageFactoryDep,
)
from client_deployer.core.events import Event, EventBus
from client_deployer.core.exceptions import ClientDeployerError, DeploymentCancelledError
from client_deployer.core.session import SessionManager
from client_deployer.models.deployment import DeploymentReport
from client_deployer.models.invocation import InvocationContext
from client_deployer.models.run import DeploymentRunResponse, RunStatus
from client_deployer.utils.logging import bind_run_context, clear_run_context, get_logger

router = APIRouter()
logger = get_logger(__name__)

DEPLOY_COMMAND = "client deploy"


class DeploymentListResponse(BaseModel):
    """Response for listing deployment runs."""

    deployments: list[DeploymentRunResponse]
    total: int
    limit: int
    offset: int


async def run_deployment(
    run_id: UUID,
    session: SessionManager,
    events: EventBus,
    action: ClientDeployAction,
) -> None:
    """Background task: execute the deploy action and record the outcome."""
    run = await session.get_run(run_id)
    if not run:
        return

    run.status = RunStatus.RUNNING
    await session.update_run(run)
    bind_run_context(run_id=str(run_id), service=run.context.service_name)

    try:
        output = await action.execute(
            run.context,
            run_id=run.id,
            cancel_event=session.cancel_event(run.id),
        )
    except DeploymentCancelledError as e:
        partial = e.details.get("report")
        run.finish(
            RunStatus.CANCELLED,
            report=DeploymentReport.model_validate(partial) if partial else None,
            error=e.message,
        )
    except ClientDeployerError as e:
        logger.error("deployment.failed", error=e.message)
        run.finish(RunStatus.FAILED, error=e.message)
        await events.publish_error(run.id, e.message)
    except Exception as e:
        logger.exception("deployment.exception")
        run.finish(RunStatus.FAILED, error=str(e))
        await events.publish_error(run.id, str(e))
    else:
        if output.success:
            run.finish(RunStatus.COMPLETED, report=output.report)
        else:
            run.finish(
                RunStatus.FAILED,
                report=output.report,
                error="One or more sites failed to deploy",
            )
    finally:
        clear_run_context()

    await session.update_run(run)


@router.post(
    "",
    response_model=DeploymentRunResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start a client deployment",
    description="Validate the invocation and deploy in the background. Returns immediately.",
)
async def create_deployment(
    context: InvocationContext,
    session: SessionDep,
    events: EventsDep,
    actions: ActionsDep,
    storage_factory: StorageFactoryDep,
    background_tasks: BackgroundTasks,
) -> DeploymentRunResponse:
    """Create a deployment run and start it."""
    action = actions.create(DEPLOY_COMMAND, storage_factory=storage_factory, events=events)
    if action is None:
        raise HTTPException(
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
            detail=f"No action registered for '{DEPLOY_COMMAND}'",
        )

    # Configuration errors surface synchronously, before anything is scheduled
    await asyncio.to_thread(action.validate_and_prepare, context)

    run = await session.create_run(context)
    background_tasks.add_task(run_deployment, run.id, session, events, action)

    return DeploymentRunResponse.from_run(run)


@router.get(
    "",
    response_model=DeploymentListResponse,
    summary="List deployment runs",
)
async def list_deployments(
    session: SessionDep,
    status_filter: Annotated[RunStatus | None, Query(alias="status")] = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> DeploymentListResponse:
    runs, total = await session.list_runs(status=status_filter, limit=limit, offset=offset)

    return DeploymentListResponse(
        deployments=[DeploymentRunResponse.from_run(r) for r in runs],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/{run_id}",
    response_model=DeploymentRunResponse,
    summary="Get deployment run details",
)
async def get_deployment(run: RunDep) -> DeploymentRunResponse:
    """Get status and per-region report of a run."""
    return DeploymentRunResponse.from_run(run)


@router.delete(
    "/{run_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Cancel or delete a deployment run",
)
async def delete_deployment(run: RunDep, session: SessionDep) -> None:
    """Cancel an in-progress run or forget a finished one."""
    if not run.is_terminal:
        await session.request_cancel(run.id)
    else:
        await session.delete_run(run.id)


@router.get(
    "/{run_id}/stream",
    summary="Stream deployment events (SSE)",
)
async def stream_deployment_events(run: RunDep, events: EventsDep) -> EventSourceResponse:
    """Stream real-time progress events for a run using Server-Sent Events."""

    async def event_generator():
        queue = events.subscribe(run.id)

        try:
            yield {
                "event": "connected",
                "data": json.dumps({"run_id": str(run.id), "status": run.status.value}),
            }

            if run.is_terminal:
                return

            while True:
                try:
                    event: Event = await asyncio.wait_for(queue.get(), timeout=30.0)
                    yield {"event": event.event_type, "data": json.dumps(event.data)}

                    if event.is_terminal:
                        break

                except asyncio.TimeoutError:
                    yield {"event": "keepalive", "data": "{}"}

        finally:
            events.unsubscribe(run.id)

    return EventSourceResponse(event_generator())
