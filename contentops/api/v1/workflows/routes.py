"""Workflow API endpoints."""

import logging
from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from contentops.api.v1.workflows.constants import (
    SSE_EVENT_NAME,
    SSE_MEDIA_TYPE,
    WORKFLOW_ALREADY_FINISHED_DETAIL,
    WORKFLOW_NOT_FOUND_DETAIL,
    WORKFLOW_NOT_RUNNING_DETAIL,
)
from contentops.config import settings
from contentops.schemas.workflow import (
    WorkflowCancelResponse,
    WorkflowConfig,
    WorkflowStartResponse,
    WorkflowState,
)
from contentops.services.workflow.registry import WorkflowRegistry, get_workflow_registry

logger = logging.getLogger(__name__)

router = APIRouter()

Registry = Annotated[WorkflowRegistry, Depends(get_workflow_registry)]


def _format_event(state: WorkflowState) -> str:
    return (
        f"event: {SSE_EVENT_NAME}\n"
        f"id: {state.updated_at.isoformat()}\n"
        f"data: {state.model_dump_json()}\n\n"
    )


async def _single_event(state: WorkflowState) -> AsyncIterator[str]:
    yield _format_event(state)


async def _event_stream(states: AsyncIterator[WorkflowState]) -> AsyncIterator[str]:
    async for state in states:
        yield _format_event(state)


@router.post(
    "",
    response_model=WorkflowStartResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start workflow",
    description="Start a content enrichment workflow in the background.",
)
async def start_workflow(config: WorkflowConfig, registry: Registry) -> WorkflowStartResponse:
    """Start a workflow and return where to follow it."""
    state = await registry.start(config)
    base_url = f"{settings.api_v1_prefix}/workflows/{state.id}"
    return WorkflowStartResponse(
        workflow_id=state.id,
        phase=state.phase,
        progress=state.progress,
        status_url=base_url,
        events_url=f"{base_url}/events",
    )


@router.get(
    "/{workflow_id}",
    response_model=WorkflowState,
    summary="Get workflow state",
    description="Return the latest known state of a workflow.",
)
async def get_workflow(workflow_id: str, registry: Registry) -> WorkflowState:
    """Get workflow state."""
    state = await registry.get(workflow_id)
    if state is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=WORKFLOW_NOT_FOUND_DETAIL,
        )
    return state


@router.get(
    "/{workflow_id}/events",
    summary="Stream workflow events",
    description=(
        "Server-sent events with one state snapshot per update. Runs owned by "
        "another process emit their latest stored state once."
    ),
)
async def stream_workflow_events(workflow_id: str, registry: Registry) -> StreamingResponse:
    """Stream workflow state snapshots."""
    states = registry.stream(workflow_id)
    if states is not None:
        return StreamingResponse(_event_stream(states), media_type=SSE_MEDIA_TYPE)

    stored = await registry.get(workflow_id)
    if stored is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=WORKFLOW_NOT_FOUND_DETAIL,
        )
    return StreamingResponse(_single_event(stored), media_type=SSE_MEDIA_TYPE)


@router.delete(
    "/{workflow_id}",
    response_model=WorkflowCancelResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Cancel workflow",
    description="Request cancellation of a workflow running in this process.",
)
async def cancel_workflow(workflow_id: str, registry: Registry) -> WorkflowCancelResponse:
    """Cancel a running workflow."""
    if registry.cancel(workflow_id):
        state = await registry.get(workflow_id)
        logger.info("Workflow cancellation accepted", extra={"workflow_id": workflow_id})
        return WorkflowCancelResponse(
            workflow_id=workflow_id,
            cancelled=True,
            phase=state.phase if state else "failed",
        )

    state = await registry.get(workflow_id)
    if state is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=WORKFLOW_NOT_FOUND_DETAIL,
        )
    if state.is_terminal:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=WORKFLOW_ALREADY_FINISHED_DETAIL,
        )
    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=WORKFLOW_NOT_RUNNING_DETAIL,
    )
