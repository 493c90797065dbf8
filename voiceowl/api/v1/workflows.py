"""
Workflow endpoints - create, transition, inspect and list review workflows.
"""

from typing import Optional

from fastapi import APIRouter, Query, status

from voiceowl.api.deps import StateMachine
from voiceowl.schemas.common import ApiResponse
from voiceowl.schemas.workflow import (
    WorkflowCreate,
    WorkflowListResponse,
    WorkflowStatsResponse,
    WorkflowStatusResponse,
    WorkflowTransition,
)

router = APIRouter()


@router.post(
    "/workflow",
    response_model=ApiResponse[WorkflowStatusResponse],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_workflow(body: WorkflowCreate, machine: StateMachine):
    """Transcribe the audio and start its review workflow."""
    view = await machine.create(body.audio_url, body.language)
    return ApiResponse(data=view, message="Workflow created successfully")


# Declared before /workflow/{workflow_id} so "stats" is not taken for an id
@router.get(
    "/workflow/stats",
    response_model=ApiResponse[WorkflowStatsResponse],
    response_model_exclude_none=True,
)
async def get_workflow_stats(machine: StateMachine):
    """Count workflows per status."""
    return ApiResponse(data=await machine.stats())


@router.put(
    "/workflow/{workflow_id}/transition",
    response_model=ApiResponse[WorkflowStatusResponse],
    response_model_exclude_none=True,
)
async def transition_workflow(
    workflow_id: str,
    body: WorkflowTransition,
    machine: StateMachine,
):
    """
    Move a workflow to another status.

    The target must be reachable from the current status; the response
    lists the statuses reachable from the new one.
    """
    view = await machine.transition(
        workflow_id,
        body.new_status,
        comment=body.comment,
        reviewed_by=body.reviewed_by,
    )
    return ApiResponse(data=view, message=f"Workflow transitioned to {body.new_status.value}")


@router.get(
    "/workflow/{workflow_id}",
    response_model=ApiResponse[WorkflowStatusResponse],
    response_model_exclude_none=True,
)
async def get_workflow_status(workflow_id: str, machine: StateMachine):
    return ApiResponse(data=await machine.get_status(workflow_id))


@router.get(
    "/workflows",
    response_model=ApiResponse[WorkflowListResponse],
    response_model_exclude_none=True,
)
async def list_workflows(
    machine: StateMachine,
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, description="1-based page number"),
    limit: int = Query(10, description="Page size, 1-100"),
):
    """List workflows, most recently updated first."""
    result = await machine.list_workflows(status=status_filter, page=page, limit=limit)
    return ApiResponse(data=result)
