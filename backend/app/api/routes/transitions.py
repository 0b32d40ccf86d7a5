"""
Workflow Transition API Routes

Endpoints for requesting status transitions and triggering the internship
date sweep by hand.
"""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.api.dependencies import ActorDep, AdminDep, SweepSchedulerDep, WorkflowFacadeDep
from app.domain.workflow import EntityType, RejectionReason, SweepReport, TransitionResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["workflow"])

# Rejections that are reported as errors; AlreadyTerminal and Conflict
# are no-op successes for the caller.
REJECTION_STATUS_CODES = {
    RejectionReason.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    RejectionReason.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    RejectionReason.INVALID_TRANSITION: status.HTTP_400_BAD_REQUEST,
}


# =============================================================================
# Request/Response Schemas
# =============================================================================

class TransitionRequest(BaseModel):
    entity_type: EntityType
    entity_id: UUID
    status: str = Field(..., min_length=1, description="Requested target status")
    comment: Optional[str] = Field(None, max_length=2000)


class SweepRunRequest(BaseModel):
    run_date: Optional[date] = None


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/transitions", response_model=TransitionResult)
async def request_transition(
    request: TransitionRequest,
    actor: ActorDep,
    facade: WorkflowFacadeDep,
):
    """
    Request a status change on a workflow entity.

    Returns 200 with the updated entity and side effects when applied.
    NotFound, Forbidden and InvalidTransition map to 404, 403 and 400;
    AlreadyTerminal and Conflict return 200 with ``status="rejected"``.
    """
    result = await facade.request_transition(
        request.entity_type,
        request.entity_id,
        request.status,
        actor,
        comment=request.comment,
    )
    status_code = status.HTTP_200_OK
    if not result.is_ok:
        status_code = REJECTION_STATUS_CODES.get(result.reason, status.HTTP_200_OK)
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))


@router.post("/sweep/run", response_model=SweepReport)
async def run_sweep(
    actor: AdminDep,
    scheduler: SweepSchedulerDep,
    request: Optional[SweepRunRequest] = None,
):
    """Run the internship date sweep now (administrators only)."""
    run_date = request.run_date if request else None
    logger.info(f"Manual sweep requested by {actor.user_id}")
    return await scheduler.run_now(run_date)
