"""
Placement API Routes

Endpoints that create the records moved through the workflow: applications,
logbook entries, attendance records and evaluations, plus tutor assignment.
"""

import logging
from datetime import date as date_type, time
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, status
from pydantic import BaseModel, Field, model_validator

from app.api.dependencies import ActorDep, PlacementServiceDep
from app.domain.workflow import EvaluationType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["placements"])


# =============================================================================
# Request Schemas
# =============================================================================

class ApplicationRequest(BaseModel):
    offer_id: UUID
    cover_letter: Optional[str] = Field(None, max_length=5000)


class LogbookEntryRequest(BaseModel):
    internship_id: UUID
    date: date_type
    title: Optional[str] = Field(None, max_length=255)
    activities: Optional[str] = None
    skills_learned: Optional[str] = None
    reflections: Optional[str] = None


class AttendanceRequest(BaseModel):
    internship_id: UUID
    date: date_type
    check_in: Optional[time] = None
    check_out: Optional[time] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_times(self) -> "AttendanceRequest":
        if self.check_in and self.check_out and self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self


class EvaluationRequest(BaseModel):
    internship_id: UUID
    type: EvaluationType = EvaluationType.MID_TERM
    technical_skills_score: Optional[float] = Field(None, ge=0, le=20)
    patient_relations_score: Optional[float] = Field(None, ge=0, le=20)
    teamwork_score: Optional[float] = Field(None, ge=0, le=20)
    professionalism_score: Optional[float] = Field(None, ge=0, le=20)
    feedback: Optional[str] = None


class TutorAssignmentRequest(BaseModel):
    tutor_id: UUID


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/applications", status_code=status.HTTP_201_CREATED)
async def submit_application(
    request: ApplicationRequest,
    actor: ActorDep,
    service: PlacementServiceDep,
) -> Dict[str, Any]:
    """Apply to a published offer (students)."""
    application = await service.submit_application(actor, request.offer_id, request.cover_letter)
    return application.model_dump(mode="json")


@router.post("/logbook-entries", status_code=status.HTTP_201_CREATED)
async def create_logbook_entry(
    request: LogbookEntryRequest,
    actor: ActorDep,
    service: PlacementServiceDep,
) -> Dict[str, Any]:
    """Create a draft logbook entry on the caller's internship."""
    entry = await service.create_logbook_entry(
        actor,
        request.internship_id,
        request.date,
        title=request.title,
        activities=request.activities,
        skills_learned=request.skills_learned,
        reflections=request.reflections,
    )
    return entry.model_dump(mode="json")


@router.post("/attendance", status_code=status.HTTP_201_CREATED)
async def record_attendance(
    request: AttendanceRequest,
    actor: ActorDep,
    service: PlacementServiceDep,
) -> Dict[str, Any]:
    """Record check-in/check-out for a day (pending until the tutor validates it)."""
    record = await service.record_attendance(
        actor,
        request.internship_id,
        request.date,
        check_in=request.check_in,
        check_out=request.check_out,
        notes=request.notes,
    )
    return record.model_dump(mode="json")


@router.post("/evaluations", status_code=status.HTTP_201_CREATED)
async def create_evaluation(
    request: EvaluationRequest,
    actor: ActorDep,
    service: PlacementServiceDep,
) -> Dict[str, Any]:
    """Draft an evaluation (doctors)."""
    evaluation = await service.create_evaluation(
        actor,
        request.internship_id,
        evaluation_type=request.type,
        scores=request.model_dump(include={
            "technical_skills_score",
            "patient_relations_score",
            "teamwork_score",
            "professionalism_score",
        }),
        feedback=request.feedback,
    )
    return evaluation.model_dump(mode="json")


@router.put("/internships/{internship_id}/tutor")
async def assign_tutor(
    internship_id: UUID,
    request: TutorAssignmentRequest,
    actor: ActorDep,
    service: PlacementServiceDep,
) -> Dict[str, Any]:
    """Assign the supervising doctor (owning hospital or administrators)."""
    internship = await service.assign_tutor(actor, internship_id, request.tutor_id)
    return internship.model_dump(mode="json")
