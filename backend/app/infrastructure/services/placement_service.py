"""
Placement Service

Creates the records that the workflow engine later moves through their
statuses: applications, logbook entries, attendance records and
evaluations, plus tutor assignment on internships. Status changes are never
made here; they go through the WorkflowFacade.
"""

import logging
from datetime import date, time
from typing import Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.transitions import is_terminal
from app.domain.workflow import (
    Actor,
    AttendanceStatus,
    EntityType,
    EvaluationType,
    InternshipStatus,
    OfferStatus,
    Role,
)
from app.infrastructure.db.models.application import Application, ApplicationCreate
from app.infrastructure.db.models.attendance import Attendance, AttendanceCreate
from app.infrastructure.db.models.evaluation import Evaluation, EvaluationCreate
from app.infrastructure.db.models.internship import Internship
from app.infrastructure.db.models.logbook_entry import LogbookEntry, LogbookEntryCreate
from app.infrastructure.db.repositories import (
    ApplicationRepository,
    AttendanceRepository,
    EvaluationRepository,
    InternshipRepository,
    LogbookEntryRepository,
    OfferRepository,
)
from app.infrastructure.exceptions import (
    DuplicateError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)


logger = logging.getLogger(__name__)

# Weights of the evaluation criteria in the overall score
SCORE_WEIGHTS: Dict[str, float] = {
    "technical_skills_score": 0.40,
    "patient_relations_score": 0.25,
    "teamwork_score": 0.20,
    "professionalism_score": 0.15,
}


def calculate_overall_score(scores: Dict[str, Optional[float]]) -> Optional[float]:
    """
    Weighted average of the criteria that were scored.

    Missing criteria are left out and the remaining weights renormalized,
    so a partial evaluation still lands on the same 0-20 scale.
    """
    weighted = 0.0
    total_weight = 0.0
    for field, weight in SCORE_WEIGHTS.items():
        value = scores.get(field)
        if value is None:
            continue
        weighted += value * weight
        total_weight += weight
    if total_weight == 0:
        return None
    return round(weighted / total_weight, 2)


def _require_role(actor: Actor, *roles: Role) -> None:
    if actor.role not in roles:
        raise ForbiddenError(
            f"Role {actor.role.value} may not perform this operation",
            role=actor.role.value,
        )


class PlacementService:
    """
    Record creation for the placement workflow.

    Args:
        session: Request-scoped session; the caller commits
    """

    def __init__(self, session: AsyncSession):
        self._offers = OfferRepository(session)
        self._applications = ApplicationRepository(session)
        self._internships = InternshipRepository(session)
        self._logbook = LogbookEntryRepository(session)
        self._attendance = AttendanceRepository(session)
        self._evaluations = EvaluationRepository(session)

    async def _get_internship(self, internship_id: UUID) -> Internship:
        internship = await self._internships.get_by_id(internship_id)
        if internship is None:
            raise NotFoundError(
                f"Internship {internship_id} not found",
                operation="get",
                table="internships",
            )
        return internship

    async def _get_own_open_internship(self, actor: Actor, internship_id: UUID) -> Internship:
        internship = await self._get_internship(internship_id)
        if internship.student_id != actor.user_id:
            raise ForbiddenError("Internship belongs to another student", role=actor.role.value)
        if internship.status == InternshipStatus.CANCELLED.value:
            raise ValidationError("Internship has been cancelled")
        return internship

    # =========================================================================
    # Applications
    # =========================================================================

    async def submit_application(
        self,
        actor: Actor,
        offer_id: UUID,
        cover_letter: Optional[str] = None,
    ) -> Application:
        """
        Apply to a published offer.

        Raises:
            ForbiddenError: actor is not a student
            NotFoundError: unknown offer
            ValidationError: offer closed or full
            DuplicateError: the student already applied to this offer
        """
        _require_role(actor, Role.STUDENT)

        offer = await self._offers.get_by_id(offer_id)
        if offer is None:
            raise NotFoundError(f"Offer {offer_id} not found", operation="get", table="stage_offers")
        if offer.status != OfferStatus.PUBLISHED.value or offer.remaining_positions == 0:
            raise ValidationError("Offer is no longer accepting applications", details={"offer_id": str(offer_id)})

        existing = await self._applications.get_by_student_and_offer(actor.user_id, offer_id)
        if existing is not None:
            raise DuplicateError(
                "You have already applied to this offer",
                operation="create",
                table="applications",
            )

        application = await self._applications.create(
            ApplicationCreate(student_id=actor.user_id, offer_id=offer_id, cover_letter=cover_letter)
        )
        logger.info(f"[PLACEMENT] Student {actor.user_id} applied to offer {offer_id}")
        return application

    # =========================================================================
    # Logbook
    # =========================================================================

    async def create_logbook_entry(
        self,
        actor: Actor,
        internship_id: UUID,
        entry_date: date,
        title: Optional[str] = None,
        activities: Optional[str] = None,
        skills_learned: Optional[str] = None,
        reflections: Optional[str] = None,
    ) -> LogbookEntry:
        """Create a draft logbook entry on the student's own internship."""
        _require_role(actor, Role.STUDENT)
        internship = await self._get_own_open_internship(actor, internship_id)

        return await self._logbook.create(LogbookEntryCreate(
            internship_id=internship.id,
            student_id=actor.user_id,
            date=entry_date,
            title=title,
            activities=activities,
            skills_learned=skills_learned,
            reflections=reflections,
        ))

    # =========================================================================
    # Attendance
    # =========================================================================

    async def record_attendance(
        self,
        actor: Actor,
        internship_id: UUID,
        attendance_date: date,
        check_in: Optional[time] = None,
        check_out: Optional[time] = None,
        notes: Optional[str] = None,
    ) -> Attendance:
        """
        Record check-in/check-out for a day.

        Updates the day's record while it is still pending and creates a
        pending record when the day has none.

        Raises:
            ValidationError: the day was already validated
        """
        _require_role(actor, Role.STUDENT)
        internship = await self._get_own_open_internship(actor, internship_id)

        existing = await self._attendance.get_by_internship_and_date(internship.id, attendance_date)
        if existing is None:
            return await self._attendance.create(AttendanceCreate(
                internship_id=internship.id,
                student_id=actor.user_id,
                date=attendance_date,
                check_in=check_in,
                check_out=check_out,
                notes=notes,
            ))

        if existing.status != AttendanceStatus.PENDING.value:
            raise ValidationError(
                f"Attendance for {attendance_date.isoformat()} was already {existing.status}",
            )

        if check_in is not None:
            existing.check_in = check_in
        if check_out is not None:
            existing.check_out = check_out
        if notes is not None:
            existing.notes = notes
        # A reviewer holding the old values must not validate the new ones
        existing.version += 1
        session = self._attendance.session
        session.add(existing)
        await session.flush()
        await session.refresh(existing)
        return existing

    # =========================================================================
    # Evaluations
    # =========================================================================

    async def create_evaluation(
        self,
        actor: Actor,
        internship_id: UUID,
        evaluation_type: EvaluationType = EvaluationType.MID_TERM,
        scores: Optional[Dict[str, Optional[float]]] = None,
        feedback: Optional[str] = None,
    ) -> Evaluation:
        """
        Create a draft evaluation written by the acting doctor.

        The doctor must be the internship's tutor or work at its hospital.
        """
        _require_role(actor, Role.DOCTOR)
        internship = await self._get_internship(internship_id)

        is_tutor = internship.tutor_id is not None and internship.tutor_id == actor.user_id
        same_hospital = actor.hospital_id is not None and actor.hospital_id == internship.hospital_id
        if not (is_tutor or same_hospital):
            raise ForbiddenError("Doctor does not supervise this internship", role=actor.role.value)
        if internship.status == InternshipStatus.CANCELLED.value:
            raise ValidationError("Internship has been cancelled")

        scores = {field: (scores or {}).get(field) for field in SCORE_WEIGHTS}
        evaluation = await self._evaluations.create(EvaluationCreate(
            internship_id=internship.id,
            student_id=internship.student_id,
            evaluator_id=actor.user_id,
            type=EvaluationType(evaluation_type).value,
            overall_score=calculate_overall_score(scores),
            feedback=feedback,
            **scores,
        ))
        logger.info(f"[PLACEMENT] {evaluation.type} evaluation {evaluation.id} drafted for internship {internship.id}")
        return evaluation

    # =========================================================================
    # Tutor assignment
    # =========================================================================

    async def assign_tutor(self, actor: Actor, internship_id: UUID, tutor_id: UUID) -> Internship:
        """
        Set the supervising doctor of an internship.

        Allowed for the internship's hospital and for administrators.
        """
        _require_role(actor, Role.HOSPITAL, Role.ADMIN)
        internship = await self._get_internship(internship_id)

        if actor.role == Role.HOSPITAL and actor.hospital_id != internship.hospital_id:
            raise ForbiddenError("Internship belongs to another hospital", role=actor.role.value)
        if is_terminal(EntityType.INTERNSHIP, internship.status):
            raise ValidationError(f"Internship is already {internship.status}")

        updated = await self._internships.assign_tutor(internship.id, tutor_id)
        logger.info(f"[PLACEMENT] Tutor {tutor_id} assigned to internship {internship.id}")
        return updated
