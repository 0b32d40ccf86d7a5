"""
Side-Effect Dispatcher

Translates an accepted transition into cascading writes and notification
requests. Rules are declared per (entity type, target status); every write
goes through the session of the transition being applied, so the primary
status change and all of its cascades commit or roll back together.
"""

import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from app.domain.transitions import TERMINAL_STATUSES
from app.domain.workflow import (
    ApplicationStatus,
    AttendanceStatus,
    EntityType,
    EvaluationStatus,
    EvaluationType,
    InternshipStatus,
    LogbookStatus,
    NotificationType,
    SideEffect,
    SideEffectKind,
    TransitionPlan,
)
from app.infrastructure.db.models.application import Application
from app.infrastructure.db.models.attendance import Attendance
from app.infrastructure.db.models.base import utcnow
from app.infrastructure.db.models.internship import Internship, InternshipCreate
from app.infrastructure.db.models.logbook_entry import LogbookEntry
from app.infrastructure.db.models.evaluation import Evaluation
from app.infrastructure.db.repositories import (
    ApplicationRepository,
    AttendanceRepository,
    EvaluationRepository,
    InternshipRepository,
    LogbookEntryRepository,
    OfferRepository,
)
from app.infrastructure.services.notification_service import NotificationOutbox


logger = logging.getLogger(__name__)

OFFER_FILLED_REASON = "All positions for this offer have been filled"
INTERNSHIP_CANCELLED_NOTE = "Internship cancelled"

# Attendance statuses that credit hours toward the internship total
CREDITED_ATTENDANCE = frozenset({AttendanceStatus.APPROVED.value, AttendanceStatus.PRESENT.value})

Handler = Callable[[TransitionPlan, SQLModel], Awaitable[List[SideEffect]]]


def compute_hours_worked(record: Attendance) -> Optional[float]:
    """Hours between check-in and check-out, or None when either is missing."""
    if record.check_in is None or record.check_out is None:
        return None
    start = datetime.combine(record.date, record.check_in)
    end = datetime.combine(record.date, record.check_out)
    if end <= start:
        return None
    return round((end - start).total_seconds() / 3600, 2)


def status_changed(entity_type: str, entity_id, status: str, **detail: Any) -> SideEffect:
    return SideEffect(
        kind=SideEffectKind.STATUS_CHANGED,
        entity_type=entity_type,
        entity_id=entity_id,
        status=status,
        detail=detail,
    )


class SideEffectDispatcher:
    """
    Applies the declared side effects of accepted transitions.

    Args:
        session: Session of the transaction the primary write belongs to
    """

    def __init__(self, session: AsyncSession):
        self._session = session
        self._outbox = NotificationOutbox(session)
        self._offers = OfferRepository(session)
        self._applications = ApplicationRepository(session)
        self._internships = InternshipRepository(session)
        self._logbook = LogbookEntryRepository(session)
        self._attendance = AttendanceRepository(session)
        self._evaluations = EvaluationRepository(session)

        self._rules: Dict[Tuple[EntityType, str], Handler] = {
            (EntityType.APPLICATION, ApplicationStatus.REVIEWING.value): self._on_application_reviewing,
            (EntityType.APPLICATION, ApplicationStatus.ACCEPTED.value): self._on_application_accepted,
            (EntityType.APPLICATION, ApplicationStatus.REJECTED.value): self._on_application_rejected,
            (EntityType.INTERNSHIP, InternshipStatus.ACTIVE.value): self._on_internship_active,
            (EntityType.INTERNSHIP, InternshipStatus.COMPLETED.value): self._on_internship_completed,
            (EntityType.INTERNSHIP, InternshipStatus.CANCELLED.value): self._on_internship_cancelled,
            (EntityType.LOGBOOK_ENTRY, LogbookStatus.PENDING.value): self._on_logbook_submitted,
            (EntityType.LOGBOOK_ENTRY, LogbookStatus.APPROVED.value): self._on_logbook_reviewed,
            (EntityType.LOGBOOK_ENTRY, LogbookStatus.REVISION_REQUESTED.value): self._on_logbook_reviewed,
            (EntityType.EVALUATION, EvaluationStatus.SUBMITTED.value): self._on_evaluation_submitted,
            (EntityType.EVALUATION, EvaluationStatus.ACKNOWLEDGED.value): self._on_evaluation_acknowledged,
        }
        for status in AttendanceStatus:
            if status != AttendanceStatus.PENDING:
                self._rules[(EntityType.ATTENDANCE, status.value)] = self._on_attendance_validated

    # =========================================================================
    # Primary write
    # =========================================================================

    def status_write_values(self, plan: TransitionPlan, entity: SQLModel) -> Dict[str, Any]:
        """Columns written together with the status itself."""
        now = utcnow()
        reviewer = None if plan.actor.is_system else plan.actor.user_id

        if plan.entity_type == EntityType.APPLICATION:
            if plan.to_status == ApplicationStatus.WITHDRAWN.value:
                return {}
            values: Dict[str, Any] = {"reviewed_by": reviewer, "reviewed_at": now}
            if plan.to_status == ApplicationStatus.REJECTED.value:
                values["rejection_reason"] = plan.comment
            return values

        if plan.entity_type == EntityType.LOGBOOK_ENTRY and plan.to_status in (
            LogbookStatus.APPROVED.value,
            LogbookStatus.REVISION_REQUESTED.value,
        ):
            return {
                "supervisor_comments": plan.comment,
                "reviewed_by": reviewer,
                "reviewed_at": now,
            }

        if plan.entity_type == EntityType.ATTENDANCE:
            values = {
                "validated_by": reviewer,
                "validated_at": now,
                "hours_worked": compute_hours_worked(entity),
            }
            if plan.comment:
                values["notes"] = "\n".join(filter(None, [entity.notes, plan.comment]))
            return values

        return {}

    # =========================================================================
    # Dispatch
    # =========================================================================

    async def apply(self, plan: TransitionPlan, entity: SQLModel) -> List[SideEffect]:
        """
        Run the rule declared for ``plan``'s target status.

        Args:
            plan: The approved transition
            entity: The entity row after the status write

        Returns:
            Side effects performed (cascades, records, notifications)
        """
        handler = self._rules.get((plan.entity_type, plan.to_status))
        if handler is None:
            return []
        effects = await handler(plan, entity)
        logger.debug(
            "Applied %d side effects for %s %s -> %s",
            len(effects), plan.entity_type.value, plan.entity_id, plan.to_status,
        )
        return effects

    async def _notify(self, effects: List[SideEffect], *args: Any, **kwargs: Any) -> None:
        effect = await self._outbox.enqueue(*args, **kwargs)
        if effect is not None:
            effects.append(effect)

    # =========================================================================
    # Application rules
    # =========================================================================

    async def _on_application_reviewing(self, plan: TransitionPlan, application: Application) -> List[SideEffect]:
        effects: List[SideEffect] = []
        await self._notify(
            effects,
            application.student_id,
            NotificationType.APPLICATION,
            "Application Under Review",
            "Your application is now under review.",
            {"application_id": application.id, "status": application.status},
        )
        return effects

    async def _on_application_accepted(self, plan: TransitionPlan, application: Application) -> List[SideEffect]:
        """
        Accepting an application consumes an offer position, opens the
        internship and, once the offer is full, rejects every competitor.
        """
        effects: List[SideEffect] = []

        offer = await self._offers.claim_position(application.offer_id)
        effects.append(SideEffect(
            kind=SideEffectKind.RECORD_UPDATED,
            entity_type="offer",
            entity_id=offer.id,
            detail={"filled_positions": offer.filled_positions, "positions": offer.positions},
        ))

        internship = await self._internships.create(InternshipCreate(
            student_id=application.student_id,
            hospital_id=offer.hospital_id,
            application_id=application.id,
            offer_id=offer.id,
            start_date=offer.start_date,
            end_date=offer.end_date,
            status=InternshipStatus.UPCOMING.value,
        ))
        effects.append(SideEffect(
            kind=SideEffectKind.RECORD_CREATED,
            entity_type=EntityType.INTERNSHIP.value,
            entity_id=internship.id,
            status=internship.status,
            user_id=internship.student_id,
        ))
        logger.info("Created internship %s from application %s", internship.id, application.id)

        await self._notify(
            effects,
            application.student_id,
            NotificationType.APPLICATION,
            "Application Accepted!",
            f"Congratulations! Your application for \"{offer.title}\" has been accepted.",
            {"application_id": application.id, "internship_id": internship.id, "status": application.status},
        )

        if offer.remaining_positions == 0:
            await self._offers.close(offer.id)
            competitors = await self._applications.list_competing(
                offer.id,
                exclude_id=application.id,
                statuses=[ApplicationStatus.PENDING.value, ApplicationStatus.REVIEWING.value],
            )
            for competitor in competitors:
                rejected = await self._applications.compare_and_set_status(
                    competitor.id,
                    expected_status=competitor.status,
                    expected_version=competitor.version,
                    new_status=ApplicationStatus.REJECTED.value,
                    rejection_reason=OFFER_FILLED_REASON,
                    reviewed_at=utcnow(),
                )
                effects.append(status_changed(
                    EntityType.APPLICATION.value, rejected.id, rejected.status, cascade=True,
                ))
                await self._notify(
                    effects,
                    rejected.student_id,
                    NotificationType.APPLICATION,
                    "Application Update",
                    f"Your application for \"{offer.title}\" was not selected. Reason: {OFFER_FILLED_REASON}",
                    {"application_id": rejected.id, "status": rejected.status},
                )
            if competitors:
                logger.info(
                    "Offer %s filled; rejected %d competing applications",
                    offer.id, len(competitors),
                )

        return effects

    async def _on_application_rejected(self, plan: TransitionPlan, application: Application) -> List[SideEffect]:
        effects: List[SideEffect] = []
        reason = f" Reason: {application.rejection_reason}" if application.rejection_reason else ""
        await self._notify(
            effects,
            application.student_id,
            NotificationType.APPLICATION,
            "Application Update",
            f"Your application was not selected.{reason}",
            {"application_id": application.id, "status": application.status},
        )
        return effects

    # =========================================================================
    # Internship rules
    # =========================================================================

    async def _on_internship_active(self, plan: TransitionPlan, internship: Internship) -> List[SideEffect]:
        effects: List[SideEffect] = []
        await self._notify(
            effects,
            internship.student_id,
            NotificationType.INTERNSHIP,
            "Internship Started",
            f"Your internship has started ({internship.start_date.isoformat()}).",
            {"internship_id": internship.id, "status": internship.status},
        )
        return effects

    async def _on_internship_completed(self, plan: TransitionPlan, internship: Internship) -> List[SideEffect]:
        """Prompt the intern, the tutor and pending final evaluators to finalize evaluations."""
        effects: List[SideEffect] = []
        outstanding = await self._evaluations.list_for_internship(
            internship.id,
            statuses=[EvaluationStatus.DRAFT.value, EvaluationStatus.SUBMITTED.value],
            evaluation_type=EvaluationType.FINAL.value,
        )
        payload = {
            "internship_id": internship.id,
            "status": internship.status,
            "outstanding_final_evaluations": len(outstanding),
        }

        await self._notify(
            effects,
            internship.student_id,
            NotificationType.EVALUATION,
            "Internship Completed",
            "Your internship is complete. Please finalize your final evaluation.",
            payload,
        )

        evaluators = []
        for evaluator_id in [internship.tutor_id] + [e.evaluator_id for e in outstanding]:
            if evaluator_id is not None and evaluator_id not in evaluators:
                evaluators.append(evaluator_id)
        for evaluator_id in evaluators:
            await self._notify(
                effects,
                evaluator_id,
                NotificationType.EVALUATION,
                "Final Evaluation Due",
                "An internship you supervise has ended. Please complete the final evaluation.",
                payload,
            )
        return effects

    async def _on_internship_cancelled(self, plan: TransitionPlan, internship: Internship) -> List[SideEffect]:
        """Close every open dependent row with a terminal status; nothing is deleted."""
        effects: List[SideEffect] = []

        open_entries = await self._logbook.list_for_internship(
            internship.id,
            statuses=[
                s.value for s in LogbookStatus
                if s.value not in TERMINAL_STATUSES[EntityType.LOGBOOK_ENTRY]
            ],
        )
        for entry in open_entries:
            updated = await self._logbook.compare_and_set_status(
                entry.id, entry.status, entry.version, LogbookStatus.CANCELLED.value,
            )
            effects.append(status_changed(EntityType.LOGBOOK_ENTRY.value, updated.id, updated.status, cascade=True))

        pending_attendance = await self._attendance.list_for_internship(
            internship.id, statuses=[AttendanceStatus.PENDING.value],
        )
        for record in pending_attendance:
            updated = await self._attendance.compare_and_set_status(
                record.id, record.status, record.version, AttendanceStatus.REJECTED.value,
                notes="\n".join(filter(None, [record.notes, INTERNSHIP_CANCELLED_NOTE])),
                validated_at=utcnow(),
            )
            effects.append(status_changed(EntityType.ATTENDANCE.value, updated.id, updated.status, cascade=True))

        open_evaluations = await self._evaluations.list_for_internship(
            internship.id,
            statuses=[EvaluationStatus.DRAFT.value, EvaluationStatus.SUBMITTED.value],
        )
        for evaluation in open_evaluations:
            updated = await self._evaluations.compare_and_set_status(
                evaluation.id, evaluation.status, evaluation.version, EvaluationStatus.CANCELLED.value,
            )
            effects.append(status_changed(EntityType.EVALUATION.value, updated.id, updated.status, cascade=True))

        payload = {"internship_id": internship.id, "status": internship.status}
        await self._notify(
            effects,
            internship.student_id,
            NotificationType.INTERNSHIP,
            "Internship Cancelled",
            "Your internship has been cancelled by the administration.",
            payload,
        )
        await self._notify(
            effects,
            internship.tutor_id,
            NotificationType.INTERNSHIP,
            "Internship Cancelled",
            "An internship you supervise has been cancelled.",
            payload,
        )
        logger.info(
            "Cancelled internship %s: %d logbook, %d attendance, %d evaluation rows closed",
            internship.id, len(open_entries), len(pending_attendance), len(open_evaluations),
        )
        return effects

    # =========================================================================
    # Logbook rules
    # =========================================================================

    async def _on_logbook_submitted(self, plan: TransitionPlan, entry: LogbookEntry) -> List[SideEffect]:
        effects: List[SideEffect] = []
        await self._notify(
            effects,
            plan.snapshot.tutor_id,
            NotificationType.LOGBOOK,
            "Logbook Entry Submitted",
            f"A logbook entry for {entry.date.isoformat()} is waiting for your review.",
            {"logbook_entry_id": entry.id, "internship_id": entry.internship_id, "status": entry.status},
        )
        return effects

    async def _on_logbook_reviewed(self, plan: TransitionPlan, entry: LogbookEntry) -> List[SideEffect]:
        effects: List[SideEffect] = []
        approved = entry.status == LogbookStatus.APPROVED.value
        await self._notify(
            effects,
            entry.student_id,
            NotificationType.LOGBOOK,
            "Logbook Entry Approved" if approved else "Logbook Revision Requested",
            entry.supervisor_comments
            or ("Your logbook entry was approved." if approved else "Your logbook entry needs revision."),
            {
                "logbook_entry_id": entry.id,
                "status": entry.status,
                "supervisor_comments": entry.supervisor_comments,
            },
        )
        return effects

    # =========================================================================
    # Attendance rules
    # =========================================================================

    async def _on_attendance_validated(self, plan: TransitionPlan, record: Attendance) -> List[SideEffect]:
        effects: List[SideEffect] = []

        if record.status in CREDITED_ATTENDANCE and record.hours_worked:
            await self._internships.credit_hours(record.internship_id, record.hours_worked)
            effects.append(SideEffect(
                kind=SideEffectKind.HOURS_CREDITED,
                entity_type=EntityType.INTERNSHIP.value,
                entity_id=record.internship_id,
                detail={"hours": record.hours_worked, "attendance_id": str(record.id)},
            ))

        await self._notify(
            effects,
            record.student_id,
            NotificationType.ATTENDANCE,
            "Attendance Validated",
            f"Your attendance for {record.date.isoformat()} was marked {record.status}.",
            {"attendance_id": record.id, "status": record.status, "hours_worked": record.hours_worked},
        )
        return effects

    # =========================================================================
    # Evaluation rules
    # =========================================================================

    async def _on_evaluation_submitted(self, plan: TransitionPlan, evaluation: Evaluation) -> List[SideEffect]:
        effects: List[SideEffect] = []
        await self._notify(
            effects,
            evaluation.student_id,
            NotificationType.EVALUATION,
            "New Evaluation",
            f"Your {evaluation.type} evaluation is available. Please acknowledge it.",
            {"evaluation_id": evaluation.id, "status": evaluation.status},
        )
        return effects

    async def _on_evaluation_acknowledged(self, plan: TransitionPlan, evaluation: Evaluation) -> List[SideEffect]:
        effects: List[SideEffect] = []
        await self._notify(
            effects,
            evaluation.evaluator_id,
            NotificationType.EVALUATION,
            "Evaluation Acknowledged",
            f"The student acknowledged the {evaluation.type} evaluation.",
            {"evaluation_id": evaluation.id, "status": evaluation.status},
        )
        return effects
