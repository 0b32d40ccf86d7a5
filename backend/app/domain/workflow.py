"""
Workflow Domain Models

Enums, value objects and DTOs for the placement workflow bounded context:
entity statuses, actors, transition plans/rejections, side effects and
sweep reports.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Type
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class EntityType(str, Enum):
    """Entities whose status is governed by the workflow engine."""
    APPLICATION = "application"
    INTERNSHIP = "internship"
    LOGBOOK_ENTRY = "logbook_entry"
    ATTENDANCE = "attendance"
    EVALUATION = "evaluation"


class Role(str, Enum):
    """Roles of the acting principal."""
    STUDENT = "student"
    DOCTOR = "doctor"
    HOSPITAL = "hospital"
    ADMIN = "admin"
    SYSTEM = "system"  # internal authority used by the sweep, never from a token


# =============================================================================
# Status Enums
# =============================================================================

class ApplicationStatus(str, Enum):
    PENDING = "pending"
    REVIEWING = "reviewing"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class InternshipStatus(str, Enum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class LogbookStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REVISION_REQUESTED = "revision_requested"
    CANCELLED = "cancelled"  # set only by internship cancellation


class AttendanceStatus(str, Enum):
    PENDING = "pending"
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"
    APPROVED = "approved"
    REJECTED = "rejected"


class EvaluationStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    ACKNOWLEDGED = "acknowledged"
    CANCELLED = "cancelled"  # set only by internship cancellation


class EvaluationType(str, Enum):
    MID_TERM = "mid-term"
    FINAL = "final"
    MONTHLY = "monthly"


class OfferStatus(str, Enum):
    PUBLISHED = "published"
    CLOSED = "closed"


STATUS_ENUMS: Dict[EntityType, Type[Enum]] = {
    EntityType.APPLICATION: ApplicationStatus,
    EntityType.INTERNSHIP: InternshipStatus,
    EntityType.LOGBOOK_ENTRY: LogbookStatus,
    EntityType.ATTENDANCE: AttendanceStatus,
    EntityType.EVALUATION: EvaluationStatus,
}


def parse_status(entity_type: EntityType, value: str) -> Optional[Enum]:
    """Return the status enum member for an entity type, or None if unknown."""
    try:
        return STATUS_ENUMS[entity_type](value)
    except ValueError:
        return None


# =============================================================================
# Transition Rules
# =============================================================================

class RejectionReason(str, Enum):
    """Why a transition request was refused."""
    NOT_FOUND = "NotFound"
    FORBIDDEN = "Forbidden"
    INVALID_TRANSITION = "InvalidTransition"
    ALREADY_TERMINAL = "AlreadyTerminal"
    CONFLICT = "Conflict"


class Relation(str, Enum):
    """Relationship the actor must have with the entity for an edge."""
    NONE = "none"
    OWNING_STUDENT = "owning_student"
    OFFER_HOSPITAL = "offer_hospital"
    ASSIGNED_TUTOR = "assigned_tutor"
    EVALUATOR = "evaluator"


class DateGate(str, Enum):
    """Calendar condition an edge requires."""
    NONE = "none"
    STARTED = "started"  # start_date <= today
    ENDED = "ended"      # end_date < today


@dataclass(frozen=True)
class TransitionRule:
    """One allow-listed edge: (entity, from, to, roles) plus relation and date gate."""
    entity_type: EntityType
    from_status: str
    to_status: str
    allowed_roles: FrozenSet[Role]
    relation: Relation = Relation.NONE
    date_gate: DateGate = DateGate.NONE


# =============================================================================
# Actors and Snapshots
# =============================================================================

class Actor(BaseModel):
    """Authenticated principal requesting a transition."""
    model_config = ConfigDict(frozen=True)

    user_id: UUID
    role: Role
    hospital_id: Optional[UUID] = None

    @property
    def is_system(self) -> bool:
        return self.role == Role.SYSTEM


SYSTEM_ACTOR = Actor(
    user_id=UUID("00000000-0000-0000-0000-000000000000"),
    role=Role.SYSTEM,
)


class EntitySnapshot(BaseModel):
    """
    Read-only view of an entity at validation time.

    Carries the fields every relation and date check needs, flattened from
    the entity and its parents (offer for applications, internship for
    logbook entries, attendance and evaluations).
    """
    entity_type: EntityType
    id: UUID
    status: str
    version: int = 0
    student_id: Optional[UUID] = None
    hospital_id: Optional[UUID] = None
    tutor_id: Optional[UUID] = None
    evaluator_id: Optional[UUID] = None
    internship_id: Optional[UUID] = None
    offer_id: Optional[UUID] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class TransitionPlan(BaseModel):
    """An approved transition, ready for the status write and side effects."""
    entity_type: EntityType
    entity_id: UUID
    from_status: str
    to_status: str
    actor: Actor
    snapshot: EntitySnapshot
    comment: Optional[str] = None


class TransitionRejection(BaseModel):
    """A refused transition."""
    reason: RejectionReason
    message: str


# =============================================================================
# Side Effects and Results
# =============================================================================

class SideEffectKind(str, Enum):
    STATUS_CHANGED = "status_changed"
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    HOURS_CREDITED = "hours_credited"
    NOTIFICATION_ENQUEUED = "notification_enqueued"


class NotificationType(str, Enum):
    APPLICATION = "application"
    INTERNSHIP = "internship"
    LOGBOOK = "logbook"
    ATTENDANCE = "attendance"
    EVALUATION = "evaluation"


class SideEffect(BaseModel):
    """A secondary write performed as part of a transition."""
    kind: SideEffectKind
    entity_type: Optional[str] = None
    entity_id: Optional[UUID] = None
    status: Optional[str] = None
    user_id: Optional[UUID] = None
    detail: Dict[str, Any] = Field(default_factory=dict)


class TransitionOutcome(str, Enum):
    OK = "ok"
    REJECTED = "rejected"


class TransitionResult(BaseModel):
    """Response of the workflow facade."""
    status: TransitionOutcome
    entity: Optional[Dict[str, Any]] = None
    reason: Optional[RejectionReason] = None
    message: Optional[str] = None
    side_effects: List[SideEffect] = Field(default_factory=list)

    @property
    def is_ok(self) -> bool:
        return self.status == TransitionOutcome.OK

    @classmethod
    def accepted(
        cls,
        entity: Dict[str, Any],
        side_effects: List[SideEffect],
    ) -> "TransitionResult":
        return cls(status=TransitionOutcome.OK, entity=entity, side_effects=side_effects)

    @classmethod
    def refused(
        cls,
        reason: RejectionReason,
        message: str,
        entity: Optional[Dict[str, Any]] = None,
    ) -> "TransitionResult":
        return cls(
            status=TransitionOutcome.REJECTED,
            reason=reason,
            message=message,
            entity=entity,
        )


class SweepReport(BaseModel):
    """Outcome of one run of the internship date sweep."""
    run_date: date
    activated: List[UUID] = Field(default_factory=list)
    completed: List[UUID] = Field(default_factory=list)
    failed: List[UUID] = Field(default_factory=list)

    @property
    def transitioned(self) -> int:
        return len(self.activated) + len(self.completed)
