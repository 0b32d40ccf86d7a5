"""
Transition Validator

Explicit allow-list of status transitions for every workflow entity and the
pure ``validate`` function that checks a requested transition against it.

Each rule is a (entity, from, to, roles) tuple with an optional relation
check (who the actor must be with respect to the entity) and an optional
date gate. Anything not listed is refused; there is no fallthrough.
"""

from datetime import date
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple, Union

from app.domain.workflow import (
    Actor,
    ApplicationStatus as AS,
    AttendanceStatus as ATS,
    DateGate,
    EntitySnapshot,
    EntityType,
    EvaluationStatus as ES,
    InternshipStatus as IS,
    LogbookStatus as LS,
    Relation,
    RejectionReason,
    Role,
    STATUS_ENUMS,
    TransitionPlan,
    TransitionRejection,
    TransitionRule,
    parse_status,
)


def _edges(
    entity_type: EntityType,
    sources: Iterable[str],
    targets: Iterable[str],
    roles: Iterable[Role],
    relation: Relation = Relation.NONE,
    date_gate: DateGate = DateGate.NONE,
) -> List[TransitionRule]:
    """Expand a many-to-many edge declaration into individual rules."""
    allowed = frozenset(roles)
    return [
        TransitionRule(
            entity_type=entity_type,
            from_status=source.value,
            to_status=target.value,
            allowed_roles=allowed,
            relation=relation,
            date_gate=date_gate,
        )
        for source in sources
        for target in targets
    ]


REVIEWERS = (Role.HOSPITAL, Role.DOCTOR)

TRANSITION_TABLE: Tuple[TransitionRule, ...] = tuple(
    # Application
    _edges(EntityType.APPLICATION, [AS.PENDING], [AS.REVIEWING],
           REVIEWERS, Relation.OFFER_HOSPITAL)
    + _edges(EntityType.APPLICATION, [AS.REVIEWING], [AS.ACCEPTED, AS.REJECTED],
             REVIEWERS, Relation.OFFER_HOSPITAL)
    + _edges(EntityType.APPLICATION, [AS.PENDING, AS.REVIEWING], [AS.WITHDRAWN],
             [Role.STUDENT], Relation.OWNING_STUDENT)
    # Internship
    + _edges(EntityType.INTERNSHIP, [IS.UPCOMING], [IS.ACTIVE],
             [Role.SYSTEM], date_gate=DateGate.STARTED)
    + _edges(EntityType.INTERNSHIP, [IS.ACTIVE], [IS.COMPLETED],
             [Role.SYSTEM], date_gate=DateGate.ENDED)
    + _edges(EntityType.INTERNSHIP, [IS.UPCOMING, IS.ACTIVE], [IS.CANCELLED],
             [Role.ADMIN])
    # Logbook
    + _edges(EntityType.LOGBOOK_ENTRY, [LS.DRAFT, LS.REVISION_REQUESTED], [LS.PENDING],
             [Role.STUDENT], Relation.OWNING_STUDENT)
    + _edges(EntityType.LOGBOOK_ENTRY, [LS.PENDING], [LS.APPROVED, LS.REVISION_REQUESTED],
             [Role.DOCTOR], Relation.ASSIGNED_TUTOR)
    # Attendance
    + _edges(EntityType.ATTENDANCE, [ATS.PENDING],
             [ATS.APPROVED, ATS.REJECTED, ATS.PRESENT, ATS.ABSENT, ATS.LATE, ATS.EXCUSED],
             [Role.DOCTOR], Relation.ASSIGNED_TUTOR)
    # Evaluation
    + _edges(EntityType.EVALUATION, [ES.DRAFT], [ES.SUBMITTED],
             [Role.DOCTOR], Relation.EVALUATOR)
    + _edges(EntityType.EVALUATION, [ES.SUBMITTED], [ES.ACKNOWLEDGED],
             [Role.STUDENT], Relation.OWNING_STUDENT)
)

_RULES: Dict[Tuple[EntityType, str, str], TransitionRule] = {
    (rule.entity_type, rule.from_status, rule.to_status): rule
    for rule in TRANSITION_TABLE
}


def _terminal_statuses() -> Dict[EntityType, FrozenSet[str]]:
    sources: Dict[EntityType, Set[str]] = {entity_type: set() for entity_type in STATUS_ENUMS}
    for rule in TRANSITION_TABLE:
        sources[rule.entity_type].add(rule.from_status)
    return {
        entity_type: frozenset(
            member.value for member in STATUS_ENUMS[entity_type]
            if member.value not in sources[entity_type]
        )
        for entity_type in STATUS_ENUMS
    }


TERMINAL_STATUSES: Dict[EntityType, FrozenSet[str]] = _terminal_statuses()


def get_rule(entity_type: EntityType, from_status: str, to_status: str) -> Optional[TransitionRule]:
    """Look up the allow-list entry for an edge."""
    return _RULES.get((entity_type, from_status, to_status))


def is_terminal(entity_type: EntityType, status: str) -> bool:
    """A status is terminal when no allow-listed edge leaves it."""
    return status in TERMINAL_STATUSES[entity_type]


def allowed_targets(entity_type: EntityType, from_status: str) -> List[str]:
    """Statuses reachable in one step from ``from_status``."""
    return [
        rule.to_status for rule in TRANSITION_TABLE
        if rule.entity_type == entity_type and rule.from_status == from_status
    ]


def _relation_holds(relation: Relation, actor: Actor, snapshot: EntitySnapshot) -> bool:
    if relation == Relation.NONE:
        return True
    if relation == Relation.OWNING_STUDENT:
        return snapshot.student_id is not None and snapshot.student_id == actor.user_id
    if relation == Relation.OFFER_HOSPITAL:
        return snapshot.hospital_id is not None and snapshot.hospital_id == actor.hospital_id
    if relation == Relation.ASSIGNED_TUTOR:
        return snapshot.tutor_id is not None and snapshot.tutor_id == actor.user_id
    if relation == Relation.EVALUATOR:
        return snapshot.evaluator_id is not None and snapshot.evaluator_id == actor.user_id
    return False


def _date_gate_open(gate: DateGate, snapshot: EntitySnapshot, today: date) -> bool:
    if gate == DateGate.NONE:
        return True
    if gate == DateGate.STARTED:
        return snapshot.start_date is not None and snapshot.start_date <= today
    if gate == DateGate.ENDED:
        return snapshot.end_date is not None and snapshot.end_date < today
    return False


def validate(
    entity_type: EntityType,
    current_status: Optional[str],
    requested_status: str,
    actor: Actor,
    snapshot: Optional[EntitySnapshot],
    comment: Optional[str] = None,
    today: Optional[date] = None,
) -> Union[TransitionPlan, TransitionRejection]:
    """
    Check a requested transition against the allow-list.

    Pure: never touches storage. ``today`` defaults to the current date and
    only matters for date-gated edges.

    Returns:
        TransitionPlan when the transition is allowed, otherwise a
        TransitionRejection naming the reason.
    """
    if snapshot is None or current_status is None:
        return TransitionRejection(
            reason=RejectionReason.NOT_FOUND,
            message=f"{entity_type.value} not found",
        )

    if is_terminal(entity_type, current_status):
        return TransitionRejection(
            reason=RejectionReason.ALREADY_TERMINAL,
            message=f"{entity_type.value} is already {current_status}",
        )

    if requested_status == current_status:
        return TransitionRejection(
            reason=RejectionReason.CONFLICT,
            message=f"{entity_type.value} is already {current_status}",
        )

    rule = None
    if parse_status(entity_type, requested_status) is not None:
        rule = get_rule(entity_type, current_status, requested_status)
    if rule is None:
        return TransitionRejection(
            reason=RejectionReason.INVALID_TRANSITION,
            message=f"Cannot move {entity_type.value} from {current_status} to {requested_status}",
        )

    if not actor.is_system:
        if actor.role not in rule.allowed_roles:
            return TransitionRejection(
                reason=RejectionReason.FORBIDDEN,
                message=f"Role {actor.role.value} may not move {entity_type.value} to {requested_status}",
            )
        if not _relation_holds(rule.relation, actor, snapshot):
            return TransitionRejection(
                reason=RejectionReason.FORBIDDEN,
                message=f"Actor is not the {rule.relation.value.replace('_', ' ')} for this {entity_type.value}",
            )

    if not _date_gate_open(rule.date_gate, snapshot, today or date.today()):
        return TransitionRejection(
            reason=RejectionReason.INVALID_TRANSITION,
            message=f"{entity_type.value} is not due for {requested_status} yet",
        )

    return TransitionPlan(
        entity_type=entity_type,
        entity_id=snapshot.id,
        from_status=current_status,
        to_status=requested_status,
        actor=actor,
        snapshot=snapshot,
        comment=comment,
    )
