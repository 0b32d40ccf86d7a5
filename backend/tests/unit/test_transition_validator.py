"""
Unit tests for the transition table and validate().

validate() is pure, so these tests build snapshots by hand and never touch
a database.
"""

from datetime import date, timedelta
from uuid import uuid4

import pytest

from app.domain.transitions import (
    TERMINAL_STATUSES,
    TRANSITION_TABLE,
    allowed_targets,
    get_rule,
    is_terminal,
    validate,
)
from app.domain.workflow import (
    Actor,
    EntitySnapshot,
    EntityType,
    RejectionReason,
    Role,
    STATUS_ENUMS,
    SYSTEM_ACTOR,
    TransitionPlan,
    TransitionRejection,
)


TODAY = date(2026, 3, 10)
HOSPITAL = uuid4()
STUDENT = Actor(user_id=uuid4(), role=Role.STUDENT)
TUTOR = Actor(user_id=uuid4(), role=Role.DOCTOR, hospital_id=HOSPITAL)
REVIEWER = Actor(user_id=uuid4(), role=Role.HOSPITAL, hospital_id=HOSPITAL)
ADMIN = Actor(user_id=uuid4(), role=Role.ADMIN)
EVERYONE = [
    STUDENT,
    TUTOR,
    REVIEWER,
    ADMIN,
    SYSTEM_ACTOR,
]


def snapshot(entity_type: EntityType, status: str, **fields) -> EntitySnapshot:
    """Snapshot in which every relation holds for the actors above."""
    defaults = dict(
        student_id=STUDENT.user_id,
        hospital_id=HOSPITAL,
        tutor_id=TUTOR.user_id,
        evaluator_id=TUTOR.user_id,
        start_date=TODAY - timedelta(days=10),
        end_date=TODAY - timedelta(days=1),
    )
    defaults.update(fields)
    return EntitySnapshot(entity_type=entity_type, id=uuid4(), status=status, **defaults)


def check(entity_type, current, requested, actor, **fields):
    snap = snapshot(entity_type, current, **fields)
    return validate(entity_type, current, requested, actor, snap, today=TODAY)


def all_pairs(entity_type):
    statuses = [member.value for member in STATUS_ENUMS[entity_type]]
    return [(a, b) for a in statuses for b in statuses if a != b]


class TestTransitionTable:
    """Shape of the allow-list."""

    def test_terminal_statuses_have_no_outbound_edges(self):
        for rule in TRANSITION_TABLE:
            assert rule.from_status not in TERMINAL_STATUSES[rule.entity_type]

    @pytest.mark.parametrize("entity_type, status", [
        (EntityType.APPLICATION, "accepted"),
        (EntityType.APPLICATION, "rejected"),
        (EntityType.APPLICATION, "withdrawn"),
        (EntityType.INTERNSHIP, "completed"),
        (EntityType.INTERNSHIP, "cancelled"),
        (EntityType.LOGBOOK_ENTRY, "approved"),
        (EntityType.ATTENDANCE, "approved"),
        (EntityType.ATTENDANCE, "rejected"),
        (EntityType.EVALUATION, "acknowledged"),
    ])
    def test_expected_terminal_statuses(self, entity_type, status):
        assert is_terminal(entity_type, status)

    def test_revision_requested_is_not_terminal(self):
        assert not is_terminal(EntityType.LOGBOOK_ENTRY, "revision_requested")
        assert allowed_targets(EntityType.LOGBOOK_ENTRY, "revision_requested") == ["pending"]

    def test_internship_edges_are_system_only_except_cancel(self):
        assert get_rule(EntityType.INTERNSHIP, "upcoming", "active").allowed_roles == {Role.SYSTEM}
        assert get_rule(EntityType.INTERNSHIP, "active", "completed").allowed_roles == {Role.SYSTEM}
        assert get_rule(EntityType.INTERNSHIP, "active", "cancelled").allowed_roles == {Role.ADMIN}

    def test_every_rule_is_unique(self):
        keys = [(r.entity_type, r.from_status, r.to_status) for r in TRANSITION_TABLE]
        assert len(keys) == len(set(keys))


class TestValidateProperties:
    """Properties that must hold over the whole table."""

    @pytest.mark.parametrize("entity_type", list(EntityType))
    def test_unlisted_edges_are_invalid_for_every_role(self, entity_type):
        for current, requested in all_pairs(entity_type):
            if is_terminal(entity_type, current) or get_rule(entity_type, current, requested):
                continue
            for actor in EVERYONE:
                outcome = check(entity_type, current, requested, actor)
                assert isinstance(outcome, TransitionRejection)
                assert outcome.reason == RejectionReason.INVALID_TRANSITION, (current, requested, actor.role)

    @pytest.mark.parametrize("entity_type", list(EntityType))
    def test_terminal_states_never_transition(self, entity_type):
        statuses = [member.value for member in STATUS_ENUMS[entity_type]]
        for current in TERMINAL_STATUSES[entity_type]:
            for requested in statuses:
                if requested == current:
                    continue
                for actor in EVERYONE:
                    outcome = check(entity_type, current, requested, actor)
                    assert isinstance(outcome, TransitionRejection)
                    assert outcome.reason == RejectionReason.ALREADY_TERMINAL

    def test_unknown_target_status_is_invalid(self):
        outcome = check(EntityType.APPLICATION, "pending", "archived", REVIEWER)
        assert outcome.reason == RejectionReason.INVALID_TRANSITION

    def test_same_status_is_conflict(self):
        outcome = check(EntityType.APPLICATION, "reviewing", "reviewing", REVIEWER)
        assert outcome.reason == RejectionReason.CONFLICT

    def test_missing_snapshot_is_not_found(self):
        outcome = validate(EntityType.LOGBOOK_ENTRY, None, "pending", STUDENT, None)
        assert outcome.reason == RejectionReason.NOT_FOUND


class TestApplicationRules:

    def test_offer_hospital_can_start_review(self):
        outcome = check(EntityType.APPLICATION, "pending", "reviewing", REVIEWER)
        assert isinstance(outcome, TransitionPlan)
        assert outcome.from_status == "pending"
        assert outcome.to_status == "reviewing"

    def test_doctor_of_offer_hospital_can_accept(self):
        outcome = check(EntityType.APPLICATION, "reviewing", "accepted", TUTOR)
        assert isinstance(outcome, TransitionPlan)

    def test_reviewer_from_another_hospital_is_forbidden(self):
        outsider = Actor(user_id=uuid4(), role=Role.HOSPITAL, hospital_id=uuid4())
        outcome = check(EntityType.APPLICATION, "reviewing", "accepted", outsider)
        assert outcome.reason == RejectionReason.FORBIDDEN

    def test_student_cannot_accept_own_application(self):
        outcome = check(EntityType.APPLICATION, "reviewing", "accepted", STUDENT)
        assert outcome.reason == RejectionReason.FORBIDDEN

    def test_owner_can_withdraw(self):
        assert isinstance(check(EntityType.APPLICATION, "pending", "withdrawn", STUDENT), TransitionPlan)
        assert isinstance(check(EntityType.APPLICATION, "reviewing", "withdrawn", STUDENT), TransitionPlan)

    def test_other_student_cannot_withdraw(self):
        outcome = check(EntityType.APPLICATION, "pending", "withdrawn", Actor(user_id=uuid4(), role=Role.STUDENT))
        assert outcome.reason == RejectionReason.FORBIDDEN

    def test_comment_is_carried_on_the_plan(self):
        snap = snapshot(EntityType.APPLICATION, "reviewing")
        plan = validate(EntityType.APPLICATION, "reviewing", "rejected", REVIEWER, snap, comment="No slots", today=TODAY)
        assert plan.comment == "No slots"


class TestInternshipRules:

    def test_system_activates_when_start_date_reached(self):
        outcome = check(EntityType.INTERNSHIP, "upcoming", "active", SYSTEM_ACTOR, start_date=TODAY)
        assert isinstance(outcome, TransitionPlan)

    def test_activation_before_start_date_is_invalid(self):
        outcome = check(EntityType.INTERNSHIP, "upcoming", "active", SYSTEM_ACTOR, start_date=TODAY + timedelta(days=1))
        assert outcome.reason == RejectionReason.INVALID_TRANSITION

    def test_completion_requires_end_date_in_the_past(self):
        on_last_day = check(EntityType.INTERNSHIP, "active", "completed", SYSTEM_ACTOR, end_date=TODAY)
        after = check(EntityType.INTERNSHIP, "active", "completed", SYSTEM_ACTOR, end_date=TODAY - timedelta(days=1))
        assert on_last_day.reason == RejectionReason.INVALID_TRANSITION
        assert isinstance(after, TransitionPlan)

    @pytest.mark.parametrize("actor", [ADMIN, REVIEWER, TUTOR, STUDENT])
    def test_users_cannot_drive_date_transitions(self, actor):
        outcome = check(EntityType.INTERNSHIP, "upcoming", "active", actor, start_date=TODAY)
        assert outcome.reason == RejectionReason.FORBIDDEN

    def test_admin_cancels(self):
        assert isinstance(check(EntityType.INTERNSHIP, "upcoming", "cancelled", ADMIN), TransitionPlan)
        assert isinstance(check(EntityType.INTERNSHIP, "active", "cancelled", ADMIN), TransitionPlan)

    def test_hospital_cannot_cancel(self):
        outcome = check(EntityType.INTERNSHIP, "active", "cancelled", REVIEWER)
        assert outcome.reason == RejectionReason.FORBIDDEN


class TestLogbookRules:

    def test_student_submits_draft(self):
        assert isinstance(check(EntityType.LOGBOOK_ENTRY, "draft", "pending", STUDENT), TransitionPlan)

    def test_student_resubmits_after_revision(self):
        assert isinstance(check(EntityType.LOGBOOK_ENTRY, "revision_requested", "pending", STUDENT), TransitionPlan)

    def test_assigned_tutor_approves(self):
        assert isinstance(check(EntityType.LOGBOOK_ENTRY, "pending", "approved", TUTOR), TransitionPlan)

    def test_unassigned_doctor_is_forbidden(self):
        outsider = Actor(user_id=uuid4(), role=Role.DOCTOR, hospital_id=HOSPITAL)
        outcome = check(EntityType.LOGBOOK_ENTRY, "pending", "approved", outsider)
        assert outcome.reason == RejectionReason.FORBIDDEN

    def test_no_tutor_assigned_is_forbidden(self):
        outcome = check(EntityType.LOGBOOK_ENTRY, "pending", "approved", TUTOR, tutor_id=None)
        assert outcome.reason == RejectionReason.FORBIDDEN

    def test_draft_cannot_be_approved_directly(self):
        outcome = check(EntityType.LOGBOOK_ENTRY, "draft", "approved", TUTOR)
        assert outcome.reason == RejectionReason.INVALID_TRANSITION


class TestAttendanceRules:

    @pytest.mark.parametrize("target", ["approved", "rejected", "present", "absent", "late", "excused"])
    def test_tutor_validates(self, target):
        assert isinstance(check(EntityType.ATTENDANCE, "pending", target, TUTOR), TransitionPlan)

    def test_student_cannot_approve_own_attendance(self):
        outcome = check(EntityType.ATTENDANCE, "pending", "approved", STUDENT)
        assert outcome.reason == RejectionReason.FORBIDDEN


class TestEvaluationRules:

    def test_evaluator_submits(self):
        assert isinstance(check(EntityType.EVALUATION, "draft", "submitted", TUTOR), TransitionPlan)

    def test_other_doctor_cannot_submit(self):
        outcome = check(EntityType.EVALUATION, "draft", "submitted", TUTOR, evaluator_id=uuid4())
        assert outcome.reason == RejectionReason.FORBIDDEN

    def test_student_acknowledges_submitted(self):
        assert isinstance(check(EntityType.EVALUATION, "submitted", "acknowledged", STUDENT), TransitionPlan)

    def test_student_cannot_acknowledge_draft(self):
        outcome = check(EntityType.EVALUATION, "draft", "acknowledged", STUDENT)
        assert outcome.reason == RejectionReason.INVALID_TRANSITION
