"""
Unit tests for hour and score calculations.
"""

from datetime import date, time
from uuid import uuid4

import pytest

from app.infrastructure.db.models import Attendance
from app.infrastructure.services.placement_service import calculate_overall_score
from app.infrastructure.services.side_effect_dispatcher import compute_hours_worked


def attendance(check_in, check_out) -> Attendance:
    return Attendance(
        internship_id=uuid4(),
        student_id=uuid4(),
        date=date(2026, 3, 10),
        check_in=check_in,
        check_out=check_out,
    )


class TestHoursWorked:

    def test_full_day(self):
        assert compute_hours_worked(attendance(time(8, 0), time(16, 30))) == 8.5

    def test_rounds_to_two_decimals(self):
        assert compute_hours_worked(attendance(time(9, 0), time(9, 20))) == 0.33

    @pytest.mark.parametrize("check_in, check_out", [
        (None, time(17, 0)),
        (time(8, 0), None),
        (None, None),
    ])
    def test_missing_times(self, check_in, check_out):
        assert compute_hours_worked(attendance(check_in, check_out)) is None

    def test_check_out_before_check_in(self):
        assert compute_hours_worked(attendance(time(17, 0), time(8, 0))) is None


class TestOverallScore:

    def test_all_criteria(self):
        scores = {
            "technical_skills_score": 20,
            "patient_relations_score": 20,
            "teamwork_score": 20,
            "professionalism_score": 20,
        }
        assert calculate_overall_score(scores) == 20

    def test_weights(self):
        scores = {
            "technical_skills_score": 10,
            "patient_relations_score": 0,
            "teamwork_score": 0,
            "professionalism_score": 0,
        }
        assert calculate_overall_score(scores) == 4.0

    def test_missing_criteria_are_renormalized(self):
        scores = {"technical_skills_score": 15, "teamwork_score": 15}
        assert calculate_overall_score(scores) == 15.0

    def test_no_scores(self):
        assert calculate_overall_score({}) is None
