"""
Evaluation Model

Mid-term, monthly or final assessment of an intern, written by a doctor and
acknowledged by the student.
"""

from typing import Optional
from uuid import UUID

from sqlmodel import Field, SQLModel

from app.domain.workflow import EvaluationStatus, EvaluationType
from app.infrastructure.db.models.base import BaseModel


class EvaluationBase(SQLModel):
    """Base schema for evaluations."""

    internship_id: UUID = Field(..., foreign_key="internships.id", index=True)
    student_id: UUID = Field(..., index=True)
    evaluator_id: UUID = Field(..., index=True)

    type: str = Field(
        default=EvaluationType.MID_TERM.value,
        max_length=32,
        description="mid-term, final or monthly"
    )

    technical_skills_score: Optional[float] = Field(default=None, ge=0, le=20)
    patient_relations_score: Optional[float] = Field(default=None, ge=0, le=20)
    teamwork_score: Optional[float] = Field(default=None, ge=0, le=20)
    professionalism_score: Optional[float] = Field(default=None, ge=0, le=20)
    overall_score: Optional[float] = Field(default=None)

    feedback: Optional[str] = Field(default=None)


class Evaluation(EvaluationBase, BaseModel, table=True):
    """Evaluation row with its status."""

    __tablename__ = "evaluations"

    status: str = Field(
        default=EvaluationStatus.DRAFT.value,
        max_length=32,
        index=True,
    )


class EvaluationCreate(EvaluationBase):
    """Schema for creating an evaluation."""
    pass
