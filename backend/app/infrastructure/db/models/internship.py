"""
Internship Model

Created when an application is accepted. Advanced from upcoming to active
to completed by the date sweep, or cancelled by an administrator.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from sqlmodel import Field, SQLModel

from app.domain.workflow import InternshipStatus
from app.infrastructure.db.models.base import BaseModel


class InternshipBase(SQLModel):
    """Base schema for internships."""

    student_id: UUID = Field(..., index=True, description="Intern (user id)")
    hospital_id: UUID = Field(..., index=True, description="Host hospital")

    application_id: Optional[UUID] = Field(
        default=None,
        foreign_key="applications.id",
        unique=True,
        description="Accepted application that produced this internship"
    )

    offer_id: Optional[UUID] = Field(
        default=None,
        foreign_key="stage_offers.id",
        index=True,
    )

    tutor_id: Optional[UUID] = Field(
        default=None,
        index=True,
        description="Supervising doctor (user id)"
    )

    start_date: date = Field(..., index=True)
    end_date: date = Field(..., index=True)


class Internship(InternshipBase, BaseModel, table=True):
    """Internship row with its lifecycle status."""

    __tablename__ = "internships"

    status: str = Field(
        default=InternshipStatus.UPCOMING.value,
        max_length=32,
        index=True,
    )

    completed_hours: float = Field(
        default=0.0,
        description="Hours credited from validated attendance"
    )


class InternshipCreate(InternshipBase):
    """Schema for creating an internship."""
    status: str = InternshipStatus.UPCOMING.value
