"""
Attendance Model

One record per internship day, recorded by the intern and validated by the
supervising doctor.
"""

from datetime import date as date_type, datetime, time
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from app.domain.workflow import AttendanceStatus
from app.infrastructure.db.models.base import BaseModel


class AttendanceBase(SQLModel):
    """Base schema for attendance records."""

    internship_id: UUID = Field(..., foreign_key="internships.id", index=True)
    student_id: UUID = Field(..., index=True)
    date: date_type

    check_in: Optional[time] = Field(default=None)
    check_out: Optional[time] = Field(default=None)
    notes: Optional[str] = Field(default=None)


class Attendance(AttendanceBase, BaseModel, table=True):
    """Attendance record with validation status."""

    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("internship_id", "date", name="uq_attendance_internship_date"),
    )

    status: str = Field(
        default=AttendanceStatus.PENDING.value,
        max_length=32,
        index=True,
    )

    hours_worked: Optional[float] = Field(default=None)
    validated_by: Optional[UUID] = Field(default=None)
    validated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))


class AttendanceCreate(AttendanceBase):
    """Schema for recording attendance."""
    pass
