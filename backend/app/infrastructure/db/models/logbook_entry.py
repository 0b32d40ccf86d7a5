"""
Logbook Entry Model

Daily activity log written by the intern and reviewed by the supervising
doctor.
"""

from datetime import date as date_type, datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from app.domain.workflow import LogbookStatus
from app.infrastructure.db.models.base import BaseModel


class LogbookEntryBase(SQLModel):
    """Base schema for logbook entries."""

    internship_id: UUID = Field(..., foreign_key="internships.id", index=True)
    student_id: UUID = Field(..., index=True)
    date: date_type

    title: Optional[str] = Field(default=None, max_length=255)
    activities: Optional[str] = Field(default=None)
    skills_learned: Optional[str] = Field(default=None)
    reflections: Optional[str] = Field(default=None)


class LogbookEntry(LogbookEntryBase, BaseModel, table=True):
    """Logbook entry with review status."""

    __tablename__ = "logbook_entries"

    status: str = Field(
        default=LogbookStatus.DRAFT.value,
        max_length=32,
        index=True,
    )

    supervisor_comments: Optional[str] = Field(default=None)
    reviewed_by: Optional[UUID] = Field(default=None)
    reviewed_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))


class LogbookEntryCreate(LogbookEntryBase):
    """Schema for creating a logbook entry."""
    pass
