"""
Application Model

A student's application to an internship offer. Terminal applications are
kept for audit; rows are never deleted.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from app.domain.workflow import ApplicationStatus
from app.infrastructure.db.models.base import BaseModel


class ApplicationBase(SQLModel):
    """Base schema for applications."""

    student_id: UUID = Field(
        ...,
        index=True,
        description="Applying student (user id)"
    )

    offer_id: UUID = Field(
        ...,
        foreign_key="stage_offers.id",
        index=True,
        description="Offer applied to"
    )

    cover_letter: Optional[str] = Field(
        default=None,
        description="Free-text motivation from the student"
    )


class Application(ApplicationBase, BaseModel, table=True):
    """Application row with its review status."""

    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("student_id", "offer_id", name="uq_application_student_offer"),
    )

    status: str = Field(
        default=ApplicationStatus.PENDING.value,
        max_length=32,
        index=True,
    )

    rejection_reason: Optional[str] = Field(default=None)

    reviewed_by: Optional[UUID] = Field(default=None)

    reviewed_at: Optional[datetime] = Field(
        default=None,
        sa_type=DateTime(timezone=True),
    )


class ApplicationCreate(ApplicationBase):
    """Schema for creating an application."""
    pass
