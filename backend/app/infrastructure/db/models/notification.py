"""
Notification Model

Outbox of notification-creation requests. Rows are written in the same
transaction as the transition they report; the external notification
service reads and delivers them.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import JSON, Column
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from app.infrastructure.db.models.base import UUIDMixin, TimestampMixin


class NotificationBase(SQLModel):
    """Base schema for notifications."""

    user_id: UUID = Field(..., index=True, description="Recipient (user id)")

    type: str = Field(
        ...,
        max_length=50,
        description="application, internship, logbook, attendance or evaluation"
    )

    title: str = Field(..., max_length=255)
    message: str = Field(...)


class Notification(NotificationBase, UUIDMixin, TimestampMixin, table=True):
    """Persisted notification request."""

    __tablename__ = "notifications"

    data: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column(JSON().with_variant(JSONB, "postgresql")),
        description="Structured payload (entity ids, statuses, comments)"
    )

    is_read: bool = Field(default=False)


class NotificationCreate(NotificationBase):
    """Schema for enqueueing a notification."""
    data: Optional[Dict[str, Any]] = None
