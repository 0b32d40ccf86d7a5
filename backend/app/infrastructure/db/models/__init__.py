"""
SQLModel ORM Models for the Placement Workflow Engine

Exports all database models for Alembic autogenerate and application use.
Import models here to register them with SQLModel.metadata.
"""

from app.infrastructure.db.models.base import (
    BaseModel,
    TimestampMixin,
    UUIDMixin,
    VersionMixin,
)
from app.infrastructure.db.models.offer import Offer, OfferCreate
from app.infrastructure.db.models.application import Application, ApplicationCreate
from app.infrastructure.db.models.internship import Internship, InternshipCreate
from app.infrastructure.db.models.logbook_entry import LogbookEntry, LogbookEntryCreate
from app.infrastructure.db.models.attendance import Attendance, AttendanceCreate
from app.infrastructure.db.models.evaluation import Evaluation, EvaluationCreate
from app.infrastructure.db.models.notification import Notification, NotificationCreate


__all__ = [
    # Base
    "BaseModel",
    "TimestampMixin",
    "UUIDMixin",
    "VersionMixin",
    # Offer
    "Offer",
    "OfferCreate",
    # Workflow entities
    "Application",
    "ApplicationCreate",
    "Internship",
    "InternshipCreate",
    "LogbookEntry",
    "LogbookEntryCreate",
    "Attendance",
    "AttendanceCreate",
    "Evaluation",
    "EvaluationCreate",
    # Outbox
    "Notification",
    "NotificationCreate",
]
