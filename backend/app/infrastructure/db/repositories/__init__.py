"""
Repository Layer for the Placement Workflow Engine

Exports all repository classes for dependency injection.
"""

from app.infrastructure.db.repositories.base_repository import (
    BaseRepository,
    IReadRepository,
    IWriteRepository,
)
from app.infrastructure.db.repositories.offer_repository import OfferRepository
from app.infrastructure.db.repositories.application_repository import ApplicationRepository
from app.infrastructure.db.repositories.internship_repository import InternshipRepository
from app.infrastructure.db.repositories.logbook_repository import LogbookEntryRepository
from app.infrastructure.db.repositories.attendance_repository import AttendanceRepository
from app.infrastructure.db.repositories.evaluation_repository import EvaluationRepository
from app.infrastructure.db.repositories.notification_repository import NotificationRepository


__all__ = [
    # Base
    "BaseRepository",
    "IReadRepository",
    "IWriteRepository",
    # Repositories
    "OfferRepository",
    "ApplicationRepository",
    "InternshipRepository",
    "LogbookEntryRepository",
    "AttendanceRepository",
    "EvaluationRepository",
    "NotificationRepository",
]
