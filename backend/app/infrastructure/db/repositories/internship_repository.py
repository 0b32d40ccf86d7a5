"""
Internship Repository

Extends BaseRepository with the date-driven selections used by the sweep
and hour accounting used by attendance validation.
"""

from datetime import date
from typing import List
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.workflow import InternshipStatus
from app.infrastructure.db.models.base import utcnow
from app.infrastructure.db.models.internship import Internship, InternshipCreate
from app.infrastructure.db.repositories.base_repository import BaseRepository


class InternshipRepository(BaseRepository[Internship, InternshipCreate]):
    """Repository for internships."""

    def __init__(self, session: AsyncSession):
        super().__init__(Internship, session)

    async def list_due_for_activation(self, today: date) -> List[UUID]:
        """Ids of upcoming internships whose start date has arrived."""
        stmt = (
            select(Internship.id)
            .where(
                Internship.status == InternshipStatus.UPCOMING.value,
                Internship.start_date <= today,
            )
            .order_by(Internship.start_date)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_due_for_completion(self, today: date) -> List[UUID]:
        """Ids of active internships whose end date has passed."""
        stmt = (
            select(Internship.id)
            .where(
                Internship.status == InternshipStatus.ACTIVE.value,
                Internship.end_date < today,
            )
            .order_by(Internship.end_date)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def credit_hours(self, internship_id: UUID, hours: float) -> None:
        """Add validated attendance hours to the internship total."""
        stmt = (
            update(Internship)
            .where(Internship.id == internship_id)
            .values(
                completed_hours=Internship.completed_hours + hours,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)

    async def assign_tutor(self, internship_id: UUID, tutor_id: UUID) -> Internship:
        """Set the supervising doctor of an internship."""
        stmt = (
            update(Internship)
            .where(Internship.id == internship_id)
            .values(tutor_id=tutor_id, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)
        return await self._session.get(Internship, internship_id, populate_existing=True)
