"""
Application Repository

Extends BaseRepository with application-specific queries.
"""

from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.db.models.application import Application, ApplicationCreate
from app.infrastructure.db.repositories.base_repository import BaseRepository


class ApplicationRepository(BaseRepository[Application, ApplicationCreate]):
    """Repository for internship applications."""

    def __init__(self, session: AsyncSession):
        super().__init__(Application, session)

    async def get_by_student_and_offer(
        self,
        student_id: UUID,
        offer_id: UUID,
    ) -> Optional[Application]:
        """Get a student's application to a given offer, if any."""
        stmt = select(Application).where(
            Application.student_id == student_id,
            Application.offer_id == offer_id,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_competing(
        self,
        offer_id: UUID,
        exclude_id: UUID,
        statuses: Iterable[str],
    ) -> List[Application]:
        """Other applications for the same offer that are still in one of ``statuses``."""
        stmt = (
            select(Application)
            .where(
                Application.offer_id == offer_id,
                Application.id != exclude_id,
                Application.status.in_(list(statuses)),
            )
            .order_by(Application.created_at)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
