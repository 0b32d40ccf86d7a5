"""
Logbook Repository

Extends BaseRepository with logbook queries.
"""

from typing import Iterable, List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.db.models.logbook_entry import LogbookEntry, LogbookEntryCreate
from app.infrastructure.db.repositories.base_repository import BaseRepository


class LogbookEntryRepository(BaseRepository[LogbookEntry, LogbookEntryCreate]):
    """Repository for logbook entries."""

    def __init__(self, session: AsyncSession):
        super().__init__(LogbookEntry, session)

    async def list_for_internship(
        self,
        internship_id: UUID,
        statuses: Iterable[str],
    ) -> List[LogbookEntry]:
        """Entries of an internship that are in one of ``statuses``."""
        stmt = (
            select(LogbookEntry)
            .where(
                LogbookEntry.internship_id == internship_id,
                LogbookEntry.status.in_(list(statuses)),
            )
            .order_by(LogbookEntry.date)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
