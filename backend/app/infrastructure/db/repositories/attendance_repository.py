"""
Attendance Repository

Extends BaseRepository with attendance queries.
"""

from datetime import date
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.db.models.attendance import Attendance, AttendanceCreate
from app.infrastructure.db.repositories.base_repository import BaseRepository


class AttendanceRepository(BaseRepository[Attendance, AttendanceCreate]):
    """Repository for attendance records."""

    def __init__(self, session: AsyncSession):
        super().__init__(Attendance, session)

    async def get_by_internship_and_date(
        self,
        internship_id: UUID,
        day: date,
    ) -> Optional[Attendance]:
        """Get the record for one internship day."""
        stmt = select(Attendance).where(
            Attendance.internship_id == internship_id,
            Attendance.date == day,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_internship(
        self,
        internship_id: UUID,
        statuses: Iterable[str],
    ) -> List[Attendance]:
        """Records of an internship that are in one of ``statuses``."""
        stmt = (
            select(Attendance)
            .where(
                Attendance.internship_id == internship_id,
                Attendance.status.in_(list(statuses)),
            )
            .order_by(Attendance.date)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
