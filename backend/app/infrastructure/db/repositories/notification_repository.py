"""
Notification Repository

Outbox access: notification rows are inserted inside the caller's
transaction and read by the delivery side.
"""

from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.db.models.notification import Notification, NotificationCreate
from app.infrastructure.db.repositories.base_repository import BaseRepository


class NotificationRepository(BaseRepository[Notification, NotificationCreate]):
    """Repository for queued notifications."""

    def __init__(self, session: AsyncSession):
        super().__init__(Notification, session)

    async def list_for_user(
        self,
        user_id: UUID,
        unread_only: bool = False,
        limit: int = 50,
    ) -> List[Notification]:
        """Newest notifications for a user."""
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        stmt = stmt.order_by(Notification.created_at.desc()).limit(limit)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
