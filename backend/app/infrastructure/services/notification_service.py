"""
Notification Outbox

Implements ``enqueue(user_id, type, payload)`` against the notifications
table. Rows are inserted in the caller's session, so a notification is
durably recorded exactly when the transition it reports commits. Delivery
(email, push, in-app) belongs to the external notification service.
"""

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.workflow import NotificationType, SideEffect, SideEffectKind
from app.infrastructure.db.models.notification import NotificationCreate
from app.infrastructure.db.repositories.notification_repository import NotificationRepository


logger = logging.getLogger(__name__)


def _jsonable(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: str(value) if isinstance(value, UUID) else value for key, value in payload.items()}


class NotificationOutbox:
    """Queues notification requests inside the current transaction."""

    def __init__(self, session: AsyncSession):
        self._repo = NotificationRepository(session)

    async def enqueue(
        self,
        user_id: Optional[UUID],
        type: NotificationType,
        title: str,
        message: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Optional[SideEffect]:
        """
        Record a notification for ``user_id``.

        Returns:
            The side effect describing the queued notification, or None when
            there is no recipient (e.g. no tutor assigned yet).
        """
        if user_id is None:
            logger.debug("Skipping %s notification without recipient: %s", type.value, title)
            return None

        data = _jsonable(payload or {})
        notification = await self._repo.create(
            NotificationCreate(
                user_id=user_id,
                type=type.value,
                title=title,
                message=message,
                data=data,
            )
        )
        logger.debug("Queued %s notification %s for user %s", type.value, notification.id, user_id)

        return SideEffect(
            kind=SideEffectKind.NOTIFICATION_ENQUEUED,
            entity_type="notification",
            entity_id=notification.id,
            user_id=user_id,
            detail={"type": type.value, "title": title, **data},
        )
