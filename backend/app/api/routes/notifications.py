"""
Notification API Routes

Read access to the notification outbox for the authenticated user.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Query

from app.api.dependencies import ActorDep, NotificationRepoDep

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    actor: ActorDep,
    repo: NotificationRepoDep,
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
) -> List[Dict[str, Any]]:
    """Newest notifications addressed to the caller."""
    notifications = await repo.list_for_user(actor.user_id, unread_only=unread_only, limit=limit)
    return [notification.model_dump(mode="json") for notification in notifications]
