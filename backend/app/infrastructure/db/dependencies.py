"""
Dependency Injection Providers for the Placement Workflow Engine

Provides FastAPI dependencies for database sessions and services.
Follows Dependency Inversion Principle - high-level modules depend on abstractions.
"""

from typing import Annotated, AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.db.database import get_session
from app.infrastructure.db.repositories import NotificationRepository
from app.infrastructure.services.placement_service import PlacementService
from app.infrastructure.services.workflow_facade import WorkflowFacade, get_workflow_facade
from app.infrastructure.services.internship_sweep import SweepScheduler, get_sweep_scheduler


# Type alias for session dependency
SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def get_placement_service(
    session: SessionDep,
) -> AsyncGenerator[PlacementService, None]:
    """
    Dependency provider for PlacementService.

    Usage:
        @router.post("/applications")
        async def apply(
            service: PlacementService = Depends(get_placement_service)
        ):
            ...
    """
    yield PlacementService(session)


# Type aliases for service dependencies
PlacementServiceDep = Annotated[PlacementService, Depends(get_placement_service)]
WorkflowFacadeDep = Annotated[WorkflowFacade, Depends(get_workflow_facade)]
SweepSchedulerDep = Annotated[SweepScheduler, Depends(get_sweep_scheduler)]


def get_notification_repository(session: SessionDep) -> NotificationRepository:
    """Dependency provider for NotificationRepository."""
    return NotificationRepository(session)


NotificationRepoDep = Annotated[NotificationRepository, Depends(get_notification_repository)]
