"""
Workflow Facade

Single entry point for status changes on workflow entities:

    request_transition(entity_type, entity_id, requested_status, actor)

Each call loads a snapshot, validates it against the transition table and,
when allowed, writes the new status and runs the dispatcher's side effects
in one transaction. Rejections write nothing. Requests for the same entity
are serialized in-process; across processes the row lock and the version
compare-and-set make the losing writer observe a Conflict.
"""

import asyncio
import logging
import weakref
from datetime import date
from typing import Any, Callable, Dict, Optional, Tuple, Type, Union
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import SQLModel

from app.config.settings import settings
from app.domain.transitions import validate
from app.domain.workflow import (
    Actor,
    EntitySnapshot,
    EntityType,
    RejectionReason,
    TransitionRejection,
    TransitionResult,
)
from app.infrastructure.db.models.internship import Internship
from app.infrastructure.db.models.offer import Offer
from app.infrastructure.db.repositories import (
    ApplicationRepository,
    AttendanceRepository,
    BaseRepository,
    EvaluationRepository,
    InternshipRepository,
    LogbookEntryRepository,
)
from app.infrastructure.exceptions import ConflictError, StoreFailureError, ValidationError
from app.infrastructure.services.side_effect_dispatcher import SideEffectDispatcher, status_changed


logger = logging.getLogger(__name__)

REPOSITORIES: Dict[EntityType, Type[BaseRepository]] = {
    EntityType.APPLICATION: ApplicationRepository,
    EntityType.INTERNSHIP: InternshipRepository,
    EntityType.LOGBOOK_ENTRY: LogbookEntryRepository,
    EntityType.ATTENDANCE: AttendanceRepository,
    EntityType.EVALUATION: EvaluationRepository,
}


def serialize_entity(entity: SQLModel) -> Dict[str, Any]:
    """JSON-ready dict of an entity row."""
    return entity.model_dump(mode="json")


class WorkflowFacade:
    """
    Validates and applies status transitions.

    Args:
        session_factory: Factory for transaction-scoped sessions
            (defaults to the DatabaseManager's factory)
        dispatcher_factory: Builds the side-effect dispatcher for a session
        clock: Returns today's date; date gates are checked against it
        max_retries: Extra attempts after a store failure
        retry_delay: Base backoff in seconds between attempts
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        dispatcher_factory: Callable[[AsyncSession], SideEffectDispatcher] = SideEffectDispatcher,
        clock: Callable[[], date] = date.today,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
    ):
        self._session_factory = session_factory
        self._dispatcher_factory = dispatcher_factory
        self._clock = clock
        self._max_retries = settings.transition_max_retries if max_retries is None else max_retries
        self._retry_delay = (
            settings.transition_retry_delay_seconds if retry_delay is None else retry_delay
        )
        self._locks: "weakref.WeakValueDictionary[Tuple[EntityType, UUID], asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            from app.infrastructure.db.database import get_db_manager
            self._session_factory = get_db_manager().session_factory
        return self._session_factory

    def today(self) -> date:
        return self._clock()

    def _lock_for(self, entity_type: EntityType, entity_id: UUID) -> asyncio.Lock:
        key = (entity_type, entity_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    # =========================================================================
    # Public API
    # =========================================================================

    async def request_transition(
        self,
        entity_type: Union[EntityType, str],
        entity_id: UUID,
        requested_status: str,
        actor: Actor,
        comment: Optional[str] = None,
        today: Optional[date] = None,
    ) -> TransitionResult:
        """
        Request a status change.

        Args:
            entity_type: Which workflow entity
            entity_id: Entity primary key
            requested_status: Target status
            actor: Acting principal (SYSTEM_ACTOR for the sweep)
            comment: Reviewer comment, stored where the target status keeps one
            today: Date the date gates are checked against (defaults to the clock)

        Returns:
            TransitionResult with the updated entity and side effects, or the
            rejection reason

        Raises:
            ValidationError: unknown entity type
            StoreFailureError: the store failed on every attempt
        """
        try:
            entity_type = EntityType(entity_type)
        except ValueError as e:
            raise ValidationError(f"Unknown entity type: {entity_type}") from e

        attempts = self._max_retries + 1
        async with self._lock_for(entity_type, entity_id):
            for attempt in range(1, attempts + 1):
                try:
                    return await self._attempt(entity_type, entity_id, requested_status, actor, comment, today)
                except SQLAlchemyError as e:
                    if attempt >= attempts:
                        logger.error(
                            "Transition %s %s -> %s failed after %d attempts: %s",
                            entity_type.value, entity_id, requested_status, attempt, e,
                        )
                        raise StoreFailureError(
                            f"Could not apply {entity_type.value} transition to {requested_status}",
                            attempts=attempt,
                            operation="request_transition",
                            original_error=e,
                        ) from e
                    delay = self._retry_delay * attempt
                    logger.warning(
                        "Store failure on %s %s -> %s (attempt %d/%d), retrying in %.2fs: %s",
                        entity_type.value, entity_id, requested_status, attempt, attempts, delay, e,
                    )
                    await asyncio.sleep(delay)

    # =========================================================================
    # Transaction
    # =========================================================================

    async def _attempt(
        self,
        entity_type: EntityType,
        entity_id: UUID,
        requested_status: str,
        actor: Actor,
        comment: Optional[str],
        today: Optional[date] = None,
    ) -> TransitionResult:
        async with self.session_factory() as session:
            try:
                result = await self._apply(session, entity_type, entity_id, requested_status, actor, comment, today)
                if result.is_ok:
                    await session.commit()
                else:
                    await session.rollback()
                return result
            except ConflictError as e:
                await session.rollback()
                logger.info(
                    "Conflict on %s %s -> %s: %s",
                    entity_type.value, entity_id, requested_status, e.message,
                )
                return TransitionResult.refused(RejectionReason.CONFLICT, e.message)
            except Exception:
                await session.rollback()
                raise

    async def _apply(
        self,
        session: AsyncSession,
        entity_type: EntityType,
        entity_id: UUID,
        requested_status: str,
        actor: Actor,
        comment: Optional[str],
        today: Optional[date] = None,
    ) -> TransitionResult:
        repo = REPOSITORIES[entity_type](session)
        entity = await repo.get_for_update(entity_id)
        snapshot = await self.load_snapshot(session, entity_type, entity) if entity is not None else None

        outcome = validate(
            entity_type,
            snapshot.status if snapshot else None,
            requested_status,
            actor,
            snapshot,
            comment=comment,
            today=today or self.today(),
        )
        if isinstance(outcome, TransitionRejection):
            logger.info(
                "Rejected %s %s -> %s by %s: %s",
                entity_type.value, entity_id, requested_status, actor.role.value, outcome.reason.value,
            )
            return TransitionResult.refused(
                outcome.reason,
                outcome.message,
                entity=serialize_entity(entity) if entity is not None else None,
            )

        dispatcher = self._dispatcher_factory(session)
        values = dispatcher.status_write_values(outcome, entity)
        updated = await repo.compare_and_set_status(
            entity.id,
            expected_status=outcome.from_status,
            expected_version=entity.version,
            new_status=outcome.to_status,
            **values,
        )

        side_effects = [status_changed(entity_type.value, updated.id, updated.status, previous=outcome.from_status)]
        side_effects.extend(await dispatcher.apply(outcome, updated))

        logger.info(
            "Transitioned %s %s: %s -> %s by %s (%d side effects)",
            entity_type.value, entity_id, outcome.from_status, outcome.to_status,
            actor.role.value, len(side_effects),
        )
        return TransitionResult.accepted(serialize_entity(updated), side_effects)

    # =========================================================================
    # Snapshots
    # =========================================================================

    async def load_snapshot(
        self,
        session: AsyncSession,
        entity_type: EntityType,
        entity: SQLModel,
    ) -> EntitySnapshot:
        """Flatten an entity and its parent rows into the fields validation needs."""
        snapshot = EntitySnapshot(
            entity_type=entity_type,
            id=entity.id,
            status=entity.status,
            version=entity.version,
            student_id=entity.student_id,
        )

        if entity_type == EntityType.APPLICATION:
            offer = await session.get(Offer, entity.offer_id)
            return snapshot.model_copy(update={
                "offer_id": entity.offer_id,
                "hospital_id": offer.hospital_id if offer else None,
                "start_date": offer.start_date if offer else None,
                "end_date": offer.end_date if offer else None,
            })

        if entity_type == EntityType.INTERNSHIP:
            return snapshot.model_copy(update={
                "internship_id": entity.id,
                "offer_id": entity.offer_id,
                "hospital_id": entity.hospital_id,
                "tutor_id": entity.tutor_id,
                "start_date": entity.start_date,
                "end_date": entity.end_date,
            })

        internship = await session.get(Internship, entity.internship_id)
        update: Dict[str, Any] = {"internship_id": entity.internship_id}
        if internship is not None:
            update.update(
                hospital_id=internship.hospital_id,
                tutor_id=internship.tutor_id,
                start_date=internship.start_date,
                end_date=internship.end_date,
            )
        if entity_type == EntityType.EVALUATION:
            update["evaluator_id"] = entity.evaluator_id
        return snapshot.model_copy(update=update)


# Singleton instance
_workflow_facade: Optional[WorkflowFacade] = None


def get_workflow_facade() -> WorkflowFacade:
    """Get the shared workflow facade."""
    global _workflow_facade
    if _workflow_facade is None:
        _workflow_facade = WorkflowFacade()
    return _workflow_facade
