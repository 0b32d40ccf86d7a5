"""
Offer Repository

Extends BaseRepository with capacity accounting for internship offers.
"""

from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.workflow import OfferStatus
from app.infrastructure.db.models.base import utcnow
from app.infrastructure.db.models.offer import Offer, OfferCreate
from app.infrastructure.db.repositories.base_repository import BaseRepository
from app.infrastructure.exceptions import ConflictError


class OfferRepository(BaseRepository[Offer, OfferCreate]):
    """Repository for internship offers."""

    def __init__(self, session: AsyncSession):
        super().__init__(Offer, session)

    async def claim_position(self, offer_id: UUID) -> Offer:
        """
        Consume one position of an offer.

        The increment is a single conditional UPDATE, so two acceptances
        racing for the last position cannot both succeed.

        Raises:
            ConflictError: the offer is full or closed
        """
        stmt = (
            update(Offer)
            .where(
                Offer.id == offer_id,
                Offer.filled_positions < Offer.positions,
                Offer.status == OfferStatus.PUBLISHED.value,
            )
            .values(
                filled_positions=Offer.filled_positions + 1,
                version=Offer.version + 1,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount != 1:
            raise ConflictError(
                f"Offer {offer_id} has no remaining positions",
                operation="claim_position",
                table=Offer.__tablename__,
            )
        return await self._session.get(Offer, offer_id, populate_existing=True)

    async def close(self, offer_id: UUID) -> None:
        """Mark an offer as closed to new applications."""
        stmt = (
            update(Offer)
            .where(Offer.id == offer_id)
            .values(
                status=OfferStatus.CLOSED.value,
                version=Offer.version + 1,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)
