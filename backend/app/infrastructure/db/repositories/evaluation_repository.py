"""
Evaluation Repository

Extends BaseRepository with evaluation queries.
"""

from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.db.models.evaluation import Evaluation, EvaluationCreate
from app.infrastructure.db.repositories.base_repository import BaseRepository


class EvaluationRepository(BaseRepository[Evaluation, EvaluationCreate]):
    """Repository for evaluations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Evaluation, session)

    async def list_for_internship(
        self,
        internship_id: UUID,
        statuses: Iterable[str],
        evaluation_type: Optional[str] = None,
    ) -> List[Evaluation]:
        """Evaluations of an internship in one of ``statuses``, optionally of one type."""
        stmt = select(Evaluation).where(
            Evaluation.internship_id == internship_id,
            Evaluation.status.in_(list(statuses)),
        )
        if evaluation_type:
            stmt = stmt.where(Evaluation.type == evaluation_type)
        stmt = stmt.order_by(Evaluation.created_at).execution_options(populate_existing=True)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
