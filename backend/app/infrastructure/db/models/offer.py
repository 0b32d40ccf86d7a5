"""
Internship Offer Model

Offers published by hospitals. Students apply to an offer; each accepted
application consumes one of its positions.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from sqlmodel import Field, SQLModel

from app.domain.workflow import OfferStatus
from app.infrastructure.db.models.base import BaseModel


class OfferBase(SQLModel):
    """Base schema for internship offers."""

    hospital_id: UUID = Field(
        ...,
        index=True,
        description="Hospital publishing the offer"
    )

    title: str = Field(
        ...,
        max_length=255,
        description="Offer title shown to students"
    )

    positions: int = Field(
        default=1,
        ge=1,
        description="Number of interns the offer can take"
    )

    start_date: date = Field(..., description="Internship start date")
    end_date: date = Field(..., description="Internship end date (exclusive)")


class Offer(OfferBase, BaseModel, table=True):
    """Internship offer with capacity accounting."""

    __tablename__ = "stage_offers"

    filled_positions: int = Field(
        default=0,
        ge=0,
        description="Positions already taken by accepted applications"
    )

    status: str = Field(
        default=OfferStatus.PUBLISHED.value,
        max_length=32,
        index=True,
        description="published or closed"
    )

    @property
    def remaining_positions(self) -> int:
        return max(self.positions - self.filled_positions, 0)


class OfferCreate(OfferBase):
    """Schema for creating an offer."""
    status: Optional[str] = OfferStatus.PUBLISHED.value
