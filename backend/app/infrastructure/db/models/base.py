"""
Base Model for SQLModel ORM

Provides common fields and behavior for all database models.
Follows Single Responsibility Principle - only defines base schema.
"""

from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Current UTC timestamp."""
    return datetime.now(timezone.utc)


class TimestampMixin(SQLModel):
    """
    Mixin providing timestamp fields for models.

    Follows Interface Segregation - separates timestamp concern.
    """

    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
        description="Record creation timestamp (UTC)"
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"onupdate": utcnow},
        description="Last update timestamp (UTC)"
    )


class UUIDMixin(SQLModel):
    """
    Mixin providing UUID primary key.

    Follows Single Responsibility - only handles ID generation.
    """

    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
        nullable=False,
        description="Unique identifier (UUID v4)"
    )


class VersionMixin(SQLModel):
    """
    Mixin providing the optimistic concurrency counter.

    Every status write compares and increments it, so two writers that
    loaded the same row cannot both succeed.
    """

    version: int = Field(
        default=0,
        nullable=False,
        description="Optimistic lock version, incremented on every status write"
    )


class BaseModel(UUIDMixin, TimestampMixin, VersionMixin):
    """
    Base model combining UUID, timestamp and version mixins.

    All workflow tables inherit from this class.
    Provides: id, created_at, updated_at, version
    """
    pass
