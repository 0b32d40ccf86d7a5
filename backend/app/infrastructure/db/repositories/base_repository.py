"""
Base Repository for the Placement Workflow Engine

Generic async repository implementing the data access the engine needs.
Follows SOLID principles:
- Single Responsibility: Only handles data access logic
- Open/Closed: Extensible via inheritance
- Liskov Substitution: Concrete repos can replace base
- Interface Segregation: Separate interfaces for read/write
- Dependency Inversion: Depends on SQLModel abstractions

Workflow rows are never hard-deleted, so there is no delete operation.
"""

from abc import ABC, abstractmethod
from typing import Any, TypeVar, Generic, List, Optional, Type
from uuid import UUID

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from app.infrastructure.db.models.base import utcnow
from app.infrastructure.exceptions import ConflictError


# Type variables for generic repository
ModelType = TypeVar("ModelType", bound=SQLModel)
CreateSchemaType = TypeVar("CreateSchemaType", bound=SQLModel)


class IReadRepository(ABC, Generic[ModelType]):
    """
    Interface for read operations (Interface Segregation Principle).
    """

    @abstractmethod
    async def get_by_id(self, id: UUID) -> Optional[ModelType]:
        """Get a single record by ID."""
        pass

    @abstractmethod
    async def get_all(
        self,
        skip: int = 0,
        limit: int = 100
    ) -> List[ModelType]:
        """Get all records with pagination."""
        pass

    @abstractmethod
    async def exists(self, id: UUID) -> bool:
        """Check if a record exists."""
        pass


class IWriteRepository(ABC, Generic[ModelType, CreateSchemaType]):
    """
    Interface for write operations (Interface Segregation Principle).
    """

    @abstractmethod
    async def create(self, data: CreateSchemaType, **values: Any) -> ModelType:
        """Create a new record."""
        pass

    @abstractmethod
    async def compare_and_set_status(
        self,
        id: UUID,
        expected_status: str,
        expected_version: int,
        new_status: str,
        **values: Any,
    ) -> ModelType:
        """Move a record to a new status if nobody changed it meanwhile."""
        pass


class BaseRepository(
    IReadRepository[ModelType],
    IWriteRepository[ModelType, CreateSchemaType],
    Generic[ModelType, CreateSchemaType]
):
    """
    Generic async repository.

    Args:
        model: The SQLModel class to operate on
        session: Async database session (the caller owns the transaction)
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self._model = model
        self._session = session

    @property
    def session(self) -> AsyncSession:
        """Get the current session."""
        return self._session

    async def get_by_id(self, id: UUID) -> Optional[ModelType]:
        """
        Get a single record by its primary key.

        Args:
            id: UUID primary key

        Returns:
            Model instance or None if not found
        """
        return await self._session.get(self._model, id, populate_existing=True)

    async def get_for_update(self, id: UUID) -> Optional[ModelType]:
        """
        Get a record and take a row lock on it (SELECT ... FOR UPDATE).

        Backends without row locks ignore the clause; the version check in
        compare_and_set_status still guards the write.
        """
        stmt = (
            select(self._model)
            .where(self._model.id == id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_all(
        self,
        skip: int = 0,
        limit: int = 100
    ) -> List[ModelType]:
        """
        Get all records with pagination.

        Args:
            skip: Number of records to skip
            limit: Maximum records to return

        Returns:
            List of model instances
        """
        stmt = select(self._model).offset(skip).limit(limit)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def exists(self, id: UUID) -> bool:
        """Check if a record exists."""
        result = await self.get_by_id(id)
        return result is not None

    async def create(self, data: CreateSchemaType, **values: Any) -> ModelType:
        """
        Create a new record.

        Args:
            data: Create schema with field values
            values: Extra column values not carried by the schema

        Returns:
            Created model instance
        """
        payload = data.model_dump()
        payload.update(values)
        db_obj = self._model.model_validate(payload)
        self._session.add(db_obj)
        await self._session.flush()
        await self._session.refresh(db_obj)
        return db_obj

    async def compare_and_set_status(
        self,
        id: UUID,
        expected_status: str,
        expected_version: int,
        new_status: str,
        **values: Any,
    ) -> ModelType:
        """
        Optimistic status write.

        Issues ``UPDATE ... SET status=:new, version=version+1
        WHERE id=:id AND status=:expected AND version=:v``.

        Raises:
            ConflictError: when no row matched (concurrent writer won)
        """
        stmt = (
            update(self._model)
            .where(
                self._model.id == id,
                self._model.status == expected_status,
                self._model.version == expected_version,
            )
            .values(
                status=new_status,
                version=expected_version + 1,
                updated_at=utcnow(),
                **values,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount != 1:
            raise ConflictError(
                f"{self._model.__tablename__} {id} changed concurrently "
                f"(expected {expected_status} v{expected_version})",
                operation="compare_and_set_status",
                table=self._model.__tablename__,
            )
        return await self._session.get(self._model, id, populate_existing=True)

    async def count(self) -> int:
        """
        Get total count of records.

        Returns:
            Total number of records
        """
        stmt = select(func.count()).select_from(self._model)
        result = await self._session.execute(stmt)
        return result.scalar_one()
