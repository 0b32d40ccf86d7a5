"""
Test configuration and fixtures for the Placement Workflow Engine.

Provides shared fixtures for unit and integration tests. Integration tests
run the real engine against an in-memory SQLite database (aiosqlite).
"""

import time as clock
from datetime import date, time, timedelta
from typing import AsyncGenerator, Optional
from uuid import UUID, uuid4

import jwt
import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from app.domain.workflow import Actor, Role
from app.infrastructure.db.models import (
    Application,
    Attendance,
    Evaluation,
    Internship,
    LogbookEntry,
    Notification,
    Offer,
)
from app.infrastructure.services.workflow_facade import WorkflowFacade


TEST_JWT_SECRET = "test-secret-for-placement-workflow"
TODAY = date(2026, 3, 10)


# =============================================================================
# App Fixtures
# =============================================================================

@pytest.fixture
def app():
    """Get the FastAPI application."""
    from app.main import app
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Get synchronous test client."""
    return TestClient(app)


@pytest.fixture
def jwt_secret(monkeypatch):
    """Configure the shared JWT secret for the duration of a test."""
    from app.config.settings import settings

    monkeypatch.setattr(settings, "jwt_secret", TEST_JWT_SECRET)
    monkeypatch.setattr(settings, "jwt_audience", None)
    return TEST_JWT_SECRET


def make_token(
    user_id: UUID,
    role: str,
    hospital_id: Optional[UUID] = None,
    secret: str = TEST_JWT_SECRET,
    expires_in: int = 3600,
) -> str:
    """Sign a token the way the identity service does."""
    payload = {
        "sub": str(user_id),
        "role": role,
        "exp": int(clock.time()) + expires_in,
    }
    if hospital_id is not None:
        payload["hospital_id"] = str(hospital_id)
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(actor: Actor) -> dict:
    return {"Authorization": f"Bearer {make_token(actor.user_id, actor.role.value, actor.hospital_id)}"}


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
async def engine():
    """In-memory SQLite engine with all workflow tables."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def facade(session_factory, today) -> WorkflowFacade:
    """Facade bound to the test database with a fixed clock and no retry delay."""
    return WorkflowFacade(
        session_factory=session_factory,
        clock=lambda: today,
        max_retries=1,
        retry_delay=0,
    )


@pytest.fixture
async def api_client(app, session_factory, facade) -> AsyncGenerator[AsyncClient, None]:
    """Async client running the app against the test database."""
    from app.infrastructure.db.database import get_session
    from app.infrastructure.services.internship_sweep import (
        InternshipSweep,
        SweepScheduler,
        get_sweep_scheduler,
    )
    from app.infrastructure.services.workflow_facade import get_workflow_facade

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    scheduler = SweepScheduler(InternshipSweep(facade, session_factory=session_factory), interval=3600)
    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_workflow_facade] = lambda: facade
    app.dependency_overrides[get_sweep_scheduler] = lambda: scheduler

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# =============================================================================
# Actors
# =============================================================================

@pytest.fixture
def hospital_id() -> UUID:
    return uuid4()


@pytest.fixture
def student() -> Actor:
    return Actor(user_id=uuid4(), role=Role.STUDENT)


@pytest.fixture
def other_student() -> Actor:
    return Actor(user_id=uuid4(), role=Role.STUDENT)


@pytest.fixture
def hospital(hospital_id) -> Actor:
    return Actor(user_id=uuid4(), role=Role.HOSPITAL, hospital_id=hospital_id)


@pytest.fixture
def tutor(hospital_id) -> Actor:
    return Actor(user_id=uuid4(), role=Role.DOCTOR, hospital_id=hospital_id)


@pytest.fixture
def other_doctor() -> Actor:
    return Actor(user_id=uuid4(), role=Role.DOCTOR, hospital_id=uuid4())


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id=uuid4(), role=Role.ADMIN)


# =============================================================================
# Seed Data
# =============================================================================

class Seeder:
    """Inserts workflow rows directly, bypassing the engine."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], today: date):
        self._session_factory = session_factory
        self._today = today

    async def _save(self, obj):
        async with self._session_factory() as session:
            session.add(obj)
            await session.commit()
            await session.refresh(obj)
        return obj

    async def offer(self, hospital_id: UUID, positions: int = 1, **fields) -> Offer:
        fields.setdefault("title", "Cardiology rotation")
        fields.setdefault("start_date", self._today + timedelta(days=7))
        fields.setdefault("end_date", self._today + timedelta(days=97))
        return await self._save(Offer(hospital_id=hospital_id, positions=positions, **fields))

    async def application(self, student_id: UUID, offer: Offer, status: str = "pending") -> Application:
        return await self._save(Application(student_id=student_id, offer_id=offer.id, status=status))

    async def internship(
        self,
        student_id: UUID,
        hospital_id: UUID,
        tutor_id: Optional[UUID] = None,
        status: str = "upcoming",
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Internship:
        return await self._save(Internship(
            student_id=student_id,
            hospital_id=hospital_id,
            tutor_id=tutor_id,
            status=status,
            start_date=start_date or self._today - timedelta(days=30),
            end_date=end_date or self._today + timedelta(days=60),
        ))

    async def logbook_entry(self, internship: Internship, status: str = "draft") -> LogbookEntry:
        return await self._save(LogbookEntry(
            internship_id=internship.id,
            student_id=internship.student_id,
            date=self._today,
            title="Ward rounds",
            activities="Morning rounds, two admissions",
            status=status,
        ))

    async def attendance(
        self,
        internship: Internship,
        status: str = "pending",
        day: Optional[date] = None,
        check_in: Optional[time] = time(8, 0),
        check_out: Optional[time] = time(16, 30),
    ) -> Attendance:
        return await self._save(Attendance(
            internship_id=internship.id,
            student_id=internship.student_id,
            date=day or self._today,
            check_in=check_in,
            check_out=check_out,
            status=status,
        ))

    async def evaluation(
        self,
        internship: Internship,
        evaluator_id: UUID,
        status: str = "draft",
        type: str = "mid-term",
    ) -> Evaluation:
        return await self._save(Evaluation(
            internship_id=internship.id,
            student_id=internship.student_id,
            evaluator_id=evaluator_id,
            type=type,
            status=status,
        ))

    async def get(self, model, id: UUID):
        async with self._session_factory() as session:
            return await session.get(model, id)

    async def all(self, model, *criteria):
        async with self._session_factory() as session:
            stmt = select(model)
            if criteria:
                stmt = stmt.where(*criteria)
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def notifications(self, user_id: Optional[UUID] = None):
        criteria = [Notification.user_id == user_id] if user_id else []
        return await self.all(Notification, *criteria)


@pytest.fixture
def seed(session_factory, today) -> Seeder:
    return Seeder(session_factory, today)
