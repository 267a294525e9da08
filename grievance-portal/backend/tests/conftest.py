"""
Pytest fixtures and configuration for Grievance Portal tests.

This module provides shared fixtures for:
- Test database setup/teardown with async support
- An httpx client bound to the FastAPI app with the test session
- Test authentication and actor headers
- Sample data factories
"""

import os

# Settings are read at import time; point them at test values first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("PORTAL_API_KEY", "test_portal_key")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
import pytest_asyncio
from datetime import datetime, timedelta
from typing import AsyncGenerator
from faker import Faker
from httpx import ASGITransport, AsyncClient

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

from app.config import business_now
from app.database import Base, get_db
from app.models import CLOSED_STATUSES, AuditEntry, Comment, Issue, User
from app.services import BusinessCalendar, IssueService, SlaPolicy

# Initialize Faker for generating test data
fake = Faker()

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# A Monday, inside working hours
MONDAY_10AM = datetime(2024, 1, 15, 10, 0)


@pytest_asyncio.fixture(scope="function")
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Create test database engine with in-memory SQLite.

    Each test gets a fresh database instance.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """
    Create test database session.

    Provides a clean database session for each test with automatic rollback.
    """
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def calendar() -> BusinessCalendar:
    """Default business calendar: Mon-Sat 09:00-17:00, no holidays."""
    return BusinessCalendar(start_hour=9, end_hour=17)


@pytest.fixture
def policy() -> SlaPolicy:
    return SlaPolicy()


@pytest.fixture
def issue_service(db_session: AsyncSession) -> IssueService:
    return IssueService(db_session)


# Database model factory fixtures
@pytest_asyncio.fixture
async def create_user(db_session: AsyncSession):
    """
    Factory fixture for creating test users.

    Returns a function that creates and persists a User (an active agent
    by default).
    """
    async def _create_user(**kwargs) -> User:
        defaults = {
            "name": fake.name(),
            "email": fake.unique.email(),
            "role": "agent",
            "city": fake.city(),
            "cluster": fake.random_element(["north", "south", "east", "west"]),
            "is_active": True,
        }
        defaults.update(kwargs)

        user = User(**defaults)
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _create_user


@pytest_asyncio.fixture
async def create_issue(db_session: AsyncSession, create_user):
    """
    Factory fixture for creating test issues.

    Creates a requester when ``employee_id`` is not given. ``closed_at`` is
    filled in for resolved/closed issues unless passed explicitly.
    """
    async def _create_issue(**kwargs) -> Issue:
        if "employee_id" not in kwargs:
            requester = await create_user(role="employee")
            kwargs["employee_id"] = requester.id
            kwargs.setdefault("city", requester.city)
            kwargs.setdefault("cluster", requester.cluster)

        now = business_now()
        defaults = {
            "description": fake.text(max_nb_chars=200),
            "status": "open",
            "priority": "medium",
            "type_id": "salary",
            "sub_type_id": "less-salary",
            "escalation_level": 0,
            "sla_breached": False,
            "created_at": now,
            "updated_at": now,
        }
        defaults.update(kwargs)
        if "closed_at" not in kwargs and defaults["status"] in CLOSED_STATUSES:
            defaults["closed_at"] = defaults["created_at"] + timedelta(hours=2)

        issue = Issue(**defaults)
        db_session.add(issue)
        await db_session.commit()
        await db_session.refresh(issue)
        return issue

    return _create_issue


@pytest_asyncio.fixture
async def create_comment(db_session: AsyncSession):
    """Factory fixture for creating comments directly in the store."""
    async def _create_comment(issue: Issue, author_id, **kwargs) -> Comment:
        defaults = {
            "issue_id": issue.id,
            "author_id": author_id,
            "content": fake.sentence(),
            "is_internal": False,
            "created_at": business_now(),
        }
        defaults.update(kwargs)

        comment = Comment(**defaults)
        db_session.add(comment)
        await db_session.commit()
        await db_session.refresh(comment)
        return comment

    return _create_comment


@pytest_asyncio.fixture
async def create_audit_entry(db_session: AsyncSession):
    """Factory fixture for creating audit entries directly in the store."""
    async def _create_audit_entry(issue: Issue, actor_id, action: str, **kwargs) -> AuditEntry:
        defaults = {
            "issue_id": issue.id,
            "actor_id": str(actor_id),
            "action": action,
            "created_at": business_now(),
        }
        defaults.update(kwargs)

        entry = AuditEntry(**defaults)
        db_session.add(entry)
        await db_session.commit()
        await db_session.refresh(entry)
        return entry

    return _create_audit_entry


# Authentication fixtures
@pytest.fixture
def auth_header() -> dict:
    """Test authentication header for API tests."""
    return {"X-Portal-Key": "test_portal_key"}


@pytest.fixture
def invalid_auth_header() -> dict:
    """Invalid authentication header for testing auth failures."""
    return {"X-Portal-Key": "wrong_key"}


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx client for the FastAPI app with ``get_db`` bound to the test session.

    The scheduler is not started: ASGITransport does not run the lifespan.
    """
    from app.main import app

    async def _override_get_db():
        yield db_session
        await db_session.commit()

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
