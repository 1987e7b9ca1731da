"""Pytest fixtures and configuration for duewise tests."""

import os

# Keep the background sweep and on-disk DB out of the test process.
os.environ["SWEEP_ENABLED"] = "false"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

import uuid
from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from duewise.database import models  # noqa: F401
from duewise.database.database import Base, get_db
from duewise.database.repository import TaskRepository
from duewise.database.schedule_repository import ScheduleRepository
from duewise.engine.locks import EntityLocks
from duewise.models.task import Task, TaskStatus


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def task_repository(db_session: Session):
    """Create a TaskRepository instance for testing."""
    return TaskRepository(db_session)


@pytest.fixture
def schedule_repository(db_session: Session):
    """Create a ScheduleRepository instance for testing."""
    return ScheduleRepository(db_session)


@pytest.fixture
def locks():
    """Fresh lock registry so tests never share lock state."""
    return EntityLocks()


@pytest.fixture
def now():
    """Fixed reference instant: 2024-01-11 09:30 UTC."""
    return datetime(2024, 1, 11, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def sample_task_base(now):
    """Base task data for creating test tasks.

    Returns a dict with default task attributes that can be overridden.
    """
    return {
        "id": str(uuid.uuid4()),
        "title": "File GST return",
        "notes": "Quarterly filing",
        "schedule_id": None,
        "status": TaskStatus.PENDING,
        "start_date": None,
        "end_date": datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc),
        "completed_at": None,
        "created_at": now - timedelta(days=30),
        "updated_at": now - timedelta(days=30),
    }


@pytest.fixture
def sample_task(sample_task_base):
    """Create a sample Task object for testing."""
    return Task(**sample_task_base)


@pytest.fixture
def monthly_frequency():
    return {"type": "monthly", "day_of_month": 31, "time_of_day": "09:00"}


@pytest.fixture
def q1_2024():
    """January through March 2024."""
    return date(2024, 1, 1), date(2024, 3, 31)


@pytest.fixture
def test_client(db_session: Session):
    """Create a FastAPI test client with overridden database dependency."""
    from duewise.api.app import app

    # Override the get_db dependency to use our test database session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()
