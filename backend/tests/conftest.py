"""
Shared fixtures for the Classbook test suite.

Every test gets its own file-backed SQLite database so that concurrency tests
can open one connection per worker thread and exercise real locking.
"""

from datetime import date, time, timedelta
from decimal import Decimal
from typing import Callable, Optional

import pytest
from sqlalchemy.orm import Session, sessionmaker

from classbook.core.config import Settings
from classbook.database import build_engine, build_session_factory, create_schema, session_scope
from classbook.models import FitnessClass, Instructor, InstructorStatus, Member

TODAY = date(2030, 6, 3)
TOMORROW = TODAY + timedelta(days=1)


def fixed_clock() -> date:
    return TODAY


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        environment="test",
        database_url=f"sqlite:///{tmp_path / 'classbook_test.db'}",
        statement_timeout_ms=30000,
        db_retry_attempts=3,
        _env_file=None,
    )


@pytest.fixture
def engine(test_settings):
    engine = build_engine(test_settings)
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return build_session_factory(engine)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock() -> Callable[[], date]:
    return fixed_clock


@pytest.fixture
def make_instructor(session_factory) -> Callable[..., str]:
    def _make(
        name: str = "Dana Coach",
        email: Optional[str] = None,
        status: str = InstructorStatus.ACTIVE.value,
    ) -> str:
        with session_scope(session_factory) as session:
            instructor = Instructor(
                name=name,
                email=email or f"{name.lower().replace(' ', '.')}.{status}@studio.test",
                status=status,
            )
            session.add(instructor)
            session.flush()
            return instructor.id

    return _make


@pytest.fixture
def instructor_id(make_instructor) -> str:
    return make_instructor()


@pytest.fixture
def make_class(session_factory, instructor_id) -> Callable[..., str]:
    """Insert a class row directly, bypassing scheduler validation."""

    def _make(
        scheduled_date: date = TOMORROW,
        start: time = time(9, 0),
        end: time = time(10, 0),
        max_capacity: int = 10,
        status: str = "active",
        owner_id: Optional[str] = None,
        name: str = "Morning Flow",
    ) -> str:
        with session_scope(session_factory) as session:
            fitness_class = FitnessClass(
                instructor_id=owner_id or instructor_id,
                name=name,
                class_type="yoga",
                scheduled_date=scheduled_date,
                start_time=start,
                end_time=end,
                duration_minutes=60,
                max_capacity=max_capacity,
                price=Decimal("15.00"),
                status=status,
            )
            session.add(fitness_class)
            session.flush()
            return fitness_class.id

    return _make


@pytest.fixture
def make_member(session_factory) -> Callable[..., str]:
    def _make(name: str = "Sam Member", email: str = "sam@example.com", phone: Optional[str] = None) -> str:
        with session_scope(session_factory) as session:
            member = Member(name=name, email=email, phone=phone, status="active")
            session.add(member)
            session.flush()
            return member.id

    return _make
