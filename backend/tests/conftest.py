# backend/tests/conftest.py
"""
Shared fixtures for the facility booking test suite.

Every test runs against an in-memory SQLite database inside an outer
transaction that is rolled back afterwards. Services commit freely; their
commits only release a savepoint.
"""

from datetime import timedelta
import os
from typing import Any, Callable, Generator

os.environ.setdefault("IS_TESTING", "true")

from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from facility_booking.api.dependencies.database import get_db  # noqa: E402
from facility_booking.core.booking_context import BookingContext  # noqa: E402
from facility_booking.core.timezone_utils import get_facility_today  # noqa: E402
from facility_booking.database import Base, build_engine  # noqa: E402
from facility_booking.main import app  # noqa: E402
from facility_booking.models.facility import Facility  # noqa: E402
from facility_booking.repositories.facility_repository import FacilityRepository  # noqa: E402

# Import models so Base.metadata is populated for create_all.
import facility_booking.models  # noqa: E402,F401

COMMUNITY_ID = "community-greenwood"
RESIDENT_ID = "resident-1"
OTHER_RESIDENT_ID = "resident-2"
STAFF_ID = "staff-1"


@pytest.fixture(scope="session")
def _unit_engine():
    engine = build_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def unit_db(_unit_engine) -> Generator[Session, None, None]:
    """
    Provide a transactional session bound to the shared in-memory engine.
    """
    connection = _unit_engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture
def context() -> BookingContext:
    return BookingContext(
        community_id=COMMUNITY_ID,
        user_id=RESIDENT_ID,
        user_name="Asha Rao",
        user_unit="B-204",
    )


@pytest.fixture
def other_context() -> BookingContext:
    return BookingContext(community_id=COMMUNITY_ID, user_id=OTHER_RESIDENT_ID, user_name="Ravi")


@pytest.fixture
def staff_context() -> BookingContext:
    return BookingContext(
        community_id=COMMUNITY_ID, user_id=STAFF_ID, user_name="Front Desk", is_staff=True
    )


@pytest.fixture
def booking_day():
    """A bookable day inside every facility's advance window."""
    return get_facility_today() + timedelta(days=1)


@pytest.fixture
def make_facility(unit_db: Session) -> Callable[..., Facility]:
    def _make(**overrides: Any) -> Facility:
        fields = {
            "community_id": COMMUNITY_ID,
            "name": "Clubhouse Hall",
            "opening_hours": "09:00 - 17:00",
            "capacity": 5,
            "fee": "Free for residents",
            "rules": ["No outside shoes"],
            "min_booking_duration_minutes": 60,
            "max_booking_duration_minutes": 120,
            "requires_staff_approval": False,
            "is_active": True,
        }
        fields.update(overrides)
        return FacilityRepository(unit_db).create_facility(**fields)

    return _make


@pytest.fixture
def facility(make_facility) -> Facility:
    return make_facility()


@pytest.fixture
def client(unit_db: Session) -> Generator[TestClient, None, None]:
    def _override_get_db() -> Generator[Session, None, None]:
        yield unit_db

    app.dependency_overrides[get_db] = _override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def resident_headers() -> dict:
    return {
        "X-Community-Id": COMMUNITY_ID,
        "X-User-Id": RESIDENT_ID,
        "X-User-Name": "Asha Rao",
        "X-User-Unit": "B-204",
    }


@pytest.fixture
def staff_headers() -> dict:
    return {
        "X-Community-Id": COMMUNITY_ID,
        "X-User-Id": STAFF_ID,
        "X-User-Name": "Front Desk",
        "X-User-Role": "staff",
    }
