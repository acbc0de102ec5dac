"""
Shared fixtures for the booking service tests.

Every test runs against an in-memory SQLite database inside one outer
transaction that is rolled back afterwards. Sessions join it with
``create_savepoint``, so the services' own commits and rollbacks only
touch a savepoint and tests never see each other's data.

Factories commit their rows (releasing the current savepoint) so that a
service rolling back a rejected request does not also discard the data
the test set up.
"""

from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Any, Callable, Iterator, Optional
from unittest.mock import MagicMock

from fastapi.testclient import TestClient
import pytest
import pytz
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from mentorbook.api.dependencies import (
    get_booking_service,
    get_db,
    get_feedback_service,
    get_notification_service,
)
from mentorbook.core.enums import OfferingStatus, RoleName
from mentorbook.database import Base
import mentorbook.models  # noqa: F401
from mentorbook.models.availability import AvailabilitySlot
from mentorbook.models.offering import Offering
from mentorbook.models.user import MenteeProfile, MentorProfile, User
from mentorbook.services.booking_service import BookingService
from mentorbook.services.conflict_checker import ConflictChecker
from mentorbook.services.feedback_service import FeedbackService
from mentorbook.services.notification_service import NotificationService
from mentorbook.services.user_profile_service import UserProfileService

# Tuesday; the following Monday is 2030-01-07.
FIXED_NOW = datetime(2030, 1, 1, 9, 0, tzinfo=pytz.UTC)
NEXT_MONDAY = datetime(2030, 1, 7, tzinfo=pytz.UTC)
MONDAY = 1

test_engine = create_engine(
    "sqlite://",
    poolclass=StaticPool,
    connect_args={"check_same_thread": False},
)


@event.listens_for(test_engine, "connect")
def _sqlite_connect(dbapi_connection: Any, connection_record: Any) -> None:
    # Let SQLAlchemy emit BEGIN itself so SAVEPOINTs work with pysqlite.
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@event.listens_for(test_engine, "begin")
def _sqlite_begin(conn: Any) -> None:
    conn.exec_driver_sql("BEGIN")


Base.metadata.create_all(bind=test_engine)


@pytest.fixture(scope="function")
def db() -> Iterator[Session]:
    """Session bound to a per-test transaction that is always rolled back."""
    connection = test_engine.connect()
    outer = connection.begin()
    session = Session(
        bind=connection,
        join_transaction_mode="create_savepoint",
        expire_on_commit=False,
        autoflush=False,
    )
    try:
        yield session
    finally:
        session.close()
        outer.rollback()
        connection.close()


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock(fixed_now: datetime) -> Callable[[], datetime]:
    return lambda: fixed_now


@pytest.fixture
def notifications() -> MagicMock:
    """Stand-in notification service that records calls."""
    return MagicMock(spec=NotificationService)


@pytest.fixture
def booking_service(db: Session, clock, notifications) -> BookingService:
    return BookingService(
        db,
        notification_service=notifications,
        conflict_checker=ConflictChecker(db, clock=clock),
        user_profile_service=UserProfileService(db),
        clock=clock,
    )


@pytest.fixture
def feedback_service(db: Session, clock, notifications) -> FeedbackService:
    return FeedbackService(db, notification_service=notifications, clock=clock)


# ============================================================================
# Factories
# ============================================================================


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    counter = {"n": 0}

    def _make(
        role: RoleName = RoleName.MENTEE,
        name: Optional[str] = None,
        mentor_profile: bool = False,
        mentee_profile: bool = True,
    ) -> User:
        counter["n"] += 1
        user = User(email=f"user{counter['n']}@example.com", role=role.value)
        db.add(user)
        db.flush()
        display = name or f"{role.value.title()} {counter['n']}"
        if mentor_profile or role == RoleName.MENTOR:
            db.add(MentorProfile(user_id=user.id, name=display, headline="Mentor"))
        if mentee_profile and role != RoleName.MENTOR:
            db.add(MenteeProfile(user_id=user.id, name=display))
        db.commit()
        return user

    return _make


@pytest.fixture
def mentor(make_user) -> User:
    return make_user(RoleName.MENTOR, name="Maya Mentor")


@pytest.fixture
def mentee(make_user) -> User:
    return make_user(RoleName.MENTEE, name="Ravi Mentee")


@pytest.fixture
def admin(make_user) -> User:
    return make_user(RoleName.ADMIN, name="Ada Admin", mentee_profile=False)


@pytest.fixture
def make_offering(db: Session) -> Callable[..., Offering]:
    def _make(mentor: User, **overrides: Any) -> Offering:
        values: dict[str, Any] = {
            "mentor_id": mentor.id,
            "title": "Career chat",
            "price": Decimal("500.00"),
            "duration_minutes": 30,
            "buffer_before_minutes": 5,
            "buffer_after_minutes": 5,
            "max_bookings_per_day": 5,
            "advance_booking_days": 30,
            "min_notice_hours": 24,
            "status": OfferingStatus.ACTIVE.value,
        }
        values.update(overrides)
        offering = Offering(**values)
        db.add(offering)
        db.commit()
        return offering

    return _make


@pytest.fixture
def make_slot(db: Session) -> Callable[..., AvailabilitySlot]:
    def _make(
        mentor: User,
        day_of_week: int = MONDAY,
        start: time = time(9, 0),
        end: time = time(10, 0),
        timezone: str = "UTC",
    ) -> AvailabilitySlot:
        slot = AvailabilitySlot(
            mentor_id=mentor.id,
            day_of_week=day_of_week,
            start_time=start,
            end_time=end,
            timezone=timezone,
        )
        db.add(slot)
        db.commit()
        return slot

    return _make


@pytest.fixture
def offering(mentor, make_offering, make_slot) -> Offering:
    """Paid offering with Monday 09:00-10:00 UTC availability."""
    make_slot(mentor)
    return make_offering(mentor)


def monday_at(hour: int, minute: int = 0) -> datetime:
    return NEXT_MONDAY + timedelta(hours=hour, minutes=minute)


@pytest.fixture
def monday() -> Callable[..., datetime]:
    return monday_at


# ============================================================================
# HTTP
# ============================================================================


@pytest.fixture
def client(
    db: Session, notifications, booking_service, feedback_service
) -> Iterator[TestClient]:
    """Test client bound to the test session and the fixed clock."""
    from mentorbook.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_service] = lambda: notifications
    app.dependency_overrides[get_booking_service] = lambda: booking_service
    app.dependency_overrides[get_feedback_service] = lambda: feedback_service
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()
    test_client.close()


def actor(user: User) -> dict:
    return {"X-Actor-Id": user.id}


@pytest.fixture
def headers() -> Callable[[User], dict]:
    return actor
