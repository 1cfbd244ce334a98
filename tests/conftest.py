"""
Shared fixtures: in-memory SQLite database, users, tokens and a mocked
notification task so no broker or SMTP server is needed.
"""
import os

# Must be set before marketplace.config.settings is first imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")

import pytest
from unittest.mock import patch
from datetime import date
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from marketplace.api.dependencies import create_access_token
from marketplace.config.database import get_db
from marketplace.main import app
from marketplace.models import (
    Appointment,
    AppointmentHistory,
    AppointmentStatus,
    AvailabilityWindow,
    Base,
    User,
    UserRole,
)
from marketplace.services.appointment.appointment_store import AppointmentStore, utcnow
from marketplace.utils.time_utils import DAY_NAMES

# Test database configuration
TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# 2024-01-01 is a Monday
MONDAY = "2024-01-01"


@pytest.fixture
def db():
    """Fresh schema per test"""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def email_task():
    """Celery task stand-in; assert on email_task.delay calls"""
    with patch("marketplace.services.notification.notification_service.send_appointment_email") as task:
        yield task


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _add_user(db, email, role, full_name, timezone=None):
    user = User(email=email, role=role, full_name=full_name, timezone=timezone, is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def customer(db):
    return _add_user(db, "casey@example.com", UserRole.CUSTOMER, "Casey Customer")


@pytest.fixture
def other_customer(db):
    return _add_user(db, "olive@example.com", UserRole.CUSTOMER, "Olive Other")


@pytest.fixture
def professional(db):
    """Works Monday 09:00-17:00 UTC only"""
    user = _add_user(db, "pat@example.com", UserRole.PROFESSIONAL, "Pat Professional", "America/New_York")
    user.availability_windows = [
        AvailabilityWindow(
            day=day,
            is_available=day == "Monday",
            start_time="09:00" if day == "Monday" else None,
            end_time="17:00" if day == "Monday" else None,
        )
        for day in DAY_NAMES
    ]
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def other_professional(db):
    return _add_user(db, "quinn@example.com", UserRole.PROFESSIONAL, "Quinn Other", "UTC")


def auth_headers(user):
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


def make_appointment(
        db,
        customer,
        professional,
        status=AppointmentStatus.PENDING_PROFESSIONAL_APPROVAL,
        appointment_date=date(2024, 1, 1),
        start_time="10:00",
        total_duration=60,
        quoted_price=100.0,
        final_price=None,
):
    """Persist an appointment directly, bypassing the creation rules"""
    hours, minutes = divmod(int(start_time[:2]) * 60 + int(start_time[3:]) + total_duration, 60)
    now = utcnow()
    appointment = Appointment(
        customer_id=customer.id,
        professional_id=professional.id,
        services=[{"name": "Bookkeeping review", "price": quoted_price, "duration": total_duration}],
        total_duration=total_duration,
        appointment_date=appointment_date,
        start_time=start_time,
        end_date=appointment_date,
        end_time=f"{hours % 24:02d}:{minutes:02d}",
        professional_timezone=professional.timezone or "UTC",
        quoted_price=quoted_price,
        final_price=quoted_price if final_price is None else final_price,
        customer_notes="",
        status=status,
        version=1,
        created_at=now,
        updated_at=now,
    )
    first_entry = AppointmentHistory(
        timestamp=now,
        action_by="customer",
        user_id=customer.id,
        action_type="created_appointment_request",
        details={},
    )
    return AppointmentStore.insert(db, appointment, first_entry)
