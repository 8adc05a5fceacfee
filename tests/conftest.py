import os
import tempfile
from datetime import timedelta
from decimal import Decimal

# Settings are read at import time, so point them at a throwaway database first
_DB_DIR = tempfile.mkdtemp(prefix="car-rental-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_DB_DIR, "test.db")
os.environ["JWT_SECRET"] = "test-secret"

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from app.core import auth
from app.core.config import settings
from app.core.database import Base, SessionLocal, engine, utcnow
from app.main import app
from app.models import audit_log, invoice, payment, refund, rental, review  # noqa: F401
from app.models.user import User
from app.models.vehicle import Vehicle
from app.services import rentals


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def _add_user(db, user_id, email, role):
    db.add(User(id=user_id, email=email, full_name=user_id.title(), role=role))
    db.commit()
    return auth.User(user_id=user_id, email=email, role=role)


@pytest.fixture
def customer(db):
    return _add_user(db, "alice", "alice@example.com", auth.CUSTOMER)


@pytest.fixture
def other_customer(db):
    return _add_user(db, "bob", "bob@example.com", auth.CUSTOMER)


@pytest.fixture
def admin(db):
    return _add_user(db, "root", "ops@example.com", auth.ADMIN)


@pytest.fixture
def vehicle(db):
    car = Vehicle(license_plate="KA-01-1234", make="Toyota", model="Corolla", year=2022, daily_rate=Decimal("50.00"))
    db.add(car)
    db.commit()
    return car


@pytest.fixture
def now():
    return utcnow().replace(microsecond=0)


@pytest.fixture
def book(db, customer, vehicle, now):
    """Book ``vehicle`` for ``customer`` from now+start to now+end days."""
    def _book(start_days=2, end_days=5, user=None, vehicle_id=None):
        return rentals.create_rental(
            db,
            user or customer,
            vehicle_id=vehicle_id or vehicle.id,
            pickup_date=now + timedelta(days=start_days),
            return_date=now + timedelta(days=end_days),
            pickup_location="Airport",
            now=now,
        )
    return _book


@pytest.fixture
def completed_rental(db, book, admin, now):
    booked = book()
    rentals.confirm_rental(db, admin, booked.id)
    rentals.activate_rental(db, admin, booked.id)
    return rentals.complete_rental(db, admin, booked.id, now=now)


def token_for(user: auth.User) -> str:
    claims = {
        "sub": user.id,
        "email": user.email,
        "role": user.role,
        "aud": settings.JWT_AUDIENCE,
        "exp": utcnow() + timedelta(hours=1),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
def auth_headers():
    def _headers(user: auth.User) -> dict:
        return {"Authorization": f"Bearer {token_for(user)}"}
    return _headers


@pytest.fixture
def client():
    return TestClient(app)
