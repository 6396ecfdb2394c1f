"""
Shared fixtures: an in-memory SQLite store, a recording notifier and a test client
wired to both through dependency overrides.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tripledger.api.dependencies import get_notifier
from tripledger.core.exceptions import DeliveryError
from tripledger.core.security import create_access_token, get_password_hash
from tripledger.db.base import Base
from tripledger.db.session import get_db, init_db
from tripledger.main import app
from tripledger.models.trip import Trip, TripParticipant
from tripledger.models.user import User

PASSWORD = "testpassword123"
PASSWORD_HASH = get_password_hash(PASSWORD)


class RecordingNotifier:
    """Notifier double that remembers every message and can be told to fail."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, to_address, subject, html_body, bcc=None):
        if self.fail:
            raise DeliveryError("SMTP server unavailable")
        self.sent.append((to_address, subject, html_body, bcc))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(session_factory, notifier):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_user(db, email, name):
    user = User(email=email, name=name, hashed_password=PASSWORD_HASH)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id, user.email)}"}


@pytest.fixture
def alice(db):
    return make_user(db, "alice@example.com", "Alice")


@pytest.fixture
def bob(db):
    return make_user(db, "bob@example.com", "Bob")


@pytest.fixture
def carol(db):
    return make_user(db, "carol@example.com", "Carol")


@pytest.fixture
def mallory(db):
    """A registered user who belongs to no trip."""
    return make_user(db, "mallory@example.com", "Mallory")


@pytest.fixture
def trip(db, alice, bob):
    """Trip owned by Alice with Bob as participant."""
    trip = Trip(name="Goa", description="Beach week", owner_id=alice.id)
    trip.participants = [TripParticipant(user_id=bob.id)]
    db.add(trip)
    db.commit()
    db.refresh(trip)
    return trip
