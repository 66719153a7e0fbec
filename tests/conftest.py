"""Shared test configuration and fixtures for Gatepass tests"""

import logging
import os
import uuid
from datetime import date

# The engine module refuses to import without a URL; tests use their own engines
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from gatepass.auth.dependencies import get_current_user  # noqa: E402
from gatepass.auth.models import User  # noqa: E402
from gatepass.main import app  # noqa: E402
from gatepass.models.database import get_db  # noqa: E402
from gatepass.routers.registrations import get_email_service  # noqa: E402
from gatepass.services.analytics_service import AnalyticsService  # noqa: E402
from gatepass.services.checkin_service import CheckinService  # noqa: E402
from gatepass.services.email_service import EmailService  # noqa: E402
from gatepass.services.event_service import EventService  # noqa: E402
from gatepass.services.form_schema_service import FieldSpec  # noqa: E402
from gatepass.services.registration_service import RegistrationService  # noqa: E402

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class FakeEmailClient:
    """Records outgoing mail instead of calling Mailgun"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    async def send_email(self, to, html, subject, inline=None):
        if self.fail:
            raise RuntimeError("Mailgun unavailable")
        self.sent.append(
            {"to": to, "html": html, "subject": subject, "inline": inline or []}
        )
        return {"id": f"<{uuid.uuid4()}@test>", "message": "Queued. Thank you."}


@pytest.fixture
def db_engine(tmp_path):
    """File-backed SQLite engine so worker threads share one database"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'gatepass.db'}",
        connect_args={"check_same_thread": False},
    )
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()


@pytest.fixture
def _db_session(db_engine):
    """Private DB session for fixtures only.

    Do not use this fixture directly in tests. Prefer the service fixtures
    such as `event_service` or `registration_service`.
    """
    session = Session(db_engine)

    yield session

    session.close()


@pytest.fixture
def manager_id():
    return f"auth0|{uuid.uuid4().hex[:24]}"


@pytest.fixture
def event_service(_db_session):
    return EventService(_db_session)


@pytest.fixture
def fake_email_client():
    return FakeEmailClient()


@pytest.fixture
def email_service(fake_email_client):
    return EmailService({}, email_client=fake_email_client)


@pytest.fixture
def registration_service(_db_session, email_service):
    return RegistrationService(_db_session, email_service=email_service)


@pytest.fixture
def checkin_service(_db_session):
    return CheckinService(_db_session)


@pytest.fixture
def analytics_service(_db_session):
    return AnalyticsService(_db_session)


@pytest.fixture
def conference(event_service, manager_id):
    """An event with an 'Attendee' group (capacity 2) and a 'Speaker' group"""
    event = event_service.create_event(
        manager_id=manager_id,
        title="Tech Summit 2026",
        event_date=date(2026, 11, 20),
        location="Hall A",
    )
    event_service.add_group(
        event.id,
        manager_id,
        name="Attendee",
        capacity=2,
        fields=[FieldSpec(label="Company")],
    )
    event_service.add_group(
        event.id,
        manager_id,
        name="Speaker",
        capacity=5,
        fields=[
            FieldSpec(label="Full Name", required=True),
            FieldSpec(label="Email", required=True),
            FieldSpec(label="Talk Title", required=True),
        ],
    )
    return event


@pytest.fixture
def mock_current_user(manager_id):
    """Create the authenticated manager used by endpoint tests"""

    def _create_mock_user():
        claims = {
            "iss": "https://gatepass-test.eu.auth0.com/",
            "aud": "test-audience",
            "scope": "openid profile email",
            "permissions": [],
        }
        return User(user_id=manager_id, claims=claims)

    return _create_mock_user


@pytest.fixture
def authenticated_client(mock_current_user, _db_session, email_service):
    """Create a test client that bypasses authentication and uses test database"""

    # Store original overrides to restore them later
    original_overrides = app.dependency_overrides.copy()

    test_user = mock_current_user()

    async def mock_get_current_user():
        return test_user

    def get_test_db():
        return _db_session

    app.dependency_overrides.clear()
    app.dependency_overrides[get_current_user] = mock_get_current_user
    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_email_service] = lambda: email_service

    client = TestClient(app)

    yield client, test_user

    app.dependency_overrides.clear()
    app.dependency_overrides.update(original_overrides)


@pytest.fixture
def anonymous_client(_db_session):
    """Client with the real auth dependency but the test database"""
    original_overrides = app.dependency_overrides.copy()

    app.dependency_overrides.clear()
    app.dependency_overrides[get_db] = lambda: _db_session
    app.dependency_overrides[get_email_service] = lambda: None

    yield TestClient(app)

    app.dependency_overrides.clear()
    app.dependency_overrides.update(original_overrides)
