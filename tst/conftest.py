"""
Shared pytest fixtures: in-memory database, fake mail and push transports.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from contact_service.app import create_app
from contact_service.shared.contact.dependencies import get_mailer, get_push_sender
from contact_service.shared.database import DatabaseHandle
from contact_service.shared.errors import DeliveryResult


class FakeMailer:
    """Records every email instead of sending it."""

    def __init__(self, owner_result=None, verification_result=None):
        self.owner_result = owner_result or DeliveryResult.sent()
        self.verification_result = verification_result or DeliveryResult.sent()
        self.owner_error = None
        self.owner_notifications = []
        self.verification_emails = []

    def send_owner_notification(self, submission):
        self.owner_notifications.append(submission.email)
        if self.owner_error:
            raise self.owner_error
        return self.owner_result

    def send_verification_email(self, submission):
        self.verification_emails.append((submission.email, submission.verify_token))
        return self.verification_result


class FakePushSender:
    """Returns a preset DeliveryResult per endpoint (SENT by default)."""

    def __init__(self, results=None):
        self.results = results or {}
        self.delivered = []
        self.payloads = []

    def send(self, subscription_info, payload):
        endpoint = subscription_info["endpoint"]
        result = self.results.get(endpoint, DeliveryResult.sent())
        if result.ok:
            self.delivered.append(endpoint)
            self.payloads.append(payload)
        return result


@pytest.fixture(autouse=True)
def environment(monkeypatch):
    """Run every test in development mode with deterministic settings."""
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    monkeypatch.delenv("DYNO", raising=False)
    monkeypatch.setenv("SITE_BASE_URL", "https://example.test")
    monkeypatch.setenv("SPAM_UPPERCASE_RATIO", "0.5")


@pytest.fixture
def database():
    return DatabaseHandle(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def db_session(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def count_rows(database):
    """Count rows of a model through a fresh session."""
    def _count(model, **filters):
        session = database.session()
        try:
            return session.query(model).filter_by(**filters).count()
        finally:
            session.close()
    return _count


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def push_sender():
    return FakePushSender()


@pytest.fixture
def app(database, mailer, push_sender):
    app = create_app(database)
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_push_sender] = lambda: push_sender
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def contact_payload():
    return {
        "name": "Alice",
        "email": "alice@example.com",
        "message": "Hello, interested in your services.",
    }
