"""Shared fixtures: a throwaway SQLite database per test and a context wired to it"""
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from intellibook.config.database import Database
from intellibook.config.settings import Settings
from intellibook.core.context import BookingContext
from intellibook.schemas.appointment import AppointmentCreate
from intellibook.schemas.business import AppointmentTypeCreate
from intellibook.services.business.appointment_type_service import AppointmentTypeService
from intellibook.services.business.business_service import BusinessService
from intellibook.services.email.email_service import EmailResult, EmailService
from intellibook.services.notification.notification_service import NotificationService

MONDAY = "2026-10-19"
TUESDAY = "2026-10-20"
SUNDAY = "2026-10-18"


class RecordingEmailService(EmailService):
    """Captures outgoing mail instead of sending it"""

    def __init__(self, settings: Settings, fail_with: Optional[Exception] = None):
        super().__init__(settings)
        self.sent: List[dict] = []
        self.fail_with = fail_with

    def send_email(self, to_email, subject, html_content, plain_text=None) -> EmailResult:
        if self.fail_with is not None:
            raise self.fail_with
        if not to_email:
            return EmailResult(ok=False, error="missing-to")
        self.sent.append({"to": to_email, "subject": subject, "text": plain_text, "html": html_content})
        return EmailResult(ok=True, provider="simulation")


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite:///{tmp_path}/test.db",
        RESEND_API_KEY="",
        EMAIL_HOST="",
        EMAIL_FROM_ADDRESS="",
        PUBLIC_RATE_LIMIT_PER_SECOND=0,
        SEED_DEFAULT_TYPES=False,
    )


@pytest.fixture
def email_service(settings):
    return RecordingEmailService(settings)


@pytest.fixture
def context(settings, email_service):
    database = Database(settings)
    database.create_tables()
    ctx = BookingContext(
        settings=settings,
        database=database,
        notifier=NotificationService(email_service),
    )
    yield ctx
    ctx.close()


@pytest.fixture
def db(context):
    session = context.database.session()
    yield session
    session.close()


@pytest.fixture
def business(db, context):
    return BusinessService.create_business(db, context, name="Acme Studio", owner_email="owner@acme.test")


@pytest.fixture
def make_type(db, business):
    def _make(name="Consultation", duration_minutes=45, **kwargs):
        payload = AppointmentTypeCreate(name=name, duration_minutes=duration_minutes, **kwargs)
        return AppointmentTypeService.create_type(db, business.id, payload)
    return _make


@pytest.fixture
def booking():
    """AppointmentCreate with sensible defaults"""
    def _build(**overrides):
        data = {
            "client_name": "Jane Client",
            "client_email": "jane@client.test",
            "date": MONDAY,
            "time": "10:00",
            "duration_minutes": 45,
        }
        data.update(overrides)
        return AppointmentCreate(**data)
    return _build


@pytest.fixture
def client(settings, context):
    from intellibook.main import create_app

    with TestClient(create_app(settings, context=context)) as test_client:
        yield test_client
