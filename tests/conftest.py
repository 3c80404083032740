"""
Shared fixtures for the ApplyMail tests.
"""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from applymail.api.dependencies import get_clock
from applymail.core.config import Settings
from applymail.main import create_app
from applymail.schemas.application import SendResult
from applymail.services.mailer import MailClient

FROZEN_NOW = datetime(2026, 10, 19, 14, 3, 22, tzinfo=timezone.utc)

JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00fake-jpeg-body"
PDF_BYTES = b"%PDF-1.4\n%fake pdf body\n%%EOF\n"

APPLICANT = {
    "nom": "Dupont",
    "prenom": "Jean",
    "metier": "Matelot",
    "telephone": "+33611223344",
}


class FakeMailClient(MailClient):
    """Records every email instead of sending it"""

    name = "fake"

    def __init__(self):
        self.sent = []
        self.result = SendResult(id="fake-message-id")
        self.raises = None
        self.closed = False

    async def send(self, email):
        self.sent.append(email)
        if self.raises is not None:
            raise self.raises
        return self.result

    def close(self):
        self.closed = True


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def settings(upload_dir):
    return Settings(
        UPLOAD_DIR=str(upload_dir),
        MAIL_TO="recrutement@example.com",
        MAIL_FROM="Recrutement <onboarding@example.com>",
        MAIL_SUBJECT_PREFIX="Application",
    )


@pytest.fixture
def mail_client():
    return FakeMailClient()


@pytest.fixture
def app(settings, mail_client):
    app = create_app(settings=settings, mail_client=mail_client)
    app.dependency_overrides[get_clock] = lambda: (lambda: FROZEN_NOW)
    return app


@pytest.fixture
def client(app):
    """Test client with the lifespan running"""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def frozen_now():
    return FROZEN_NOW


@pytest.fixture
def jpeg_bytes():
    return JPEG_BYTES


@pytest.fixture
def pdf_bytes():
    return PDF_BYTES


@pytest.fixture
def applicant():
    return dict(APPLICANT)
