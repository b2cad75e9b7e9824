import os
import tempfile
from pathlib import Path
from typing import Generator, List

# Settings are read at import time, so the environment is pinned before any
# legalsite module is imported.
_TEST_DIR = Path(tempfile.mkdtemp(prefix="legalsite-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DIR / 'test.db'}"
os.environ["ENVIRONMENT"] = "local"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["SMTP_SERVER"] = ""
os.environ["FROM_EMAIL"] = "website@springlegal.test"
os.environ["TO_EMAIL"] = "office@springlegal.test"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from legalsite.api.deps import get_mail_transport  # noqa: E402
from legalsite.db.session import SessionLocal  # noqa: E402
from legalsite.main import app  # noqa: E402
from legalsite.models import ContactSubmission  # noqa: E402
from legalsite.services.captcha_service import Challenge, get_captcha_service  # noqa: E402

# -----------------------------------------------------------------------------
# Collaborator fakes
# -----------------------------------------------------------------------------


class FixedCaptcha:
    """Issues challenges with a known answer."""

    def __init__(self, secret: str) -> None:
        self.secret = secret

    def issue(self) -> Challenge:
        return Challenge(image=b"<svg xmlns='http://www.w3.org/2000/svg'/>", secret=self.secret)


class RecordingTransport:
    def __init__(self) -> None:
        self.sent: List = []

    async def send(self, message) -> None:
        self.sent.append(message)


class FailingTransport:
    def __init__(self) -> None:
        self.attempts = 0

    async def send(self, message) -> None:
        self.attempts += 1
        raise ConnectionError("smtp unavailable")


# -----------------------------------------------------------------------------
# Database Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def stored_rows():
    """Callable returning every persisted submission, oldest first."""

    def _rows() -> List[ContactSubmission]:
        with SessionLocal() as session:
            return session.query(ContactSubmission).order_by(ContactSubmission.id).all()

    return _rows


# -----------------------------------------------------------------------------
# Client Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture(scope="function")
def client() -> Generator[TestClient, None, None]:
    """
    TestClient with the lifespan running (creates the contacts table, leaves
    mail disabled). Rows and dependency overrides are cleared afterwards.
    """
    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
    with SessionLocal() as session:
        session.query(ContactSubmission).delete()
        session.commit()


@pytest.fixture
def issue_captcha(client):
    """Issue a challenge with a known answer into the client's session."""

    def _issue(secret: str = "xyz12"):
        captcha = FixedCaptcha(secret)
        app.dependency_overrides[get_captcha_service] = lambda: captcha
        response = client.get("/api/v1/captcha")
        assert response.status_code == 200
        return response

    return _issue


@pytest.fixture
def mail_transport(client) -> RecordingTransport:
    transport = RecordingTransport()
    app.dependency_overrides[get_mail_transport] = lambda: transport
    return transport


@pytest.fixture
def failing_transport(client) -> FailingTransport:
    transport = FailingTransport()
    app.dependency_overrides[get_mail_transport] = lambda: transport
    return transport


@pytest.fixture
def contact_payload() -> dict:
    return {
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "phone": "+44 20 7946 0958",
        "subject": "Lease dispute",
        "message": "My landlord is withholding the deposit.\n\nCan you help?",
        "type_the_word": "xyz12",
    }
