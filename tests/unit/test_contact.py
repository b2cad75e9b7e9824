from unittest.mock import MagicMock

import pytest
from fastapi import Depends
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from legalsite.api.deps import get_mail_transport, get_submission_store
from legalsite.core.config import settings
from legalsite.db.session import get_db
from legalsite.main import app
from legalsite.services.submission_store import SubmissionStore

CONTACT_URL = "/api/v1/contact"


def test_contact_valid_submission_is_stored(client, issue_captcha, contact_payload, stored_rows):
    issue_captcha("xyz12")

    response = client.post(CONTACT_URL, json=contact_payload)

    assert response.status_code == 201
    payload = response.json()
    assert payload["success"] is True
    assert payload["message"] == "Contact form submitted successfully"
    assert payload["data"]["id"]
    assert payload["data"]["created_at"]
    assert len(stored_rows()) == 1


def test_contact_concrete_scenario(client, issue_captcha):
    issue_captcha("xyz12")
    body = {"name": "A", "email": "a@b.com", "subject": "S", "message": "M", "type_the_word": "xyz12"}

    response = client.post(CONTACT_URL, json=body)

    assert response.status_code == 201
    data = response.json()["data"]
    assert "id" in data
    assert data["email"] == "a@b.com"

    body["type_the_word"] = "wrong"
    response = client.post(CONTACT_URL, json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid captcha code. Please try again."}


def test_contact_round_trip_preserves_values(client, issue_captcha, contact_payload, stored_rows):
    issue_captcha("xyz12")
    contact_payload["message"] = "  Line one\n\tLine two  \n"

    response = client.post(CONTACT_URL, json=contact_payload)

    assert response.status_code == 201
    data = response.json()["data"]
    for field in ("name", "email", "phone", "subject", "message"):
        assert data[field] == contact_payload[field]

    (row,) = stored_rows()
    assert row.id == data["id"]
    assert row.message == contact_payload["message"]
    assert row.phone == contact_payload["phone"]
    assert row.created_at is not None


def test_contact_without_phone_stores_null(client, issue_captcha, contact_payload, stored_rows):
    issue_captcha("xyz12")
    del contact_payload["phone"]

    response = client.post(CONTACT_URL, json=contact_payload)

    assert response.status_code == 201
    assert response.json()["data"]["phone"] is None
    assert stored_rows()[0].phone is None


def test_contact_accepts_urlencoded_form(client, issue_captcha, contact_payload):
    issue_captcha("xyz12")

    response = client.post(CONTACT_URL, data=contact_payload)

    assert response.status_code == 201
    assert response.json()["data"]["subject"] == contact_payload["subject"]


@pytest.mark.parametrize("field", ["name", "email", "subject", "message"])
def test_contact_missing_field_has_no_side_effects(
    client, issue_captcha, mail_transport, contact_payload, stored_rows, field
):
    issue_captcha("xyz12")
    contact_payload[field] = ""

    response = client.post(CONTACT_URL, json=contact_payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Name, email, subject, and message are required"}
    assert stored_rows() == []
    assert mail_transport.sent == []


def test_contact_missing_field_reported_before_captcha(client, contact_payload):
    # no captcha issued and a field missing: the field error wins
    del contact_payload["name"]

    response = client.post(CONTACT_URL, json=contact_payload)

    assert response.status_code == 400
    assert response.json()["error"] == "Name, email, subject, and message are required"


@pytest.mark.parametrize(
    "body",
    [None, "not json", "[1, 2, 3]"],
    ids=["empty", "malformed", "not-an-object"],
)
def test_contact_unusable_body_is_missing_field(client, body):
    response = client.post(
        CONTACT_URL,
        content=body,
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Name, email, subject, and message are required"


def test_contact_without_issued_captcha_is_rejected(client, mail_transport, contact_payload, stored_rows):
    response = client.post(CONTACT_URL, json=contact_payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid captcha code. Please try again."}
    assert stored_rows() == []
    assert mail_transport.sent == []


@pytest.mark.parametrize("answer", ["wrong", "", None, "xyz1", "xyz123"])
def test_contact_wrong_captcha_is_rejected(client, issue_captcha, contact_payload, stored_rows, answer):
    issue_captcha("xyz12")
    if answer is None:
        del contact_payload["type_the_word"]
    else:
        contact_payload["type_the_word"] = answer

    response = client.post(CONTACT_URL, json=contact_payload)

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid captcha code. Please try again."
    assert stored_rows() == []


def test_contact_captcha_is_case_insensitive(client, issue_captcha, contact_payload):
    issue_captcha("AbC7x")
    contact_payload["type_the_word"] = "abc7X"

    response = client.post(CONTACT_URL, json=contact_payload)

    assert response.status_code == 201


def test_contact_new_captcha_replaces_previous(client, issue_captcha, contact_payload):
    issue_captcha("first")
    issue_captcha("second")

    contact_payload["type_the_word"] = "first"
    assert client.post(CONTACT_URL, json=contact_payload).status_code == 400

    contact_payload["type_the_word"] = "second"
    assert client.post(CONTACT_URL, json=contact_payload).status_code == 201


def test_contact_solved_captcha_can_be_replayed(client, issue_captcha, contact_payload, stored_rows):
    issue_captcha("xyz12")

    first = client.post(CONTACT_URL, json=contact_payload)
    second = client.post(CONTACT_URL, json=contact_payload)

    assert first.status_code == 201
    assert second.status_code == 201
    assert first.json()["data"]["id"] != second.json()["data"]["id"]
    assert len(stored_rows()) == 2


def test_contact_single_use_captcha_blocks_replay(
    client, issue_captcha, contact_payload, stored_rows, monkeypatch
):
    monkeypatch.setattr(settings, "CAPTCHA_SINGLE_USE", True)
    issue_captcha("xyz12")

    first = client.post(CONTACT_URL, json=contact_payload)
    second = client.post(CONTACT_URL, json=contact_payload)

    assert first.status_code == 201
    assert second.status_code == 400
    assert second.json()["error"] == "Invalid captcha code. Please try again."
    assert len(stored_rows()) == 1


@pytest.mark.parametrize(
    "email",
    [
        "plainaddress",
        "user@domain",
        "user@@domain.com",
        "us er@domain.com",
        "user@domain .com",
        "user@domain.com\n",
        "@domain.com",
        "user@.com",
    ],
)
def test_contact_invalid_email_is_rejected(client, issue_captcha, contact_payload, stored_rows, email):
    issue_captcha("xyz12")
    contact_payload["email"] = email

    response = client.post(CONTACT_URL, json=contact_payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid email address"}
    assert stored_rows() == []


def test_contact_wrong_captcha_reported_before_bad_email(client, issue_captcha, contact_payload):
    issue_captcha("xyz12")
    contact_payload["email"] = "not-an-email"
    contact_payload["type_the_word"] = "nope"

    response = client.post(CONTACT_URL, json=contact_payload)

    assert response.json()["error"] == "Invalid captcha code. Please try again."


def test_contact_sends_notification(client, issue_captcha, mail_transport, contact_payload):
    issue_captcha("xyz12")

    response = client.post(CONTACT_URL, json=contact_payload)

    assert response.status_code == 201
    assert len(mail_transport.sent) == 1
    message = mail_transport.sent[0]
    assert message["Subject"] == "New Contact Form Submission: Lease dispute"
    assert message["To"] == "office@springlegal.test"
    assert message["Reply-To"] == "ada@example.com"


def test_contact_notification_failure_is_swallowed(
    client, issue_captcha, failing_transport, contact_payload, stored_rows, caplog
):
    issue_captcha("xyz12")
    caplog.set_level("ERROR", logger="legalsite.services.notification_service")

    response = client.post(CONTACT_URL, json=contact_payload)

    assert response.status_code == 201
    assert failing_transport.attempts == 1
    assert len(stored_rows()) == 1
    assert "Contact notification failed" in caplog.text
    assert "ada@example.com" not in caplog.text


def test_contact_with_mail_disabled_still_stores(client, issue_captcha, contact_payload):
    # the lifespan found no SMTP settings, so no transport is attached
    assert app.state.mail_transport is None
    issue_captcha("xyz12")

    response = client.post(CONTACT_URL, json=contact_payload)

    assert response.status_code == 201
    data = response.json()["data"]
    assert isinstance(data["id"], int)
    assert data["created_at"]


def test_contact_store_failure_returns_500_after_notification(
    client, issue_captcha, mail_transport, contact_payload
):
    db = MagicMock()
    db.commit.side_effect = OperationalError("INSERT INTO contacts", {}, Exception("db down"))
    app.dependency_overrides[get_submission_store] = lambda: SubmissionStore(db)
    issue_captcha("xyz12")

    response = client.post(CONTACT_URL, json=contact_payload)

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
    assert "db down" not in response.text
    db.rollback.assert_called_once()
    # notification is not rolled back
    assert len(mail_transport.sent) == 1


def test_contact_notifies_before_storing(client, issue_captcha, contact_payload):
    calls = []

    class OrderedTransport:
        async def send(self, message) -> None:
            calls.append("notify")

    class OrderedStore(SubmissionStore):
        def insert(self, record):
            calls.append("store")
            return super().insert(record)

    def ordered_store(db: Session = Depends(get_db)) -> SubmissionStore:
        return OrderedStore(db)

    transport = OrderedTransport()
    app.dependency_overrides[get_mail_transport] = lambda: transport
    app.dependency_overrides[get_submission_store] = ordered_store
    issue_captcha("xyz12")

    response = client.post(CONTACT_URL, json=contact_payload)

    assert response.status_code == 201
    assert calls == ["notify", "store"]
