from __future__ import annotations

import asyncio
import logging
import re
from typing import Optional

from legalsite.core.errors import (
    InvalidCaptchaError,
    InvalidEmailError,
    MissingFieldError,
)
from legalsite.core.session import ChallengeSession
from legalsite.schemas.contact import (
    ContactRequest,
    StoredSubmission,
    ValidatedSubmission,
)
from legalsite.services.notification_service import NotificationDispatcher
from legalsite.services.submission_store import SubmissionStore

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "email", "subject", "message")
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


def captcha_matches(answer: Optional[str], secret: Optional[str]) -> bool:
    if not secret or answer is None:
        return False
    return answer.lower() == secret.lower()


def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.fullmatch(email) is not None


def validate_submission(
    request: ContactRequest, session_secret: Optional[str]
) -> ValidatedSubmission:
    """
    Check a contact form in a fixed order and stop at the first failure:

    1. name, email, subject and message are all non-empty
    2. the captcha answer matches the session secret (case-insensitive);
       no secret at all counts as a wrong answer
    3. the email looks like local@domain.tld

    Values are passed through untouched; phone may be None or empty.
    """
    if any(not getattr(request, field) for field in REQUIRED_FIELDS):
        raise MissingFieldError()

    if not captcha_matches(request.type_the_word, session_secret):
        raise InvalidCaptchaError()

    if not is_valid_email(request.email):
        raise InvalidEmailError()

    return ValidatedSubmission(
        name=request.name,
        email=request.email,
        phone=request.phone,
        subject=request.subject,
        message=request.message,
    )


class ContactService:
    """Validate, notify (best effort), then store. Storage decides success."""

    def __init__(
        self,
        store: SubmissionStore,
        notifier: NotificationDispatcher,
        single_use_captcha: bool = False,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.single_use_captcha = single_use_captcha

    async def submit(
        self, request: ContactRequest, challenge: ChallengeSession
    ) -> StoredSubmission:
        record = validate_submission(request, challenge.get_secret())

        if self.single_use_captcha:
            challenge.clear_secret()

        await self.notifier.notify(record)

        stored = await asyncio.to_thread(self.store.insert, record)
        logger.info(
            "AUDIT: Contact form accepted id=%s email_domain=%s mail_enabled=%s",
            stored.id,
            record.email.split("@")[-1],
            self.notifier.enabled,
        )
        return stored
