from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from legalsite.core.config import settings
from legalsite.core.email import MailTransport
from legalsite.db.session import get_db
from legalsite.services.contact_service import ContactService
from legalsite.services.notification_service import NotificationDispatcher
from legalsite.services.submission_store import SubmissionStore


def get_mail_transport(request: Request) -> Optional[MailTransport]:
    """The transport built once at startup, or None when mail is disabled."""
    return getattr(request.app.state, "mail_transport", None)


def get_notification_dispatcher(
    transport: Optional[MailTransport] = Depends(get_mail_transport),
) -> NotificationDispatcher:
    return NotificationDispatcher(
        transport=transport,
        from_email=settings.FROM_EMAIL,
        to_email=settings.TO_EMAIL,
        site_name=settings.PROJECT_NAME,
    )


def get_submission_store(db: Session = Depends(get_db)) -> SubmissionStore:
    return SubmissionStore(db)


def get_contact_service(
    store: SubmissionStore = Depends(get_submission_store),
    notifier: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> ContactService:
    return ContactService(
        store=store,
        notifier=notifier,
        single_use_captcha=settings.CAPTCHA_SINGLE_USE,
    )
