"""
Site backend services.

Services:
    - CaptchaService: SVG challenge issuance
    - ContactService: contact form validation, notification and storage
    - NotificationDispatcher: best-effort operator email
    - SubmissionStore: insert-only persistence of submissions
"""

from .captcha_service import Challenge, CaptchaService
from .contact_service import ContactService, validate_submission
from .notification_service import NotificationDispatcher
from .submission_store import SubmissionStore

__all__ = [
    "Challenge",
    "CaptchaService",
    "ContactService",
    "validate_submission",
    "NotificationDispatcher",
    "SubmissionStore",
]
