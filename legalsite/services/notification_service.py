from __future__ import annotations

import logging
from email.message import EmailMessage
from html import escape
from typing import Optional

from legalsite.core.email import MailTransport
from legalsite.schemas.contact import ValidatedSubmission

logger = logging.getLogger(__name__)

NOT_PROVIDED = "Not provided"


class NotificationDispatcher:
    """Best-effort operator notice for a new contact submission.

    ``notify`` never raises and never reports failure to its caller: with no
    transport it does nothing, and a failed send is logged and dropped. The
    submission is stored either way.
    """

    def __init__(
        self,
        transport: Optional[MailTransport],
        from_email: Optional[str],
        to_email: Optional[str],
        site_name: str = "Spring Legal Consultancy",
    ) -> None:
        self.transport = transport
        self.from_email = from_email
        self.to_email = to_email
        self.site_name = site_name

    @property
    def enabled(self) -> bool:
        return self.transport is not None

    def render_html(self, record: ValidatedSubmission) -> str:
        message_html = "<br>".join(
            escape(line) for line in record.message.replace("\r\n", "\n").split("\n")
        )
        return f"""
<h2>New Contact Form Submission</h2>
<p><strong>Name:</strong> {escape(record.name)}</p>
<p><strong>Email:</strong> {escape(record.email)}</p>
<p><strong>Phone:</strong> {escape(record.phone or NOT_PROVIDED)}</p>
<p><strong>Subject:</strong> {escape(record.subject)}</p>
<p><strong>Message:</strong></p>
<p>{message_html}</p>
<hr>
<p><em>This message was sent from the {escape(self.site_name)} website contact form.</em></p>
"""

    def render_text(self, record: ValidatedSubmission) -> str:
        return "\n".join(
            [
                "New Contact Form Submission",
                f"Name: {record.name}",
                f"Email: {record.email}",
                f"Phone: {record.phone or NOT_PROVIDED}",
                f"Subject: {record.subject}",
                "",
                "Message:",
                record.message,
            ]
        )

    def build_message(self, record: ValidatedSubmission) -> EmailMessage:
        msg = EmailMessage()
        if self.from_email:
            msg["From"] = self.from_email
        if self.to_email:
            msg["To"] = self.to_email
        msg["Reply-To"] = record.email
        # header values may not contain line breaks
        subject = " ".join(record.subject.split())
        msg["Subject"] = f"New Contact Form Submission: {subject}"
        msg.set_content(self.render_text(record))
        msg.add_alternative(self.render_html(record), subtype="html")
        return msg

    async def notify(self, record: ValidatedSubmission) -> None:
        if self.transport is None:
            logger.debug("Email transport disabled; skipping contact notification")
            return

        email_domain = record.email.split("@")[-1]
        try:
            message = self.build_message(record)
            await self.transport.send(message)
        except Exception as exc:
            logger.error(
                "Contact notification failed email_domain=%s error=%s",
                email_domain,
                exc,
                exc_info=exc,
            )
            return

        logger.info("Contact notification sent email_domain=%s", email_domain)
