"""SendGrid mail backend."""

from __future__ import annotations

import logging

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from .abstract_mailer import AbstractMailer

logger = logging.getLogger(__name__)


class SendGridMailer(AbstractMailer):
    """Send transactional emails through the SendGrid API."""

    def __init__(self, api_key: str | None, from_address: str, from_name: str | None = None):
        self.api_key = api_key
        self.from_address = from_address
        self.from_name = from_name

    def _deliver(self, recipients: list[str], subject: str, body: str) -> bool:
        if not self.api_key:
            logger.warning("SendGrid API key not configured, skipping email send")
            return False

        content = {"html_content": body} if self.is_html(body) else {"plain_text_content": body}
        message = Mail(
            from_email=(self.from_address, self.from_name) if self.from_name else self.from_address,
            to_emails=recipients,
            subject=subject,
            is_multiple=len(recipients) > 1,
            **content,
        )

        client = SendGridAPIClient(self.api_key)
        response = client.send(message)
        logger.debug("SendGrid answered with status %s", response.status_code)
        return response.status_code in (200, 201, 202)
