"""Mail abstraction layer."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterable

logger = logging.getLogger(__name__)


class AbstractMailer(ABC):
    """Interface for mail backends.

    ``send`` checks the message and never raises: delivery failures are
    logged and reported as ``False``.
    """

    def send(self, recipients: Iterable[str] | str, subject: str, body: str) -> bool:
        """Send a message to a list of recipients and return whether it left."""

        if isinstance(recipients, str):
            recipients = [recipients]

        subject = (subject or "").strip()
        if not subject:
            logger.error("Email not sent: the subject is missing.")
            return False

        body = (body or "").strip()
        if not body:
            logger.error("Email not sent: content is missing (subject: %s).", subject)
            return False

        unique: list[str] = []
        for recipient in recipients:
            recipient = (recipient or "").strip()
            if recipient and recipient not in unique:
                unique.append(recipient)
        if not unique:
            logger.error("Email not sent: no recipient (subject: %s).", subject)
            return False

        try:
            sent = self._deliver(unique, subject, body)
        except Exception:
            logger.exception("Failed to send email to %s", ", ".join(unique))
            return False

        if sent:
            logger.info("A mail was sent to %s with subject: %s", ", ".join(unique), subject)
        return sent

    @staticmethod
    def is_html(body: str) -> bool:
        return body.lstrip().startswith("<")

    @abstractmethod
    def _deliver(self, recipients: list[str], subject: str, body: str) -> bool:
        """Hand the checked message to the transport."""
