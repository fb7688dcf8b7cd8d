"""Mailer keeping messages in memory, for development and tests."""

from __future__ import annotations

from dataclasses import dataclass

from .abstract_mailer import AbstractMailer


@dataclass
class SentMessage:
    recipients: list[str]
    subject: str
    body: str


class MemoryMailer(AbstractMailer):
    """Append every message to ``outbox`` instead of sending it."""

    def __init__(self, fail: bool = False):
        self.outbox: list[SentMessage] = []
        self.fail = fail

    def _deliver(self, recipients: list[str], subject: str, body: str) -> bool:
        if self.fail:
            raise ConnectionError("Mail transport unavailable.")
        self.outbox.append(SentMessage(list(recipients), subject, body))
        return True

    def messages_to(self, recipient: str) -> list[SentMessage]:
        return [message for message in self.outbox if recipient in message.recipients]

    def clear(self) -> None:
        self.outbox.clear()
