"""Mail backends."""

from .abstract_mailer import AbstractMailer
from .memory_mailer import MemoryMailer
from .sendgrid_mailer import SendGridMailer

__all__ = ["AbstractMailer", "MemoryMailer", "SendGridMailer", "create_mailer"]


def create_mailer(config) -> AbstractMailer:
    """Build the mail backend named by ``MAIL_BACKEND``."""

    backend = (config.get("MAIL_BACKEND") or "sendgrid").strip().lower()
    if backend == "memory":
        return MemoryMailer()
    if backend == "sendgrid":
        return SendGridMailer(
            api_key=config.get("SENDGRID_API_KEY"),
            from_address=config.get("MAIL_FROM_ADDRESS", "no-reply@example.com"),
            from_name=config.get("MAIL_FROM_NAME"),
        )
    raise ValueError(f"Unknown mail backend: {backend}.")
