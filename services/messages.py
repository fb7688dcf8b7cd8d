"""Subjects and bodies of the guest emails.

Messages are Jinja templates under ``templates/mail/``; a message can be
overridden with the ``GUEST_MESSAGES`` setting, e.g.
``{"confirm-email": {"subject": "...", "body": "..."}}``.
"""

from __future__ import annotations

import logging
from typing import Any

from flask import render_template, render_template_string, url_for

from models.guest_token import GuestToken

from .settings import GuestSettings

logger = logging.getLogger(__name__)

CONFIRM_EMAIL = "confirm-email"
UPDATE_EMAIL = "update-email"
RESET_PASSWORD = "reset-password"
NOTIFY_REGISTRATION = "notify-registration"

# Site endpoint receiving the token of each message.
TOKEN_ENDPOINTS = {
    CONFIRM_EMAIL: "guest_site.confirm_email",
    UPDATE_EMAIL: "guest_site.validate_email",
    RESET_PASSWORD: "guest_site.reset_password",
}


class MessageComposer:
    def __init__(self, settings: GuestSettings):
        self.settings = settings

    def token_url(self, message: str, guest_token: GuestToken, site_slug: str | None) -> str | None:
        """Return the absolute url validating the token, or None without a site."""

        site_slug = site_slug or self.settings.default_site
        endpoint = TOKEN_ENDPOINTS.get(message)
        if endpoint is None:
            return None
        if not site_slug:
            logger.warning(
                "No site is available to build the token url of the message %s; "
                "set a default site or assume emails are valid.",
                message,
            )
            return None
        return url_for(endpoint, site_slug=site_slug, token=guest_token.token, _external=True)

    def compose(
        self,
        message: str,
        *,
        site_slug: str | None = None,
        guest_token: GuestToken | None = None,
        **data: Any,
    ) -> tuple[str, str]:
        """Return the subject and the body of a message."""

        context: dict[str, Any] = {
            "main_title": self.settings.main_title,
            "site_slug": site_slug or self.settings.default_site,
            "user_name": "",
            "user_email": "",
            "token": None,
            "token_url": None,
        }
        context.update(data)
        if guest_token is not None:
            context["token"] = guest_token.token
            context["token_url"] = self.token_url(message, guest_token, site_slug)

        template_name = message.replace("-", "_")
        override = self.settings.messages.get(message) or {}
        if override.get("subject"):
            subject = render_template_string(override["subject"], **context)
        else:
            subject = render_template(f"mail/{template_name}_subject.txt", **context)
        if override.get("body"):
            body = render_template_string(override["body"], **context)
        else:
            body = render_template(f"mail/{template_name}.txt", **context)
        return " ".join(subject.split()), body.strip()
