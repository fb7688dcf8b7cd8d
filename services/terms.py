"""Redirection of guests who have not agreed to the terms yet."""

from __future__ import annotations

import logging
import re

from models.user import ROLE_GUEST, User

from .settings import GuestSettings

logger = logging.getLogger(__name__)

AGREED_TERMS = "agreed_terms"

# Paths a guest may always reach.
EXEMPT_PATHS = ("maintenance", "login", "logout", "migrate", "guest/accept-terms")

_SITE_SLUG = re.compile(r"/s/([^/]+)")


class TermsAgreementGate:
    def __init__(self, settings: GuestSettings):
        self.settings = settings
        self.allowed = self._build_regex()

    def _build_regex(self) -> re.Pattern:
        alternatives = [""]
        if self.settings.terms_request_regex:
            alternatives.append(self.settings.terms_request_regex)
        if self.settings.terms_page:
            alternatives.append("page/" + re.escape(self.settings.terms_page))
        alternatives.extend(re.escape(path) for path in EXEMPT_PATHS)
        return re.compile("/(" + "|".join(alternatives) + ")$")

    def applies_to(self, user: User | None) -> bool:
        """Whether the user still has to agree to the terms."""

        return (
            user is not None
            and user.role == ROLE_GUEST
            and not user.get_setting(AGREED_TERMS, False)
        )

    def is_allowed_path(self, path: str) -> bool:
        return self.allowed.search(path.split("?", 1)[0]) is not None

    def accept_terms_url(self, path: str, base_url: str = "") -> str:
        """Return the accept-terms url of the site in the path or the default site."""

        base_url = base_url.rstrip("/")
        match = _SITE_SLUG.match(path[len(base_url):] if path.startswith(base_url) else path)
        site_slug = match.group(1) if match else self.settings.default_site
        if not site_slug:
            return base_url + "/"
        return f"{base_url}/s/{site_slug}/guest/accept-terms"

    def check(self, user: User | None, path: str, base_url: str = "") -> str | None:
        """Return the url to redirect to, or None when the request may proceed."""

        if not self.applies_to(user):
            return None
        if self.is_allowed_path(path):
            return None
        logger.debug("Guest %s has not agreed to the terms yet", user.email)
        return self.accept_terms_url(path, base_url)
