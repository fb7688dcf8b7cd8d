"""Computation of the url a user is sent to after an action."""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

from models.user import BACKEND_ROLES

from .settings import GuestSettings

logger = logging.getLogger(__name__)

ADMIN_URL = "/admin"
TOP_URL = "/"


def is_local_url(
    url: str | None,
    current_host: str | None,
    current_scheme: str | None = None,
    strict: bool = False,
) -> bool:
    """Check if a url is relative or on the current host.

    Only the host name is compared unless ``strict`` is set, in which case the
    scheme and the port must match too.
    """

    if not url:
        return False
    # Browsers drop tabs and newlines, so "/\t/host" would read as "//host".
    if any(ord(char) <= 0x20 or ord(char) == 0x7f for char in url):
        return False
    if url.startswith("/"):
        # A protocol-relative url may point to any host; browsers read "/\" as "//".
        return not url.startswith(("//", "/\\"))

    try:
        parsed = urlsplit(url)
        port = parsed.port
    except ValueError:
        return False
    if not parsed.hostname:
        # Backslashes and schemes like "javascript:" are never relative.
        return "\\" not in url and not parsed.scheme

    current = urlsplit(f"//{current_host or ''}")
    if parsed.hostname != (current.hostname or ""):
        return False
    if not strict:
        return True
    if parsed.scheme != (current_scheme or ""):
        return False
    default_port = 443 if parsed.scheme == "https" else 80
    return (port or default_port) == (current.port or default_port)


class RedirectResolver:
    """Pick the redirect target, never trusting an off-site url."""

    def __init__(self, settings: GuestSettings):
        self.settings = settings

    def is_local(self, url: str | None, current_host: str | None, current_scheme: str | None = None) -> bool:
        return is_local_url(
            url, current_host, current_scheme=current_scheme, strict=self.settings.redirect_strict
        )

    def site_url(self, site_slug: str | None) -> str:
        site_slug = site_slug or self.settings.default_site
        return f"/s/{site_slug}" if site_slug else TOP_URL

    def me_url(self, site_slug: str | None) -> str:
        site_slug = site_slug or self.settings.default_site
        return f"/s/{site_slug}/guest/me" if site_slug else TOP_URL

    def default_url(
        self,
        role: str | None,
        site_slug: str | None = None,
        default: str | None = None,
    ) -> str:
        """Return the configured default target for the role."""

        redirect = (default if default is not None else self.settings.redirect_default) or "home"
        if redirect == "home":
            if role in BACKEND_ROLES:
                return ADMIN_URL
            return self.site_url(site_slug)
        if redirect == "site":
            return self.site_url(site_slug)
        if redirect == "me":
            return self.me_url(site_slug)
        if redirect == "top":
            return TOP_URL
        # A literal url set by the administrator.
        return redirect

    def resolve(
        self,
        explicit: str | None,
        session_stored: str | None,
        role: str | None,
        current_host: str | None,
        current_scheme: str | None = None,
        site_slug: str | None = None,
        default: str | None = None,
    ) -> str:
        """Return the first local candidate, else the configured default."""

        for candidate in (explicit, session_stored):
            if not candidate:
                continue
            if self.is_local(candidate, current_host, current_scheme):
                return candidate
            logger.warning("Rejected a redirect to a non-local url: %s", candidate)
        return self.default_url(role, site_slug=site_slug, default=default)
