"""Tests for the redirect target computation."""

from __future__ import annotations

import pytest

from services.redirects import ADMIN_URL, TOP_URL, RedirectResolver, is_local_url
from services.settings import GuestSettings

HOST = "portal.example.com"


@pytest.mark.parametrize(
    "url, expected",
    [
        ("/s/main/page/news", True),
        ("/", True),
        ("page/news", True),
        ("https://portal.example.com/s/main", True),
        ("http://portal.example.com:8080/s/main", True),
        ("//evil.example.org/s/main", False),
        ("/\\evil.example.org", False),
        ("https://evil.example.org/s/main", False),
        ("https://portal.example.com.evil.example.org/", False),
        ("javascript:alert(1)", False),
        ("\\\\evil.example.org", False),
        ("/\t/evil.example.org", False),
        ("/\n/evil", False),
        ("/\r/evil.example.org", False),
        ("/s/main/page news", False),
        ("https://portal.example.com/\x00", False),
        ("", False),
        (None, False),
    ],
)
def test_is_local_url(url, expected):
    assert is_local_url(url, HOST, "https") is expected


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://portal.example.com/s/main", True),
        ("https://portal.example.com:443/s/main", True),
        ("http://portal.example.com/s/main", False),
        ("https://portal.example.com:8443/s/main", False),
        ("/s/main", True),
    ],
)
def test_is_local_url_strict(url, expected):
    assert is_local_url(url, HOST, "https", strict=True) is expected


def test_is_local_url_compares_port_of_current_host_in_strict_mode():
    assert is_local_url("http://localhost:5000/x", "localhost:5000", "http", strict=True)
    assert not is_local_url("http://localhost/x", "localhost:5000", "http", strict=True)


@pytest.fixture()
def resolver() -> RedirectResolver:
    return RedirectResolver(GuestSettings(default_site="main"))


def test_explicit_local_url_wins(resolver):
    target = resolver.resolve("/s/main/page/a", "/s/main/page/b", "guest", HOST)
    assert target == "/s/main/page/a"


def test_remote_explicit_url_falls_back_to_session(resolver):
    target = resolver.resolve("https://evil.example.org/", "/s/main/page/b", "guest", HOST)
    assert target == "/s/main/page/b"


def test_remote_urls_fall_back_to_default(resolver):
    target = resolver.resolve(
        "https://evil.example.org/", "//evil.example.org/", "guest", HOST
    )
    assert target == "/s/main"


@pytest.mark.parametrize(
    "role, default, expected",
    [
        ("guest", None, "/s/main"),
        (None, None, "/s/main"),
        ("global_admin", None, ADMIN_URL),
        ("editor", None, ADMIN_URL),
        ("guest", "site", "/s/main"),
        ("global_admin", "site", "/s/main"),
        ("guest", "me", "/s/main/guest/me"),
        ("guest", "top", TOP_URL),
        ("guest", "/welcome", "/welcome"),
    ],
)
def test_default_url(resolver, role, default, expected):
    assert resolver.default_url(role, default=default) == expected


def test_default_url_uses_current_site(resolver):
    assert resolver.default_url("guest", site_slug="other") == "/s/other"


def test_default_url_without_site_is_top():
    resolver = RedirectResolver(GuestSettings())
    assert resolver.default_url("guest") == TOP_URL
    assert resolver.default_url("guest", default="me") == TOP_URL


def test_configured_default_applies():
    resolver = RedirectResolver(GuestSettings(default_site="main", redirect_default="me"))
    assert resolver.resolve(None, None, "guest", HOST) == "/s/main/guest/me"


def test_strict_setting_reaches_resolver():
    resolver = RedirectResolver(GuestSettings(default_site="main", redirect_strict=True))
    target = resolver.resolve("http://portal.example.com/x", None, "guest", HOST, "https")
    assert target == "/s/main"
