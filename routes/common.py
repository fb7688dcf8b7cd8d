"""Helpers shared by the guest blueprints."""

from __future__ import annotations

from flask import current_app, request, session
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from models.user import User
from services import GuestServices, get_services
from services.errors import NotAuthenticated
from services.session_auth import REDIRECT_KEY


def guest_services() -> GuestServices:
    return get_services(current_app)


def auth_rate_limit() -> str:
    return current_app.config.get("GUEST_AUTH_RATE_LIMIT", "10 per minute")


def _get_token_user() -> User | None:
    if "Authorization" not in request.headers:
        return None
    verify_jwt_in_request(optional=True)
    identity = get_jwt_identity()
    if identity is None:
        return None
    try:
        user_id = int(identity)
    except (TypeError, ValueError):
        return None
    user = guest_services().user_store.get(user_id)
    if user is None or not user.is_active:
        return None
    return user


def get_current_user() -> User | None:
    """Return the user of the session cookie, else of the bearer token."""

    return guest_services().sessions.current_identity() or _get_token_user()


def require_user() -> User:
    user = get_current_user()
    if user is None:
        raise NotAuthenticated()
    return user


def parse_bool(value: object) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "y", "on"}:
        return True
    if text in {"0", "false", "no", "n", "off", ""}:
        return False
    return None


def redirect_target(
    user: User | None,
    site_slug: str | None = None,
    default: str | None = None,
    explicit: str | None = None,
) -> str:
    """Resolve where to send the user once the action is done."""

    services = guest_services()
    explicit = explicit or request.values.get("redirect_url") or request.values.get("redirect")
    return services.redirects.resolve(
        explicit,
        session.pop(REDIRECT_KEY, None),
        user.role if user is not None else None,
        request.host,
        current_scheme=request.scheme,
        site_slug=site_slug,
        default=default,
    )
