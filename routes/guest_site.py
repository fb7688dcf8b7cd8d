"""Site routes of the guest accounts: they act, then redirect."""

from __future__ import annotations

from flask import Blueprint, flash, redirect, request, session, url_for

from extensions import limiter
from services.errors import GuestError
from services.session_auth import REDIRECT_KEY
from services.terms import AGREED_TERMS
from utils.request_validation import parse_request_data
from utils.responses import success

from .common import (
    auth_rate_limit,
    get_current_user,
    guest_services,
    parse_bool,
    redirect_target,
    require_user,
)

guest_site_bp = Blueprint("guest_site", __name__)


def _site_url(site_slug: str) -> str:
    return guest_services().redirects.site_url(site_slug)


def _login_url(site_slug: str) -> str:
    return url_for("guest_site.login", site_slug=site_slug)


@guest_site_bp.route("/login", methods=["GET"])
def login_status(site_slug: str):
    """Remember where to go after login, or go there when already logged in."""

    services = guest_services()
    user = get_current_user()
    if user is not None:
        return redirect(redirect_target(user, site_slug=site_slug))

    pending = request.args.get("redirect_url") or request.args.get("redirect")
    if pending and services.redirects.is_local(pending, request.host, request.scheme):
        session[REDIRECT_KEY] = pending
    return success({"authenticated": False})


@guest_site_bp.route("/login", methods=["POST"])
@limiter.limit(auth_rate_limit)
def login(site_slug: str):
    data = parse_request_data(request)
    try:
        user = guest_services().auth.authenticate(data.get("email"), data.get("password"))
    except GuestError as exc:
        if exc.http_status >= 500:
            raise
        flash(exc.message, "error")
        return redirect(_login_url(site_slug))

    flash("Successfully logged in.", "success")
    return redirect(redirect_target(user, site_slug=site_slug))


@guest_site_bp.route("/logout", methods=["GET", "POST"])
def logout(site_slug: str):
    guest_services().auth.logout()
    flash("Successfully logged out.", "success")
    return redirect(redirect_target(None, site_slug=site_slug, default="site"))


@guest_site_bp.route("/confirm-email", methods=["GET"])
def confirm_email(site_slug: str):
    """Confirm a registration from the link sent by email."""

    try:
        user = guest_services().accounts.confirm(request.args.get("token"))
    except GuestError as exc:
        if exc.http_status >= 500:
            raise
        flash(exc.message, "error")
        return redirect(_site_url(site_slug))

    if user.is_active:
        flash("Thanks for confirming your registration. You can now log in.", "success")
        return redirect(_login_url(site_slug))
    flash(
        "Thanks for confirming your registration. Your account is under moderation for opening.",
        "success",
    )
    return redirect(_site_url(site_slug))


@guest_site_bp.route("/validate-email", methods=["GET"])
def validate_email(site_slug: str):
    """Apply an email change from the link sent to the new email."""

    try:
        user = guest_services().updates.validate_email(request.args.get("token"))
    except GuestError as exc:
        if exc.http_status >= 500:
            raise
        flash(exc.message, "error")
        return redirect(_site_url(site_slug))

    flash(f"Your new email {user.email} is confirmed.", "success")
    return redirect(redirect_target(get_current_user(), site_slug=site_slug, default="me"))


@guest_site_bp.route("/reset-password", methods=["GET"])
def reset_password_status(site_slug: str):
    guest_token = guest_services().accounts.find_reset_token(request.args.get("token"))
    return success({"token": guest_token.token, "email": guest_token.email})


@guest_site_bp.route("/reset-password", methods=["POST"])
@limiter.limit(auth_rate_limit)
def reset_password(site_slug: str):
    data = parse_request_data(request)
    try:
        guest_services().accounts.reset_password(
            data.get("token") or request.args.get("token"), data.get("password")
        )
    except GuestError as exc:
        if exc.http_status >= 500:
            raise
        flash(exc.message, "error")
        return redirect(_site_url(site_slug))

    flash("Your password has been reset. You can now log in.", "success")
    return redirect(_login_url(site_slug))


@guest_site_bp.route("/accept-terms", methods=["GET"])
def accept_terms_status(site_slug: str):
    services = guest_services()
    user = require_user()
    page = services.settings.terms_page
    return success(
        {
            AGREED_TERMS: bool(user.get_setting(AGREED_TERMS, False)),
            "terms_url": f"/s/{site_slug}/page/{page}" if page else None,
        }
    )


@guest_site_bp.route("/accept-terms", methods=["POST"])
def accept_terms(site_slug: str):
    user = require_user()
    data = parse_request_data(request)
    if not parse_bool(data.get("accept", data.get(AGREED_TERMS))):
        flash("You should accept the terms and conditions to continue.", "error")
        return redirect(url_for("guest_site.accept_terms", site_slug=site_slug))

    guest_services().updates.accept_terms(user)
    flash("Thanks for accepting the terms and conditions.", "success")
    return redirect(redirect_target(user, site_slug=site_slug))
