"""JSON API of the guest accounts, answering JSend envelopes."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, request
from flask_jwt_extended import create_access_token

from extensions import limiter
from models.user import User
from services.errors import TermsNotAgreed
from services.settings import GuestSettings
from services.terms import AGREED_TERMS
from utils.request_validation import parse_json_request
from utils.responses import success

from .common import (
    auth_rate_limit,
    guest_services,
    parse_bool,
    redirect_target,
    require_user,
)

guest_api_bp = Blueprint("guest_api", __name__)

PASSWORD_FIELDS = ("password", "current_password", "new_password", "password_confirm")


def _serialize_user(user: User) -> dict:
    data = user.to_dict()
    data["agreed_terms"] = bool(user.get_setting(AGREED_TERMS, False))
    return data


def _registration_message(user: User, settings: GuestSettings) -> str:
    if user.is_active and settings.register_email_is_valid:
        return "Thank you for registering. You can now log in."
    if user.is_active:
        return (
            "Thank you for registering. Please check your email for a confirmation "
            "message. You can already log in."
        )
    if settings.register_email_is_valid:
        return (
            "Thank you for registering. Your account will be activated once it is "
            "moderated."
        )
    return (
        "Thank you for registering. Please check your email for a confirmation message. "
        "Once you have confirmed your request and we have confirmed it, you will be "
        "able to log in."
    )


def _token_param() -> str | None:
    if request.is_json:
        payload = request.get_json(silent=True) or {}
        if isinstance(payload, dict) and payload.get("token"):
            return str(payload["token"])
    return request.values.get("token")


@guest_api_bp.route("/register", methods=["POST"])
@limiter.limit(auth_rate_limit)
def register():
    """Register a guest account."""

    services = guest_services()
    payload = parse_json_request(request)
    user = services.accounts.register(payload, site_slug=payload.get("site"))

    return success(
        {"user": _serialize_user(user)},
        HTTPStatus.CREATED,
        message=_registration_message(user, services.settings),
    )


@guest_api_bp.route("/login", methods=["POST"])
@limiter.limit(auth_rate_limit)
def login():
    """Open a session for valid credentials."""

    services = guest_services()
    payload = parse_json_request(request)
    user = services.auth.authenticate(payload.get("email"), payload.get("password"))

    return success(
        {
            "user": _serialize_user(user),
            "redirect_url": redirect_target(
                user,
                site_slug=payload.get("site"),
                explicit=payload.get("redirect_url") or payload.get("redirect"),
            ),
        },
        message="Successfully logged in.",
    )


@guest_api_bp.route("/logout", methods=["POST"])
def logout():
    guest_services().auth.logout()
    return success(message="Successfully logged out.")


@guest_api_bp.route("/confirm", methods=["GET", "POST"])
def confirm():
    """Confirm a registration with the token received by email."""

    user = guest_services().accounts.confirm(_token_param())
    if user.is_active:
        message = "Thanks for confirming your registration. You can now log in."
    else:
        message = (
            "Thanks for confirming your registration. Your account is under moderation "
            "for opening."
        )
    return success({"user": _serialize_user(user)}, message=message)


@guest_api_bp.route("/resend-confirmation", methods=["POST"])
@limiter.limit(auth_rate_limit)
def resend_confirmation():
    payload = parse_json_request(request)
    guest_services().accounts.resend_confirmation(payload.get("email"), payload.get("site"))
    return success(
        message="If a registration is pending for this email, a new confirmation link was sent."
    )


@guest_api_bp.route("/forgot-password", methods=["POST"])
@limiter.limit(auth_rate_limit)
def forgot_password():
    """Send a password reset link, without revealing whether the account exists."""

    payload = parse_json_request(request, allow_empty=True)
    guest_services().accounts.forgot_password(payload.get("email"), payload.get("site"))
    return success(message="Check your email for instructions to reset your password.")


@guest_api_bp.route("/reset-password", methods=["POST"])
@limiter.limit(auth_rate_limit)
def reset_password():
    payload = parse_json_request(request)
    guest_services().accounts.reset_password(payload.get("token"), payload.get("password"))
    return success(message="Your password has been reset. You can now log in.")


@guest_api_bp.route("/me", methods=["GET"])
def me():
    user = require_user()
    return success({"user": _serialize_user(user)})


@guest_api_bp.route("/me", methods=["PATCH", "PUT"])
def update_me():
    """Update the profile and, when submitted, the password of the current user."""

    services = guest_services()
    user = require_user()
    payload = parse_json_request(request)

    new_password = payload.get("new_password") or payload.get("password")
    if new_password:
        services.updates.change_password(user, payload.get("current_password"), new_password)

    fields = {key: value for key, value in payload.items() if key not in PASSWORD_FIELDS}
    if fields:
        services.updates.update_profile(user, fields)

    return success({"user": _serialize_user(user)}, message="Your account has been updated.")


@guest_api_bp.route("/update-email", methods=["POST"])
def update_email():
    """Start an email change; the email is updated once the link is followed."""

    services = guest_services()
    user = require_user()
    payload = parse_json_request(request, required_keys=("email",))
    guest_token = services.updates.request_email_change(
        user, payload.get("email"), payload.get("site")
    )
    return success(
        guest_token.to_dict(),
        message="Check your new email to confirm the change.",
    )


@guest_api_bp.route("/validate-email", methods=["GET", "POST"])
def validate_email():
    user = guest_services().updates.validate_email(_token_param())
    return success({"user": _serialize_user(user)}, message="Your new email is confirmed.")


@guest_api_bp.route("/accept-terms", methods=["POST"])
def accept_terms():
    services = guest_services()
    user = require_user()
    payload = parse_json_request(request, allow_empty=True)

    agreed = parse_bool(payload.get("accept", payload.get(AGREED_TERMS)))
    if not agreed:
        raise TermsNotAgreed()
    services.updates.accept_terms(user)
    return success(
        {"user": _serialize_user(user)},
        message="Thanks for accepting the terms and conditions.",
    )


@guest_api_bp.route("/session-token", methods=["GET"])
def session_token():
    """Issue a bearer token for the user of the current session."""

    user = require_user()
    return success({"access_token": create_access_token(identity=str(user.id))})

