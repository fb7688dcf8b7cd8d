"""Errors raised by the guest services.

Every error carries a machine-readable ``code``, the HTTP status the web layer
should answer with, and a fixed message that is safe to show to the caller.
"""

from __future__ import annotations

from http import HTTPStatus


class GuestError(Exception):
    """Base class of the errors reported to the caller."""

    code = "error"
    http_status = HTTPStatus.BAD_REQUEST
    message = "The request could not be processed."

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


# Validation errors


class ValidationError(GuestError):
    code = "validation_error"


class MissingField(ValidationError):
    code = "missing_field"

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"The field {field} is required.")


class InvalidEmail(ValidationError):
    code = "invalid_email"
    message = "Invalid email."


class InvalidUsername(ValidationError):
    code = "invalid_username"
    message = "Invalid user name."


class InvalidToken(ValidationError):
    code = "invalid_token"
    message = "Invalid token: your email or your password cannot be validated."


# Policy errors


class PolicyError(GuestError):
    code = "policy_error"
    http_status = HTTPStatus.FORBIDDEN


class AlreadyAuthenticated(PolicyError):
    code = "already_authenticated"
    http_status = HTTPStatus.BAD_REQUEST
    message = "User cannot register: already logged."


class NotAuthenticated(PolicyError):
    code = "not_authenticated"
    http_status = HTTPStatus.UNAUTHORIZED
    message = "Access forbidden: you must be logged in."


class RegistrationClosed(PolicyError):
    code = "registration_closed"
    message = "Registration is closed."


class AlreadyRegistered(PolicyError):
    code = "already_registered"
    http_status = HTTPStatus.CONFLICT
    message = "Already registered."


class PendingConfirmation(PolicyError):
    code = "pending_confirmation"
    http_status = HTTPStatus.CONFLICT
    message = "Check your email to confirm your registration."


class UnconfirmedRegistration(PolicyError):
    code = "unconfirmed_registration"
    http_status = HTTPStatus.UNAUTHORIZED
    message = "Your account has not been confirmed: check your email."


class UnderModeration(PolicyError):
    code = "under_moderation"
    http_status = HTTPStatus.UNAUTHORIZED
    message = "Your account is under moderation for opening."


class TermsNotAgreed(PolicyError):
    code = "terms_not_agreed"
    message = "You must agree to the terms and conditions first."


# Authentication errors


class InvalidCredentials(GuestError):
    code = "invalid_credentials"
    http_status = HTTPStatus.UNAUTHORIZED
    message = "Email or password invalid."


class UserNotFound(InvalidCredentials):
    """Unknown or inactive account, reported exactly like a bad password."""


# Account update errors


class UpdateError(GuestError):
    code = "update_error"


class EmailUnchanged(UpdateError):
    code = "email_unchanged"
    message = "The new email is the same as the current one."


class EmailTaken(UpdateError):
    code = "email_taken"
    http_status = HTTPStatus.CONFLICT
    message = "The email is already used by another account."


class ExternalAccount(UpdateError):
    code = "external_account"
    http_status = HTTPStatus.FORBIDDEN
    message = "The password of this account is managed by an external service."


# Storage errors


class StorageError(GuestError):
    code = "storage_error"
    http_status = HTTPStatus.INTERNAL_SERVER_ERROR
    message = "An unexpected error occurred."


class EmailConflict(StorageError):
    """A unique constraint on the user email rejected a write."""

    code = "email_conflict"
    http_status = HTTPStatus.CONFLICT
