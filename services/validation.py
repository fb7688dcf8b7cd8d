"""Validation of submitted emails and user names."""

from __future__ import annotations

import re
from typing import Callable, Optional

from email_validator import EmailNotValidError, validate_email

from .errors import InvalidEmail, InvalidUsername, MissingField
from .user_store import normalize_email

# Returns an error message for an invalid user name, None otherwise.
UsernameValidator = Callable[[str], Optional[str]]


def check_email(raw_email: str | None, field: str = "email") -> str:
    """Return the normalized email or raise a validation error."""

    email = normalize_email(raw_email)
    if not email:
        raise MissingField(field)
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError as exc:
        raise InvalidEmail() from exc
    return email


def pattern_username_validator(pattern: str) -> UsernameValidator:
    """Build a validator accepting the user names fully matching a pattern."""

    compiled = re.compile(pattern)

    def _validate(username: str) -> str | None:
        if not username:
            return "The user name is required."
        if not compiled.fullmatch(username):
            return "The user name contains forbidden characters."
        return None

    return _validate


def check_username(validator: UsernameValidator | None, username: str | None) -> None:
    if validator is None:
        return
    error = validator((username or "").strip())
    if error:
        raise InvalidUsername(error)
