"""Application configuration module."""

import os


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_list(name: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, "").split(",") if item.strip()]


class Config:
    """Base configuration for the Flask application."""

    # Core
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", SECRET_KEY)
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///guest.db")
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # CORS
    _raw_origins = os.getenv("ORIGINS", "*")
    if _raw_origins.strip() == "*":
        CORS_ORIGINS = "*"
    else:
        CORS_ORIGINS = [o.strip() for o in _raw_origins.split(",") if o.strip()]

    # Rate limiting
    RATELIMIT_ENABLED = _env_bool("RATELIMIT_ENABLED", True)
    RATELIMIT_DEFAULT = os.getenv("RATE_LIMIT", "60 per minute")
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    GUEST_AUTH_RATE_LIMIT = os.getenv("GUEST_AUTH_RATE_LIMIT", "10 per minute")

    # Mail
    MAIL_BACKEND = os.getenv("MAIL_BACKEND", "sendgrid")
    SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY")
    MAIL_FROM_ADDRESS = os.getenv("MAIL_FROM_ADDRESS", "no-reply@example.com")
    MAIL_FROM_NAME = os.getenv("MAIL_FROM_NAME", "Guest")

    # Guest registration and login
    GUEST_MAIN_TITLE = os.getenv("GUEST_MAIN_TITLE", "Guest")
    GUEST_REGISTRATION_MODE = os.getenv("GUEST_REGISTRATION_MODE", "moderate")
    GUEST_REGISTER_EMAIL_IS_VALID = _env_bool("GUEST_REGISTER_EMAIL_IS_VALID")
    GUEST_REGISTER_ROLE_DEFAULT = os.getenv("GUEST_REGISTER_ROLE_DEFAULT", "guest")
    GUEST_ALLOWED_ROLES = _env_list("GUEST_ALLOWED_ROLES")
    GUEST_NOTIFY_REGISTER = _env_list("GUEST_NOTIFY_REGISTER")
    GUEST_USERNAME_PATTERN = os.getenv("GUEST_USERNAME_PATTERN")
    GUEST_USER_SETTINGS = ["agreed_terms", "locale"]
    GUEST_DEFAULT_SITE = os.getenv("GUEST_DEFAULT_SITE")
    GUEST_SHORT_TOKENS = _env_bool("GUEST_SHORT_TOKENS")
    GUEST_RESET_TOKEN_TTL = int(os.getenv("GUEST_RESET_TOKEN_TTL", "86400"))

    # Redirects
    GUEST_REDIRECT = os.getenv("GUEST_REDIRECT", "home")
    GUEST_REDIRECT_STRICT = _env_bool("GUEST_REDIRECT_STRICT")

    # Terms agreement
    GUEST_TERMS_PAGE = os.getenv("GUEST_TERMS_PAGE", "terms-and-conditions")
    GUEST_TERMS_REQUEST_REGEX = os.getenv("GUEST_TERMS_REQUEST_REGEX", "")

    # Message overrides, keyed by message name ("confirm-email", ...), each a
    # mapping with optional "subject" and "body" Jinja templates.
    GUEST_MESSAGES: dict = {}
