"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from mail import MemoryMailer  # noqa: E402
from models import db  # noqa: E402
from models.user import ROLE_GUEST, User  # noqa: E402
from services import GuestServices, get_services  # noqa: E402


class _BaseTestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key"
    JWT_SECRET_KEY = "test-jwt-secret-key-long-enough-for-hs256"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    RATELIMIT_ENABLED = False
    CORS_ORIGINS = "*"
    MAIL_BACKEND = "memory"
    GUEST_MAIN_TITLE = "Test Portal"
    GUEST_REGISTRATION_MODE = "moderate"
    GUEST_REGISTER_EMAIL_IS_VALID = False
    GUEST_REGISTER_ROLE_DEFAULT = "guest"
    GUEST_ALLOWED_ROLES: list = []
    GUEST_NOTIFY_REGISTER: list = []
    GUEST_USERNAME_PATTERN = None
    GUEST_DEFAULT_SITE = "main"
    GUEST_SHORT_TOKENS = False
    GUEST_REDIRECT = "home"
    GUEST_REDIRECT_STRICT = False
    GUEST_TERMS_PAGE = "terms-and-conditions"
    GUEST_TERMS_REQUEST_REGEX = ""
    GUEST_MESSAGES: dict = {}


@pytest.fixture()
def make_app():
    """Return a factory building an application with config overrides."""

    created: list[Flask] = []

    def _make_app(**overrides) -> Flask:
        class TestConfig(_BaseTestConfig):
            pass

        for key, value in overrides.items():
            setattr(TestConfig, key, value)

        application = create_app(TestConfig)
        with application.app_context():
            db.create_all()
        created.append(application)
        return application

    yield _make_app

    for application in created:
        with application.app_context():
            db.session.remove()
            db.drop_all()


@pytest.fixture()
def app(make_app) -> Flask:
    """Create a Flask application instance for tests."""

    return make_app()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def services(app: Flask) -> GuestServices:
    return get_services(app)


@pytest.fixture()
def mailer(services: GuestServices) -> MemoryMailer:
    return services.mailer


@pytest.fixture()
def request_ctx(app: Flask):
    """Push a request context, needed by the session and the mail links."""

    with app.test_request_context("/"):
        yield


def create_user(
    email: str,
    password: str = "GuestPass123",
    role: str = ROLE_GUEST,
    *,
    active: bool = True,
    **fields,
) -> User:
    """Helper to create and persist a user."""

    user = User(email=email, name=fields.pop("name", email), role=role, is_active=active, **fields)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user
