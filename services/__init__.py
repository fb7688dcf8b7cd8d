"""Guest account services wired together for a Flask application."""

from __future__ import annotations

from dataclasses import dataclass

from flask import Flask

from mail import AbstractMailer, create_mailer

from .account_update import AccountUpdateService
from .authentication import AuthenticationGate
from .events import EventSink
from .guest_accounts import GuestAccountService
from .messages import MessageComposer
from .redirects import RedirectResolver
from .session_auth import AbstractSessionAuthenticator, FlaskSessionAuthenticator
from .settings import GuestSettings
from .terms import TermsAgreementGate
from .token_store import TokenStore
from .user_store import AbstractUserStore, SqlAlchemyUserStore
from .validation import pattern_username_validator

EXTENSION_NAME = "guest"


@dataclass
class GuestServices:
    settings: GuestSettings
    user_store: AbstractUserStore
    token_store: TokenStore
    sessions: AbstractSessionAuthenticator
    mailer: AbstractMailer
    events: EventSink
    accounts: GuestAccountService
    auth: AuthenticationGate
    redirects: RedirectResolver
    terms: TermsAgreementGate
    updates: AccountUpdateService

    @classmethod
    def from_app(
        cls,
        app: Flask,
        mailer: AbstractMailer | None = None,
        random_source=None,
    ) -> "GuestServices":
        """Build the services from the application configuration."""

        settings = GuestSettings.from_config(app.config)
        mailer = mailer or create_mailer(app.config)
        user_store = SqlAlchemyUserStore()
        token_store = TokenStore(random_source=random_source)
        sessions = FlaskSessionAuthenticator(user_store)
        events = EventSink()
        composer = MessageComposer(settings)

        # Resolved once: the username check is either configured or absent.
        pattern = app.config.get("GUEST_USERNAME_PATTERN")
        username_validator = pattern_username_validator(pattern) if pattern else None

        return cls(
            settings=settings,
            user_store=user_store,
            token_store=token_store,
            sessions=sessions,
            mailer=mailer,
            events=events,
            accounts=GuestAccountService(
                settings,
                user_store,
                token_store,
                sessions,
                mailer,
                composer,
                events,
                username_validator=username_validator,
            ),
            auth=AuthenticationGate(settings, user_store, token_store, sessions, events),
            redirects=RedirectResolver(settings),
            terms=TermsAgreementGate(settings),
            updates=AccountUpdateService(settings, user_store, token_store, mailer, composer),
        )


def init_app(app: Flask, mailer: AbstractMailer | None = None) -> GuestServices:
    services = GuestServices.from_app(app, mailer=mailer)
    app.extensions[EXTENSION_NAME] = services
    return services


def get_services(app: Flask) -> GuestServices:
    return app.extensions[EXTENSION_NAME]
