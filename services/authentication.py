"""Login of users, with the extra checks on guest accounts."""

from __future__ import annotations

import logging

from models.user import User

from .errors import (
    InvalidCredentials,
    MissingField,
    UnconfirmedRegistration,
    UnderModeration,
    UserNotFound,
)
from .events import USER_LOGIN, USER_LOGOUT, EventSink
from .session_auth import AbstractSessionAuthenticator
from .settings import GuestSettings
from .token_store import TokenStore
from .user_store import AbstractUserStore, normalize_email

logger = logging.getLogger(__name__)


class AuthenticationGate:
    """Check credentials and open the session.

    Guests must have confirmed the latest token sent to their email before
    they can log in, unless registration is open.
    """

    def __init__(
        self,
        settings: GuestSettings,
        user_store: AbstractUserStore,
        token_store: TokenStore,
        sessions: AbstractSessionAuthenticator,
        events: EventSink,
    ):
        self.settings = settings
        self.user_store = user_store
        self.token_store = token_store
        self.sessions = sessions
        self.events = events

    def _is_unconfirmed(self, email: str) -> bool:
        guest_token = self.token_store.find_latest_by_email(email)
        return guest_token is not None and not guest_token.confirmed

    def check_credentials(self, email: str, password: str) -> User:
        """Return the user matching the credentials, or raise."""

        user = self.user_store.find_by_email(email)
        if user is None or not user.is_active:
            raise UserNotFound()

        # There is no token when the guest was created directly by an admin.
        if user.is_guest and not self.settings.is_open and self._is_unconfirmed(email):
            raise UnconfirmedRegistration()

        if not self.user_store.verify_password(user, password):
            raise InvalidCredentials()

        return user

    def _moderation_error(self, email: str, password: str) -> Exception | None:
        """Return a more specific error for a registration still in progress."""

        user = self.user_store.find_by_email(email)
        if user is None:
            return None
        if user.is_guest and self._is_unconfirmed(email):
            return UnconfirmedRegistration()
        if not user.is_active and self.user_store.verify_password(user, password):
            return UnderModeration()
        return None

    def authenticate(self, raw_email: str | None, password: str | None) -> User:
        """Log the user in and return it."""

        email = normalize_email(raw_email)
        if not email:
            raise MissingField("email")
        if not password:
            raise MissingField("password")

        try:
            user = self.check_credentials(email, password)
        except InvalidCredentials as exc:
            if not self.settings.is_open:
                specific = self._moderation_error(email, password)
                if specific is not None:
                    raise specific from exc
            logger.info("Failed login for %s (%s)", email, type(exc).__name__)
            raise

        self.sessions.regenerate_session()
        self.sessions.set_identity(user)
        logger.info("User %s logged in", user.email)
        self.events.emit(USER_LOGIN, user)
        return user

    def logout(self) -> None:
        user = self.sessions.current_identity()
        self.sessions.clear_identity()
        self.sessions.regenerate_session()
        if user is not None:
            logger.info("User %s logged out", user.email)
            self.events.emit(USER_LOGOUT, user)
