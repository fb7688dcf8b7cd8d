"""Session identity management."""

from __future__ import annotations

import secrets
from abc import ABC, abstractmethod

from flask import g, session

from models.user import User

from .user_store import AbstractUserStore

IDENTITY_KEY = "guest_user_id"
SESSION_NONCE_KEY = "_sid"
REDIRECT_KEY = "redirect_url"


class AbstractSessionAuthenticator(ABC):
    """Interface of the host session and identity storage."""

    @abstractmethod
    def regenerate_session(self) -> None:
        """Drop the current identity and issue a fresh session."""

    @abstractmethod
    def set_identity(self, user: User) -> None:
        """Mark the session as authenticated for the user."""

    @abstractmethod
    def has_identity(self) -> bool:
        """Return whether the session is authenticated."""

    @abstractmethod
    def current_identity(self) -> User | None:
        """Return the authenticated user, if any."""

    @abstractmethod
    def clear_identity(self) -> None:
        """Log the session out."""


class FlaskSessionAuthenticator(AbstractSessionAuthenticator):
    """Keep the identity in the signed Flask session cookie.

    The resolved user is cached on ``flask.g`` for the rest of the request.
    """

    def __init__(self, user_store: AbstractUserStore):
        self.user_store = user_store

    def regenerate_session(self) -> None:
        # Keep the pending redirect, drop everything else, identity included.
        redirect_url = session.get(REDIRECT_KEY)
        session.clear()
        if redirect_url:
            session[REDIRECT_KEY] = redirect_url
        session[SESSION_NONCE_KEY] = secrets.token_hex(16)
        g.pop("guest_identity", None)

    def set_identity(self, user: User) -> None:
        session[IDENTITY_KEY] = user.id
        g.guest_identity = user

    def has_identity(self) -> bool:
        return self.current_identity() is not None

    def current_identity(self) -> User | None:
        if "guest_identity" in g:
            return g.guest_identity

        user = None
        user_id = session.get(IDENTITY_KEY)
        if user_id is not None:
            user = self.user_store.get(user_id)
            # Deactivated accounts lose their sessions.
            if user is not None and not user.is_active:
                user = None
        g.guest_identity = user
        return user

    def clear_identity(self) -> None:
        session.pop(IDENTITY_KEY, None)
        session.pop(REDIRECT_KEY, None)
        g.guest_identity = None
