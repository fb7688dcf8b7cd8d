"""Guest registration, confirmation and password recovery."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

from mail import AbstractMailer
from models.guest_token import PURPOSE_REGISTER, PURPOSE_RESET, GuestToken
from models.user import ROLE_GUEST, ROLES, User, is_admin_role

from .errors import (
    AlreadyAuthenticated,
    AlreadyRegistered,
    EmailConflict,
    InvalidToken,
    MissingField,
    PendingConfirmation,
    RegistrationClosed,
)
from .events import USER_CONFIRMED, USER_REGISTERED, EventSink
from .messages import CONFIRM_EMAIL, NOTIFY_REGISTRATION, RESET_PASSWORD, MessageComposer
from .session_auth import AbstractSessionAuthenticator
from .settings import GuestSettings
from .token_store import TokenStore
from .user_store import AbstractUserStore
from .validation import UsernameValidator, check_email, check_username

logger = logging.getLogger(__name__)


class GuestAccountService:
    """Self-service registration of guest accounts."""

    def __init__(
        self,
        settings: GuestSettings,
        user_store: AbstractUserStore,
        token_store: TokenStore,
        sessions: AbstractSessionAuthenticator,
        mailer: AbstractMailer,
        composer: MessageComposer,
        events: EventSink,
        username_validator: UsernameValidator | None = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.settings = settings
        self.user_store = user_store
        self.token_store = token_store
        self.sessions = sessions
        self.mailer = mailer
        self.composer = composer
        self.events = events
        self.username_validator = username_validator
        self.clock = clock

    def registration_role(self, requested: str | None = None) -> str:
        """Return the role of a new account.

        A requested role is honored only when it is explicitly allowed and is
        not an admin role.
        """

        requested = (requested or "").strip()
        if (
            requested
            and requested in self.settings.allowed_roles
            and requested in ROLES
            and not is_admin_role(requested)
        ):
            return requested
        if requested:
            logger.warning("The role %s cannot be requested on registration.", requested)

        role = self.settings.register_role_default or ROLE_GUEST
        if role not in ROLES:
            logger.warning('The role %s is not valid. Role "guest" is used instead.', role)
            return ROLE_GUEST
        if is_admin_role(role):
            logger.warning(
                'The role %s is an admin role and cannot be used for registering. '
                'Role "guest" is used instead.',
                role,
            )
            return ROLE_GUEST
        return role

    def _check_existing(self, email: str) -> None:
        """Raise the error matching an existing registration for the email."""

        user = self.user_store.find_by_email(email)
        if user is None:
            return

        guest_token = self.token_store.find_latest_by_email(email)
        if guest_token is None or guest_token.confirmed:
            raise AlreadyRegistered()

        # The policy may have changed since the registration.
        if self.settings.register_email_is_valid:
            self.token_store.consume(guest_token)
            raise AlreadyRegistered()

        raise PendingConfirmation()

    def _user_settings(self, data: dict[str, Any]) -> dict[str, Any]:
        submitted = data.get("settings")
        if not isinstance(submitted, dict):
            return {}
        allowed = set(self.settings.user_setting_keys)
        dropped = sorted(set(submitted) - allowed)
        if dropped:
            logger.warning("Ignored user settings on registration: %s", ", ".join(dropped))
        return {key: value for key, value in submitted.items() if key in allowed}

    def register(self, data: dict[str, Any], site_slug: str | None = None) -> User:
        """Create a guest account from submitted data."""

        if self.sessions.has_identity():
            raise AlreadyAuthenticated()
        if self.settings.is_closed:
            raise RegistrationClosed()

        email = check_email(data.get("email"))
        password = data.get("password") or ""
        if not password.strip():
            raise MissingField("password")

        self._check_existing(email)
        check_username(self.username_validator, data.get("username"))

        fields = {
            "email": email,
            "name": (data.get("name") or data.get("username") or email).strip(),
            "password": password,
            "role": self.registration_role(data.get("role")),
            "is_active": self.settings.is_open,
        }
        try:
            user = self.user_store.create(fields)
            for key, value in self._user_settings(data).items():
                user.set_setting(key, value)
            guest_token = self.token_store.create(
                user,
                short=self.settings.short_tokens,
                purpose=PURPOSE_REGISTER,
            )
        except EmailConflict as exc:
            # Another request registered the same email first.
            logger.info("Concurrent registration detected for %s", email)
            raise AlreadyRegistered() from exc

        logger.info(
            "Guest %s registered (mode: %s, active: %s)",
            user.email,
            self.settings.registration_mode,
            user.is_active,
        )

        if self.settings.register_email_is_valid:
            self.token_store.consume(guest_token)
        else:
            self.send_confirmation(user, guest_token, site_slug)

        self.notify_registration(user)
        self.events.emit(USER_REGISTERED, user)
        return user

    def send_confirmation(
        self, user: User, guest_token: GuestToken, site_slug: str | None = None
    ) -> bool:
        subject, body = self.composer.compose(
            CONFIRM_EMAIL,
            site_slug=site_slug,
            guest_token=guest_token,
            user_email=user.email,
            user_name=user.name,
        )
        sent = self.mailer.send([user.email], subject, body)
        if not sent:
            logger.error("The confirmation email could not be sent to %s", user.email)
        return sent

    def notify_registration(self, user: User) -> bool:
        """Inform the configured administrators of a new registration."""

        if not self.settings.notify_register:
            return True
        subject, body = self.composer.compose(
            NOTIFY_REGISTRATION,
            user_email=user.email,
            user_name=user.name,
        )
        sent = self.mailer.send(list(self.settings.notify_register), subject, body)
        if not sent:
            logger.warning("The registration of %s could not be notified", user.email)
        return sent

    def resend_confirmation(self, raw_email: str | None, site_slug: str | None = None) -> None:
        """Send a new confirmation link to a pending registration.

        The reply is the same whether or not a registration is pending.
        """

        email = check_email(raw_email)
        user = self.user_store.find_by_email(email)
        if user is None:
            return
        guest_token = self.token_store.find_latest_by_email(email)
        if guest_token is None or guest_token.confirmed or guest_token.email != user.email:
            return
        fresh = self.token_store.create(
            user, short=self.settings.short_tokens, purpose=PURPOSE_REGISTER
        )
        self.send_confirmation(user, fresh, site_slug)

    def confirm(self, code: str | None) -> User:
        """Confirm a registration with its token."""

        guest_token = self.token_store.find_by_token(code)
        if guest_token is None or guest_token.purpose != PURPOSE_REGISTER:
            raise InvalidToken()

        user = guest_token.user
        if guest_token.confirmed:
            # A used link changes nothing, the activation included.
            return user

        self.token_store.consume(guest_token)
        if self.settings.is_open and not user.is_active:
            user.is_active = True
            self.user_store.save(user)

        logger.info("Registration of %s confirmed", user.email)
        self.events.emit(USER_CONFIRMED, user)
        return user

    def forgot_password(self, raw_email: str | None, site_slug: str | None = None) -> None:
        """Send a password reset link to an existing account.

        Unknown, inactive and external accounts get the same silent reply.
        """

        email = check_email(raw_email)
        user = self.user_store.find_by_email(email)
        if user is None or not user.is_active or user.is_external:
            logger.info("Password reset requested for an unavailable account")
            return

        guest_token = self.token_store.create(
            user, short=self.settings.short_tokens, purpose=PURPOSE_RESET
        )
        subject, body = self.composer.compose(
            RESET_PASSWORD,
            site_slug=site_slug,
            guest_token=guest_token,
            user_email=user.email,
            user_name=user.name,
        )
        if not self.mailer.send([user.email], subject, body):
            logger.error("The password reset email could not be sent to %s", user.email)

    def find_reset_token(self, code: str | None) -> GuestToken:
        guest_token = self.token_store.find_by_token(code)
        if (
            guest_token is None
            or guest_token.purpose != PURPOSE_RESET
            or guest_token.confirmed
            or guest_token.created + self.settings.reset_token_ttl < self.clock()
        ):
            raise InvalidToken()
        return guest_token

    def reset_password(self, code: str | None, new_password: str | None) -> User:
        """Set a new password with a reset token, consuming the token."""

        if not (new_password or "").strip():
            raise MissingField("password")
        guest_token = self.find_reset_token(code)

        user = guest_token.user
        user.set_password(new_password)
        guest_token.confirmed = True
        self.user_store.save(user)
        logger.info("Password of %s reset", user.email)
        return user
