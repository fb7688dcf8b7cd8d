"""Self-service update of an account by its owner."""

from __future__ import annotations

import logging
from typing import Any

from mail import AbstractMailer
from models import db
from models.guest_token import PURPOSE_EMAIL, GuestToken
from models.user import ROLE_GUEST, User

from .errors import (
    EmailConflict,
    EmailTaken,
    EmailUnchanged,
    ExternalAccount,
    InvalidCredentials,
    InvalidToken,
    MissingField,
)
from .messages import UPDATE_EMAIL, MessageComposer
from .settings import GuestSettings
from .terms import AGREED_TERMS
from .token_store import TokenStore
from .user_store import AbstractUserStore, commit_session
from .validation import check_email

logger = logging.getLogger(__name__)

# Only these fields can be changed through a profile update.
PROFILE_FIELDS = ("name",)


class AccountUpdateService:
    def __init__(
        self,
        settings: GuestSettings,
        user_store: AbstractUserStore,
        token_store: TokenStore,
        mailer: AbstractMailer,
        composer: MessageComposer,
    ):
        self.settings = settings
        self.user_store = user_store
        self.token_store = token_store
        self.mailer = mailer
        self.composer = composer

    def update_profile(self, user: User, fields: dict[str, Any]) -> User:
        """Apply the allow-listed fields and user settings.

        Anything else, role and activation included, is dropped.
        """

        dropped = sorted(key for key in fields if key not in PROFILE_FIELDS and key != "settings")
        if dropped:
            logger.warning(
                "Ignored fields in the profile update of %s: %s", user.email, ", ".join(dropped)
            )

        name = fields.get("name")
        if name is not None:
            name = str(name).strip()
            if not name:
                raise MissingField("name")
            user.name = name

        settings = fields.get("settings")
        if isinstance(settings, dict):
            for key, value in settings.items():
                if key in self.settings.user_setting_keys:
                    user.set_setting(key, value)
                else:
                    logger.warning("Ignored user setting %s for %s", key, user.email)

        self.user_store.save(user)
        return user

    def request_email_change(
        self, user: User, raw_email: str | None, site_slug: str | None = None
    ) -> GuestToken:
        """Send a validation link to the new email; the account keeps its email until then."""

        new_email = check_email(raw_email)
        if new_email == user.email:
            logger.warning("Email change of %s to the same email", user.email)
            raise EmailUnchanged()
        if self.user_store.find_by_email(new_email) is not None:
            raise EmailTaken()

        guest_token = self.token_store.create(
            user, identifier=new_email, short=self.settings.short_tokens, purpose=PURPOSE_EMAIL
        )
        subject, body = self.composer.compose(
            UPDATE_EMAIL,
            site_slug=site_slug,
            guest_token=guest_token,
            user_email=new_email,
            user_name=user.name,
        )
        if not self.mailer.send([new_email], subject, body):
            logger.error("The email validation link could not be sent to %s", new_email)
        return guest_token

    def validate_email(self, code: str | None) -> User:
        """Consume an email change token and move the account to the new email."""

        guest_token = self.token_store.find_by_token(code)
        if guest_token is None or guest_token.purpose != PURPOSE_EMAIL:
            raise InvalidToken()

        user = guest_token.user
        if guest_token.confirmed:
            return user

        owner = self.user_store.find_by_email(guest_token.email)
        if owner is not None and owner.id != user.id:
            raise EmailTaken()

        previous = user.email
        user.email = guest_token.email
        guest_token.confirmed = True
        try:
            self.user_store.save(user)
        except EmailConflict as exc:
            raise EmailTaken() from exc
        logger.info("Email of user #%s changed from %s to %s", user.id, previous, user.email)
        return user

    def change_password(
        self, user: User, current_password: str | None, new_password: str | None
    ) -> None:
        if user.is_external:
            raise ExternalAccount()
        if not (new_password or "").strip():
            raise MissingField("password")
        if not self.user_store.verify_password(user, current_password or ""):
            raise InvalidCredentials("The current password is invalid.")

        user.set_password(new_password)
        self.user_store.save(user)
        logger.info("Password of %s changed", user.email)

    def accept_terms(self, user: User) -> User:
        user.set_setting(AGREED_TERMS, True)
        self.user_store.save(user)
        return user

    def reset_agreements(self, agreed: bool = False) -> int:
        """Set the terms agreement of every guest and return their number."""

        guests = User.query.filter_by(role=ROLE_GUEST).all()
        for guest in guests:
            guest.set_setting(AGREED_TERMS, bool(agreed))
        commit_session(db.session)
        logger.info("Terms agreement set to %s for %d guests", bool(agreed), len(guests))
        return len(guests)
