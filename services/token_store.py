"""Creation, lookup and consumption of guest tokens."""

from __future__ import annotations

import base64
import logging
import secrets
from datetime import datetime
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.guest_token import CONFIRMATION_PURPOSES, PURPOSE_REGISTER, GuestToken
from models.user import User

from .errors import StorageError
from .user_store import commit_session, normalize_email

logger = logging.getLogger(__name__)

SHORT_TOKEN_MIN = 102030
SHORT_TOKEN_MAX = 989796
LONG_TOKEN_LENGTH = 10
LONG_TOKEN_BYTES = 16


class SystemRandomSource:
    """Cryptographically secure randomness."""

    def token_bytes(self, size: int) -> bytes:
        return secrets.token_bytes(size)

    def randint(self, low: int, high: int) -> int:
        return low + secrets.randbelow(high - low + 1)


class TokenStore:
    """Guest tokens backed by the ``guest_tokens`` table."""

    def __init__(
        self,
        session=None,
        random_source=None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.session = session or db.session
        self.random_source = random_source or SystemRandomSource()
        self.clock = clock

    def _long_token(self) -> str:
        raw = base64.b64encode(self.random_source.token_bytes(LONG_TOKEN_BYTES)).decode("ascii")
        for char in "+/-=":
            raw = raw.replace(char, "")
        return raw[:LONG_TOKEN_LENGTH]

    def _short_token(self) -> str:
        return "%06d" % self.random_source.randint(SHORT_TOKEN_MIN, SHORT_TOKEN_MAX)

    def generate(self, short: bool = False) -> str:
        """Return a fresh token string; short codes are unique in storage."""

        if not short:
            return self._long_token()

        code = self._short_token()
        # Storage is queried for each candidate: concurrent requests may pick
        # the same code.
        while self.find_by_token(code) is not None:
            logger.debug("Short token collision, generating another one")
            code = self._short_token()
        return code

    def create(
        self,
        user: User,
        identifier: str | None = None,
        short: bool = False,
        purpose: str = PURPOSE_REGISTER,
    ) -> GuestToken:
        """Create and save a token for the user.

        ``identifier`` defaults to the user email; for an email change it is
        the new email.
        """

        code = self.generate(short=short)
        guest_token = GuestToken(
            email=normalize_email(identifier) or user.email,
            user=user,
            token=code,
            purpose=purpose,
            confirmed=False,
            created=self.clock(),
        )

        if user.id is None:
            self.session.add(user)
        self.session.add(guest_token)
        commit_session(self.session)
        return guest_token

    def find_latest_by_email(
        self,
        email: str,
        purposes: tuple[str, ...] = CONFIRMATION_PURPOSES,
    ) -> GuestToken | None:
        """Return the most recent token for the email among the purposes."""

        email = normalize_email(email)
        if not email:
            return None
        try:
            return (
                GuestToken.query.filter(
                    GuestToken.email == email,
                    GuestToken.purpose.in_(purposes),
                )
                .order_by(GuestToken.id.desc())
                .first()
            )
        except SQLAlchemyError as exc:
            raise StorageError() from exc

    def find_by_token(self, code: str | None) -> GuestToken | None:
        code = (code or "").strip()
        if not code:
            return None
        try:
            return (
                GuestToken.query.filter_by(token=code)
                .order_by(GuestToken.id.desc())
                .first()
            )
        except SQLAlchemyError as exc:
            raise StorageError() from exc

    def consume(self, guest_token: GuestToken) -> None:
        """Mark the token confirmed; confirming twice is a no-op."""

        if guest_token.confirmed:
            return
        guest_token.confirmed = True
        self.session.add(guest_token)
        commit_session(self.session)
