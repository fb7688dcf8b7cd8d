"""User persistence used by the guest services."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import db
from models.user import User

from .errors import EmailConflict, StorageError


def normalize_email(raw_email: str | None) -> str:
    """Normalize an email string by stripping whitespace and lowering case."""

    return (raw_email or "").strip().lower()


def flush_session(session) -> None:
    """Flush pending changes, translating database failures."""

    try:
        session.flush()
    except IntegrityError as exc:
        session.rollback()
        raise EmailConflict() from exc
    except SQLAlchemyError as exc:
        session.rollback()
        raise StorageError() from exc


def commit_session(session) -> None:
    """Commit the session, translating database failures."""

    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise EmailConflict() from exc
    except SQLAlchemyError as exc:
        session.rollback()
        raise StorageError() from exc


class AbstractUserStore(ABC):
    """Interface of the host user storage."""

    @abstractmethod
    def find_by_email(self, email: str) -> User | None:
        """Return the user owning the email, if any."""

    @abstractmethod
    def get(self, user_id: int) -> User | None:
        """Return the user with the given id, if any."""

    @abstractmethod
    def create(self, fields: dict[str, Any]) -> User:
        """Create a user from fields; the password is hashed when present."""

    @abstractmethod
    def save(self, user: User) -> None:
        """Persist pending changes of a user."""

    @abstractmethod
    def delete(self, user: User) -> None:
        """Delete a user and, with it, its tokens and settings."""

    @abstractmethod
    def verify_password(self, user: User, plaintext: str) -> bool:
        """Check a password against the stored hash in constant time."""


class SqlAlchemyUserStore(AbstractUserStore):
    """Store users through the Flask-SQLAlchemy session."""

    def __init__(self, session=None):
        self.session = session or db.session

    def find_by_email(self, email: str) -> User | None:
        email = normalize_email(email)
        if not email:
            return None
        try:
            # Case-insensitive lookup
            return User.query.filter(func.lower(User.email) == email).first()
        except SQLAlchemyError as exc:
            raise StorageError() from exc

    def get(self, user_id: int) -> User | None:
        try:
            return self.session.get(User, user_id)
        except SQLAlchemyError as exc:
            raise StorageError() from exc

    def create(self, fields: dict[str, Any]) -> User:
        fields = dict(fields)
        password = fields.pop("password", None)
        fields["email"] = normalize_email(fields.get("email"))

        user = User(**fields)
        if password:
            user.set_password(password)

        self.session.add(user)
        flush_session(self.session)
        return user

    def save(self, user: User) -> None:
        self.session.add(user)
        commit_session(self.session)

    def delete(self, user: User) -> None:
        self.session.delete(user)
        commit_session(self.session)

    def verify_password(self, user: User, plaintext: str) -> bool:
        return user.check_password(plaintext or "")
