"""User model definition."""

from datetime import datetime
from typing import Any

from werkzeug.security import check_password_hash, generate_password_hash

from . import db


ROLE_GUEST = "guest"
ROLE_GLOBAL_ADMIN = "global_admin"
ROLE_SITE_ADMIN = "site_admin"

# Roles that may administer the application.
ADMIN_ROLES = (ROLE_GLOBAL_ADMIN, ROLE_SITE_ADMIN)

# Roles sent to the admin area after login.
BACKEND_ROLES = ADMIN_ROLES + ("editor", "reviewer", "author", "researcher")

ROLES = BACKEND_ROLES + (ROLE_GUEST,)

AUTH_SOURCE_LOCAL = "local"


def is_admin_role(role: str | None) -> bool:
    """Return whether the role grants administrative rights."""

    return role in ADMIN_ROLES


class User(db.Model):
    """Represents a user of the host application."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(190), unique=True, nullable=False)
    name = db.Column(db.String(190), nullable=False, default="")
    password_hash = db.Column(db.String(255), nullable=True)
    role = db.Column(db.String(32), nullable=False, default=ROLE_GUEST)
    is_active = db.Column(
        db.Boolean,
        nullable=False,
        default=False,
        server_default=db.false(),
    )
    auth_source = db.Column(
        db.String(32),
        nullable=False,
        default=AUTH_SOURCE_LOCAL,
        server_default=db.text("'local'"),
    )
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    tokens = db.relationship(
        "GuestToken",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="GuestToken.id",
    )
    settings = db.relationship(
        "UserSetting",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def set_password(self, password: str) -> None:
        """Hash and store the password."""

        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""

        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def is_guest(self) -> bool:
        return self.role == ROLE_GUEST

    @property
    def is_external(self) -> bool:
        """Whether the account is authenticated by a third party (SSO, LDAP...)."""

        return (self.auth_source or AUTH_SOURCE_LOCAL) != AUTH_SOURCE_LOCAL

    def get_setting(self, name: str, default: Any = None) -> Any:
        for setting in self.settings:
            if setting.name == name:
                return setting.value
        return default

    def set_setting(self, name: str, value: Any) -> None:
        for setting in self.settings:
            if setting.name == name:
                setting.value = value
                return
        from .user_setting import UserSetting

        self.settings.append(UserSetting(name=name, value=value))

    def to_dict(self) -> dict:
        """Serialize the public fields of the user."""

        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email}>"
