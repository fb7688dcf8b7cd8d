"""GuestToken model definition."""

from datetime import datetime

from . import db


PURPOSE_REGISTER = "register"
PURPOSE_EMAIL = "email"
PURPOSE_RESET = "reset"

TOKEN_PURPOSES = (PURPOSE_REGISTER, PURPOSE_EMAIL, PURPOSE_RESET)

# Tokens whose state decides whether an email is confirmed.
CONFIRMATION_PURPOSES = (PURPOSE_REGISTER, PURPOSE_EMAIL)


class GuestToken(db.Model):
    """A token proving control of an email (or another identifier)."""

    __tablename__ = "guest_tokens"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(190), nullable=False, index=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token = db.Column(db.String(255), nullable=False, index=True)
    purpose = db.Column(
        db.String(16),
        nullable=False,
        default=PURPOSE_REGISTER,
        server_default=db.text("'register'"),
    )
    confirmed = db.Column(
        db.Boolean,
        nullable=False,
        default=False,
        server_default=db.false(),
    )
    created = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    user = db.relationship("User", back_populates="tokens")

    def __repr__(self) -> str:
        return (
            f"<GuestToken id={self.id} email={self.email} "
            f"purpose={self.purpose} confirmed={self.confirmed}>"
        )

    def to_dict(self) -> dict:
        """Serialize the token metadata, without the secret value."""

        return {
            "id": self.id,
            "email": self.email,
            "user_id": self.user_id,
            "purpose": self.purpose,
            "confirmed": self.confirmed,
            "created": self.created.isoformat() if self.created else None,
        }
