"""Per-user settings stored as JSON values."""

from . import db


class UserSetting(db.Model):
    __tablename__ = "user_settings"

    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    name = db.Column(db.String(190), primary_key=True)
    value = db.Column(db.JSON, nullable=True)

    user = db.relationship("User", back_populates="settings")

    def __repr__(self) -> str:
        return f"<UserSetting user_id={self.user_id} name={self.name}>"
