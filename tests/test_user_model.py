"""Tests for the User model helpers."""

from models import db
from models.guest_token import GuestToken
from models.user import User, is_admin_role
from models.user_setting import UserSetting


def test_user_defaults_and_password(app):
    with app.app_context():
        user = User(email="helper@example.com", name="Helper")
        user.set_password("password123")
        db.session.add(user)
        db.session.commit()

        assert user.is_active is False
        assert user.role == "guest"
        assert user.is_guest is True
        assert user.is_external is False
        assert user.check_password("password123")
        assert not user.check_password("wrong")


def test_user_without_password_cannot_log_in():
    assert User(email="sso@example.com").check_password("anything") is False


def test_user_settings(app):
    with app.app_context():
        user = User(email="helper@example.com", name="Helper")
        db.session.add(user)
        user.set_setting("locale", "fr")
        db.session.commit()

        user.set_setting("locale", "en")
        db.session.commit()
        db.session.refresh(user)

        assert user.get_setting("locale") == "en"
        assert user.get_setting("missing", "default") == "default"
        assert UserSetting.query.count() == 1


def test_deleting_user_removes_tokens_and_settings(app, services):
    with app.app_context():
        user = User(email="helper@example.com", name="Helper", is_active=True)
        user.set_setting("agreed_terms", True)
        db.session.add(user)
        db.session.commit()
        services.token_store.create(user)

        services.user_store.delete(user)

        assert GuestToken.query.count() == 0
        assert UserSetting.query.count() == 0


def test_admin_roles():
    assert is_admin_role("global_admin")
    assert is_admin_role("site_admin")
    assert not is_admin_role("editor")
    assert not is_admin_role("guest")
    assert not is_admin_role(None)
