"""End-to-end tests of the guest HTTP routes."""

from __future__ import annotations

from flask import Flask
from flask.testing import FlaskClient

from models import db
from models.guest_token import GuestToken
from models.user import User
from services.session_auth import IDENTITY_KEY, REDIRECT_KEY

from conftest import create_user

PASSWORD = "GuestPass123"


def _register(client: FlaskClient, email: str = "guest@example.com", **extra):
    return client.post(
        "/api/guest/register", json={"email": email, "password": PASSWORD, **extra}
    )


def _login(client: FlaskClient, email: str = "guest@example.com", password: str = PASSWORD, **extra):
    return client.post(
        "/api/guest/login", json={"email": email, "password": password, **extra}
    )


def _latest_token(app: Flask, email: str) -> str:
    with app.app_context():
        return GuestToken.query.filter_by(email=email).order_by(GuestToken.id.desc()).first().token


def _activate(app: Flask, email: str) -> None:
    with app.app_context():
        user = User.query.filter_by(email=email).one()
        user.is_active = True
        db.session.commit()


def _agreed_member(app: Flask, email: str = "member@example.com", **fields) -> None:
    with app.app_context():
        user = create_user(email, PASSWORD, **fields)
        user.set_setting("agreed_terms", True)
        db.session.commit()


def test_moderated_registration_flow(app: Flask, client: FlaskClient, mailer):
    response = _register(client, name="Guest")
    assert response.status_code == 201
    payload = response.get_json()
    assert payload["status"] == "success"
    assert payload["data"]["user"]["email"] == "guest@example.com"
    assert payload["data"]["user"]["is_active"] is False
    assert "confirmation" in payload["message"]
    assert mailer.messages_to("guest@example.com")

    response = _login(client)
    assert response.status_code == 401
    assert response.get_json()["code"] == "unconfirmed_registration"

    code = _latest_token(app, "guest@example.com")
    response = client.get(f"/api/guest/confirm?token={code}")
    assert response.status_code == 200
    assert "moderation" in response.get_json()["message"]

    response = _login(client)
    assert response.status_code == 401
    assert response.get_json()["code"] == "under_moderation"

    _activate(app, "guest@example.com")
    response = _login(client, site="main")
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["user"]["email"] == "guest@example.com"
    assert data["redirect_url"] == "/s/main"


def test_open_registration_logs_in_immediately(make_app):
    app = make_app(GUEST_REGISTRATION_MODE="open")
    client = app.test_client()

    assert _register(client).status_code == 201
    response = _login(client)
    assert response.status_code == 200


def test_closed_registration(make_app):
    client = make_app(GUEST_REGISTRATION_MODE="closed").test_client()

    response = _register(client)

    assert response.status_code == 403
    payload = response.get_json()
    assert payload["status"] == "fail"
    assert payload["code"] == "registration_closed"
    assert payload["request_id"]


def test_register_twice(client: FlaskClient):
    _register(client)
    response = _register(client)

    assert response.status_code == 409
    assert response.get_json()["code"] == "pending_confirmation"


def test_register_invalid_email(client: FlaskClient):
    response = _register(client, email="nope")

    assert response.status_code == 400
    assert response.get_json()["code"] == "invalid_email"


def test_register_requires_json(client: FlaskClient):
    response = client.post("/api/guest/register", data="email=a", content_type="text/plain")

    assert response.status_code == 400
    assert response.get_json()["error"] == "Bad Request"


def test_register_while_logged_in(app: Flask, client: FlaskClient):
    _agreed_member(app)
    _login(client, "member@example.com")

    response = _register(client, "other@example.com")

    assert response.status_code == 400
    assert response.get_json()["code"] == "already_authenticated"


def test_login_errors_share_the_same_reply(app: Flask, client: FlaskClient):
    _agreed_member(app)

    unknown = _login(client, "nobody@example.com")
    wrong = _login(client, "member@example.com", "wrong-password")

    assert unknown.status_code == wrong.status_code == 401
    assert unknown.get_json()["code"] == wrong.get_json()["code"] == "invalid_credentials"
    assert unknown.get_json()["message"] == wrong.get_json()["message"]


def test_login_missing_password(client: FlaskClient):
    response = client.post("/api/guest/login", json={"email": "member@example.com"})

    assert response.status_code == 400
    assert response.get_json()["code"] == "missing_field"


def test_login_redirect_ignores_remote_urls(app: Flask, client: FlaskClient):
    _agreed_member(app)

    response = _login(client, "member@example.com", redirect_url="https://evil.example.org/")
    assert response.get_json()["data"]["redirect_url"] == "/s/main"

    client.post("/api/guest/logout")
    response = _login(client, "member@example.com", redirect_url="/s/main/page/news")
    assert response.get_json()["data"]["redirect_url"] == "/s/main/page/news"


def test_me_and_logout(app: Flask, client: FlaskClient):
    _agreed_member(app)

    assert client.get("/api/guest/me").status_code == 401

    _login(client, "member@example.com")
    response = client.get("/api/guest/me")
    assert response.status_code == 200
    assert response.get_json()["data"]["user"]["agreed_terms"] is True

    assert client.post("/api/guest/logout").status_code == 200
    assert client.get("/api/guest/me").status_code == 401


def test_update_me(app: Flask, client: FlaskClient):
    _agreed_member(app)
    _login(client, "member@example.com")

    response = client.patch(
        "/api/guest/me",
        json={"name": "Renamed", "role": "global_admin", "current_password": PASSWORD, "new_password": "NewPass456"},
    )

    assert response.status_code == 200
    user = response.get_json()["data"]["user"]
    assert user["name"] == "Renamed"
    assert user["role"] == "guest"

    client.post("/api/guest/logout")
    assert _login(client, "member@example.com", "NewPass456").status_code == 200


def test_update_me_with_wrong_current_password(app: Flask, client: FlaskClient):
    _agreed_member(app)
    _login(client, "member@example.com")

    response = client.patch(
        "/api/guest/me", json={"current_password": "wrong", "new_password": "NewPass456"}
    )

    assert response.status_code == 401
    assert response.get_json()["message"] == "The current password is invalid."


def test_email_change_flow(app: Flask, client: FlaskClient, mailer):
    _agreed_member(app)
    _login(client, "member@example.com")

    response = client.post("/api/guest/update-email", json={"email": "renamed@example.com"})
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["email"] == "renamed@example.com"
    assert data["purpose"] == "email"
    assert data["confirmed"] is False
    assert "token" not in data
    assert mailer.messages_to("renamed@example.com")

    response = client.post("/api/guest/update-email", json={"email": "member@example.com"})
    assert response.get_json()["code"] == "email_unchanged"

    code = _latest_token(app, "renamed@example.com")
    response = client.post("/api/guest/validate-email", json={"token": code})
    assert response.status_code == 200
    assert response.get_json()["data"]["user"]["email"] == "renamed@example.com"


def test_password_reset_flow(app: Flask, client: FlaskClient, mailer):
    _agreed_member(app)

    response = client.post("/api/guest/forgot-password", json={"email": "member@example.com"})
    assert response.status_code == 200
    unknown = client.post("/api/guest/forgot-password", json={"email": "nobody@example.com"})
    assert unknown.get_json()["message"] == response.get_json()["message"]
    assert len(mailer.outbox) == 1

    code = _latest_token(app, "member@example.com")
    response = client.post("/api/guest/reset-password", json={"token": code, "password": "NewPass456"})
    assert response.status_code == 200

    response = client.post("/api/guest/reset-password", json={"token": code, "password": "Other789"})
    assert response.status_code == 400
    assert response.get_json()["code"] == "invalid_token"

    assert _login(client, "member@example.com", "NewPass456").status_code == 200


def test_resend_confirmation(client: FlaskClient, mailer):
    _register(client)

    response = client.post("/api/guest/resend-confirmation", json={"email": "guest@example.com"})

    assert response.status_code == 200
    assert len(mailer.messages_to("guest@example.com")) == 2


def test_terms_agreement_is_enforced(app: Flask, client: FlaskClient):
    with app.app_context():
        create_user("member@example.com", PASSWORD)
    _login(client, "member@example.com")

    response = client.get("/api/guest/me")
    assert response.status_code == 403
    payload = response.get_json()
    assert payload["code"] == "terms_not_agreed"
    assert payload["data"]["redirect_url"] == "/s/main/guest/accept-terms"

    response = client.get("/s/other/guest/reset-password")
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/s/other/guest/accept-terms")

    response = client.post("/api/guest/accept-terms", json={"accept": False})
    assert response.status_code == 403

    response = client.post("/api/guest/accept-terms", json={"accept": True})
    assert response.status_code == 200
    assert response.get_json()["data"]["user"]["agreed_terms"] is True
    assert client.get("/api/guest/me").status_code == 200


def test_session_token_authenticates_requests(app: Flask, client: FlaskClient):
    _agreed_member(app)
    _login(client, "member@example.com")
    token = client.get("/api/guest/session-token").get_json()["data"]["access_token"]

    other = app.test_client()
    response = other.get("/api/guest/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.get_json()["data"]["user"]["email"] == "member@example.com"


def test_site_login_redirects(app: Flask, client: FlaskClient):
    _agreed_member(app)

    response = client.get("/s/main/guest/login?redirect_url=/s/main/page/news")
    assert response.status_code == 200
    with client.session_transaction() as sess:
        assert sess[REDIRECT_KEY] == "/s/main/page/news"

    response = client.post(
        "/s/main/guest/login", data={"email": "member@example.com", "password": PASSWORD}
    )
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/s/main/page/news")
    with client.session_transaction() as sess:
        assert IDENTITY_KEY in sess
        assert REDIRECT_KEY not in sess


def test_site_login_ignores_remote_pending_redirect(app: Flask, client: FlaskClient):
    _agreed_member(app)

    client.get("/s/main/guest/login?redirect_url=https://evil.example.org/")
    with client.session_transaction() as sess:
        assert REDIRECT_KEY not in sess


def test_site_login_failure_flashes(client: FlaskClient):
    response = client.post(
        "/s/main/guest/login", data={"email": "nobody@example.com", "password": "x"}
    )

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/s/main/guest/login")
    with client.session_transaction() as sess:
        assert sess["_flashes"][0] == ("error", "Email or password invalid.")


def test_site_confirm_email(app: Flask, client: FlaskClient):
    _register(client)
    code = _latest_token(app, "guest@example.com")

    response = client.get(f"/s/main/guest/confirm-email?token={code}")

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/s/main")
    with app.app_context():
        assert GuestToken.query.filter_by(token=code).one().confirmed is True


def test_site_logout_goes_to_site(app: Flask, client: FlaskClient):
    _agreed_member(app)
    _login(client, "member@example.com")

    response = client.get("/s/main/guest/logout")

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/s/main")
    assert client.get("/api/guest/me").status_code == 401


def test_site_login_rejects_redirect_hidden_by_control_characters(app: Flask, client: FlaskClient):
    _agreed_member(app)

    response = client.post(
        "/s/main/guest/login?redirect_url=/%09/evil.example.org",
        data={"email": "member@example.com", "password": PASSWORD},
    )

    assert response.status_code == 302
    assert "evil" not in response.headers["Location"]
    assert response.headers["Location"].endswith("/s/main")


def test_api_login_rejects_redirect_hidden_by_newline(app: Flask, client: FlaskClient):
    _agreed_member(app)

    response = _login(client, "member@example.com", redirect_url="/\n/evil.example.org")

    assert response.get_json()["data"]["redirect_url"] == "/s/main"
