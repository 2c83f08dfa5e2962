from __future__ import annotations

from app.core import config as app_config
from app.models.user import User
from app.services import session as session_service


def test_auth_register_verify_login_me_logout(client, db_session, sent_emails):
    email = "NewUser@Example.com"
    password = "Password_12345"

    res = client.post("/auth/register", json={"email": email, "password": password, "name": "New User"})
    assert res.status_code == 201
    assert "message" in res.json()

    # Stored lower-cased, not verified yet
    u = db_session.query(User).filter(User.email == "newuser@example.com").first()
    assert u is not None
    assert u.verified is False
    assert u.password_hash != password

    assert len(sent_emails) == 1
    assert sent_emails[0]["email"] == "newuser@example.com"

    # Unverified => 403
    res2 = client.post("/auth/login", json={"email": email, "password": password})
    assert res2.status_code == 403

    # Verify via the link token
    res3 = client.get("/auth/verify", params={"token": sent_emails[0]["token"]})
    assert res3.status_code == 200
    assert res3.headers["content-type"].startswith("text/html")
    assert f"{app_config.settings.APP_URL}/?verified=1" in res3.text

    db_session.expire_all()
    assert db_session.query(User).filter(User.email == "newuser@example.com").one().verified is True

    # Login sets the session cookie
    res4 = client.post("/auth/login", json={"email": email, "password": password})
    assert res4.status_code == 200
    body = res4.json()
    assert body["user"]["email"] == "newuser@example.com"
    assert body["user"]["name"] == "New User"
    set_cookie = res4.headers.get("set-cookie", "")
    assert session_service.cookie_name(app_config.settings) in set_cookie
    assert "httponly" in set_cookie.lower()
    assert "samesite=lax" in set_cookie.lower()

    res5 = client.get("/auth/me")
    assert res5.status_code == 200
    assert res5.json()["user"] == {
        "id": body["user"]["id"],
        "name": "New User",
        "email": "newuser@example.com",
        "verified": True,
    }

    # Logout clears cookie
    res6 = client.post("/auth/logout")
    assert res6.status_code == 200
    assert res6.json() == {"ok": True}
    client.cookies.clear()
    assert client.get("/auth/me").status_code == 401


def test_register_duplicate_email_is_409(client, verified_user, sent_emails, user_password):
    res = client.post(
        "/auth/register",
        json={"email": "ANA@example.com", "password": user_password, "name": "Ana"},
    )
    assert res.status_code == 409
    assert res.json()["error"] == "CONFLICT"
    assert sent_emails == []


def test_register_validation_is_400(client, sent_emails, user_password):
    res = client.post("/auth/register", json={"email": "not-an-email", "password": user_password, "name": "X"})
    assert res.status_code == 400

    res = client.post("/auth/register", json={"email": "x@example.com", "password": "123", "name": "X"})
    assert res.status_code == 400

    res = client.post("/auth/register", json={"email": "x@example.com", "password": user_password, "name": ""})
    assert res.status_code == 400
    assert sent_emails == []


def test_register_rolls_back_when_email_fails(client, db_session, monkeypatch, user_password):
    from app.services.email import EmailDeliveryError

    def _boom(settings, to_email, token):  # noqa: ARG001
        raise EmailDeliveryError("smtp down")

    monkeypatch.setattr("app.services.accounts.send_verification_email", _boom)

    res = client.post(
        "/auth/register",
        json={"email": "fail@example.com", "password": user_password, "name": "Fail"},
    )
    assert res.status_code == 500
    assert "smtp down" not in res.text
    assert db_session.query(User).filter(User.email == "fail@example.com").first() is None


def test_login_errors(client, verified_user, user_password):
    res = client.post("/auth/login", json={"email": "nobody@example.com", "password": "whatever"})
    assert res.status_code == 404

    res = client.post("/auth/login", json={"email": "ana@example.com", "password": "wrong-password"})
    assert res.status_code == 401

    res = client.post("/auth/login", json={"email": "ANA@example.com", "password": user_password})
    assert res.status_code == 200


def test_me_requires_valid_session(client):
    client.cookies.clear()
    assert client.get("/auth/me").status_code == 401

    client.cookies.set(session_service.cookie_name(app_config.settings), "not-a-jwt")
    res = client.get("/auth/me")
    assert res.status_code == 401
    assert res.json()["error"] == "UNAUTHORIZED"


def test_me_rejects_expired_session(client, verified_user, monkeypatch):
    from app.core.security import create_access_token

    monkeypatch.setattr(app_config.settings, "ACCESS_TOKEN_EXPIRE_MINUTES", -1)
    token = create_access_token(
        app_config.settings, user_id=verified_user.id, email=verified_user.email, name=verified_user.name
    )
    client.cookies.set(session_service.cookie_name(app_config.settings), token)
    assert client.get("/auth/me").status_code == 401


def test_resend_verification(client, db_session, sent_emails, verified_user):
    res = client.post("/auth/resend", json={"email": "missing@example.com"})
    assert res.status_code == 404

    res = client.post("/auth/resend", json={"email": verified_user.email})
    assert res.status_code == 400

    unverified = User(name="Bea", email="bea@example.com", password_hash="x", verified=False)
    db_session.add(unverified)
    db_session.commit()

    res = client.post("/auth/resend", json={"email": "BEA@example.com"})
    assert res.status_code == 200
    assert [m["email"] for m in sent_emails] == ["bea@example.com"]
