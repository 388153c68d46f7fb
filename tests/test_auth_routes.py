# tests/test_auth_routes.py
from datetime import datetime, timedelta, timezone

from conftest import DEFAULT_PASSWORD, auth_header, make_user
from models.log import Log
from models.users import User
from utils.credentials import create_password_reset_token
from utils.hashing import verify_password
from utils.tokenJWT import create_access_token

SIGNUP = {
    "name": "Laura Wilson",
    "email": "Laura@Example.com",
    "password": "pass1234",
    "password_confirm": "pass1234",
}


def _old_token(user):
    # Issued well before any password change made during the test
    issued_at = datetime.now(timezone.utc) - timedelta(hours=1)
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)}, issued_at=issued_at)}"}


def test_signup_creates_plain_user_and_returns_token(client, db):
    res = client.post("/api/v1/users/signup", json={**SIGNUP, "role": "admin"})

    assert res.status_code == 201
    body = res.json()
    assert body["access_token"]
    assert body["user"]["email"] == "laura@example.com"
    assert body["user"]["role"] == "user"
    assert "password_hash" not in body["user"]

    stored = db.query(User).filter(User.email == "laura@example.com").one()
    assert stored.password_hash != "pass1234"
    assert verify_password("pass1234", stored.password_hash)
    assert stored.password_changed_at is None


def test_signup_rejects_duplicate_email_case_insensitive(client):
    assert client.post("/api/v1/users/signup", json=SIGNUP).status_code == 201

    res = client.post("/api/v1/users/signup", json={**SIGNUP, "email": "LAURA@example.com"})

    assert res.status_code == 400
    assert res.json()["message"] == "Email already registered"


def test_signup_rejects_mismatched_confirmation(client):
    res = client.post("/api/v1/users/signup", json={**SIGNUP, "password_confirm": "pass4321"})

    assert res.status_code == 400
    assert res.json() == {"status": "fail", "message": "Passwords are not the same!"}


def test_signup_rejects_short_password(client):
    res = client.post("/api/v1/users/signup", json={**SIGNUP, "password": "short", "password_confirm": "short"})
    assert res.status_code == 400
    assert res.json()["status"] == "fail"


def test_signup_rejects_blank_name_and_trims_padding(client):
    blank = client.post("/api/v1/users/signup", json={**SIGNUP, "name": "   "})
    assert blank.status_code == 422

    padded = client.post("/api/v1/users/signup", json={**SIGNUP, "name": "  Laura Wilson  "})
    assert padded.status_code == 201
    assert padded.json()["user"]["name"] == "Laura Wilson"


def test_update_me_rejects_blank_name(client, db):
    user = make_user(db)

    res = client.patch("/api/v1/users/update-me", headers=auth_header(user), json={"name": "  "})

    assert res.status_code == 422


def test_login_and_me(client, db):
    make_user(db)

    res = client.post("/api/v1/users/login", json={"email": "jonas@example.com", "password": DEFAULT_PASSWORD})
    assert res.status_code == 200
    token = res.json()["access_token"]

    me = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "jonas@example.com"


def test_login_failures_are_logged(client, db):
    user = make_user(db)

    res = client.post("/api/v1/users/login", json={"email": "jonas@example.com", "password": "wrong-pass"})
    assert res.status_code == 401
    assert res.json()["message"] == "Incorrect email or password"

    entry = db.query(Log).filter(Log.action == "LOGIN").one()
    assert entry.status == "FAIL"
    assert entry.user_id == user.id


def test_inactive_user_cannot_log_in_or_use_old_token(client, db):
    user = make_user(db, active=False)

    res = client.post("/api/v1/users/login", json={"email": "jonas@example.com", "password": DEFAULT_PASSWORD})
    assert res.status_code == 401

    me = client.get("/api/v1/users/me", headers=auth_header(user))
    assert me.status_code == 401
    assert me.json()["message"] == "The user belonging to this token no longer exists."


def test_garbage_token_is_unauthorized(client):
    res = client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401


def test_update_password_invalidates_earlier_tokens(client, db):
    user = make_user(db)
    old = _old_token(user)

    res = client.patch(
        "/api/v1/users/update-my-password",
        headers=old,
        json={"password_current": DEFAULT_PASSWORD, "password": "newpass99", "password_confirm": "newpass99"},
    )
    assert res.status_code == 200
    new_token = res.json()["access_token"]

    stale = client.get("/api/v1/users/me", headers=old)
    assert stale.status_code == 401
    assert stale.json()["message"] == "User recently changed password! Please log in again."

    fresh = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {new_token}"})
    assert fresh.status_code == 200

    login = client.post("/api/v1/users/login", json={"email": "jonas@example.com", "password": "newpass99"})
    assert login.status_code == 200


def test_update_password_requires_current_password(client, db):
    user = make_user(db)

    res = client.patch(
        "/api/v1/users/update-my-password",
        headers=auth_header(user),
        json={"password_current": "not-it-at-all", "password": "newpass99", "password_confirm": "newpass99"},
    )

    assert res.status_code == 401
    assert res.json()["message"] == "Your current password is wrong."


def test_forgot_password_stores_hashed_token(client, db):
    make_user(db)

    res = client.post("/api/v1/users/forgot-password", json={"email": "jonas@example.com"})
    assert res.status_code == 200
    assert res.json() == {"status": "success", "message": "Token sent to email!"}

    db.expire_all()
    stored = db.query(User).filter(User.email == "jonas@example.com").one()
    assert len(stored.password_reset_token) == 64
    assert stored.password_reset_expires is not None

    missing = client.post("/api/v1/users/forgot-password", json={"email": "nobody@example.com"})
    assert missing.status_code == 404


def test_reset_password_flow(client, db):
    user = make_user(db)
    old = _old_token(user)
    raw = create_password_reset_token(user)
    db.commit()

    res = client.patch(f"/api/v1/users/reset-password/{raw}", json={"password": "resetpass1", "password_confirm": "resetpass1"})
    assert res.status_code == 200
    assert res.json()["access_token"]

    assert client.get("/api/v1/users/me", headers=old).status_code == 401

    again = client.patch(f"/api/v1/users/reset-password/{raw}", json={"password": "resetpass2", "password_confirm": "resetpass2"})
    assert again.status_code == 400
    assert again.json() == {"status": "fail", "message": "Token is invalid or has expired"}

    login = client.post("/api/v1/users/login", json={"email": "jonas@example.com", "password": "resetpass1"})
    assert login.status_code == 200


def test_update_me_changes_profile_but_not_role(client, db):
    user = make_user(db)
    make_user(db, email="taken@example.com", name="Other")

    res = client.patch("/api/v1/users/update-me", headers=auth_header(user), json={"name": "Jonas S", "role": "admin"})
    assert res.status_code == 200
    assert res.json()["name"] == "Jonas S"
    assert res.json()["role"] == "user"

    clash = client.patch("/api/v1/users/update-me", headers=auth_header(user), json={"email": "Taken@example.com"})
    assert clash.status_code == 400


def test_delete_me_deactivates_account(client, db):
    user = make_user(db)
    headers = auth_header(user)

    assert client.delete("/api/v1/users/delete-me", headers=headers).status_code == 204
    assert client.get("/api/v1/users/me", headers=headers).status_code == 401

    db.expire_all()
    stored = db.query(User).filter(User.id == user.id).one()
    assert stored.active is False


def test_logs_are_admin_only(client, db):
    user = make_user(db)
    admin = make_user(db, email="admin@example.com", role="admin", name="Admin")
    client.post("/api/v1/users/login", json={"email": "jonas@example.com", "password": DEFAULT_PASSWORD})

    assert client.get("/logs", headers=auth_header(user)).status_code == 403

    res = client.get("/logs", headers=auth_header(admin), params={"action": "LOGIN"})
    assert res.status_code == 200
    body = res.json()
    assert body["total"] == 1
    assert body["items"][0]["user_id"] == user.id
    assert body["items"][0]["user_email"] == "jonas@example.com"

    bad = client.get("/logs", headers=auth_header(admin), params={"date_from": "yesterday"})
    assert bad.status_code == 400
