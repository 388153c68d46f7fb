# tests/test_errors.py
from conftest import auth_header, make_user


def test_unknown_route_uses_the_error_body(client):
    res = client.get("/api/v1/nowhere")

    assert res.status_code == 404
    assert res.json() == {"status": "fail", "message": "Can't find /api/v1/nowhere on this server!"}


def test_route_level_errors_share_the_error_body(client, db):
    user = make_user(db)

    missing = client.get("/api/v1/tours/9999")
    assert missing.json() == {"status": "fail", "message": "No tour found with that ID"}

    forbidden = client.get("/logs", headers=auth_header(user))
    assert forbidden.status_code == 403
    assert forbidden.json() == {"status": "fail", "message": "You do not have permission to perform this action"}


def test_unauthorized_keeps_bearer_challenge(client):
    res = client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert res.status_code == 401
    assert res.headers["www-authenticate"] == "Bearer"
    assert res.json()["status"] == "fail"
