# tests/test_credentials.py
import hashlib
from datetime import datetime, timedelta

import pytest

from conftest import make_user
from models.users import User
from utils.credentials import (
    PASSWORD_CHANGE_SKEW,
    changed_password_after,
    consume_password_reset_token,
    create_password_reset_token,
    issue_password_reset_token,
    set_password,
    to_epoch_seconds,
    utcnow,
)
from utils.errors import AppError
from utils.hashing import get_password_hash, hash_token, verify_password


def test_hash_is_not_plaintext_and_verifies():
    stored = get_password_hash("correct horse")
    assert stored != "correct horse"
    assert stored.startswith("$2")
    assert verify_password("correct horse", stored) is True
    assert verify_password("wrong horse", stored) is False


def test_verify_rejects_malformed_hash():
    with pytest.raises(ValueError):
        verify_password("whatever", "not-a-bcrypt-hash")


def test_new_credential_keeps_changed_at_unset():
    user = User(name="New", email="new@example.com")
    set_password(user, "pass1234", "pass1234", is_new=True)

    assert user.password_changed_at is None
    assert verify_password("pass1234", user.password_hash)
    for issued_at in (0, 1_700_000_000, 4_000_000_000):
        assert changed_password_after(user, issued_at) is False


def test_password_change_sets_changed_at_one_second_back():
    now = datetime(2024, 5, 1, 12, 0, 0)
    user = User(name="Old", email="old@example.com")
    set_password(user, "pass1234", "pass1234", is_new=True)

    set_password(user, "newpass99", "newpass99", now=now)

    assert user.password_changed_at == now - PASSWORD_CHANGE_SKEW
    now_ts = to_epoch_seconds(now)
    # Token issued before the change is stale, one issued in the same second is not
    assert changed_password_after(user, now_ts - 60) is True
    assert changed_password_after(user, now_ts) is False
    assert changed_password_after(user, now_ts - 1) is False


@pytest.mark.parametrize(
    "password, confirm, message",
    [
        ("short", "short", "at least 8"),
        ("", "", "at least 8"),
        ("pass1234", "pass4321", "not the same"),
    ],
)
def test_invalid_passwords_are_client_errors(password, confirm, message):
    user = User(name="Bad", email="bad@example.com")
    with pytest.raises(AppError) as exc_info:
        set_password(user, password, confirm, is_new=True)

    assert exc_info.value.status_code == 400
    assert exc_info.value.status == "fail"
    assert exc_info.value.is_operational is True
    assert message in exc_info.value.message
    assert user.password_hash is None


def test_issue_reset_token_stores_only_sha256():
    now = datetime(2024, 5, 1, 12, 0, 0)
    raw, stored, expires_at = issue_password_reset_token(now=now)

    assert len(raw) == 64
    int(raw, 16)
    assert stored == hashlib.sha256(raw.encode()).hexdigest()
    assert stored != raw
    assert expires_at == now + timedelta(minutes=10)


def test_second_reset_token_overwrites_first(db):
    user = make_user(db)

    first = create_password_reset_token(user)
    first_hash, first_expiry = user.password_reset_token, user.password_reset_expires
    second = create_password_reset_token(user, now=utcnow() + timedelta(seconds=5))

    assert first != second
    assert user.password_reset_token == hash_token(second)
    assert user.password_reset_token != first_hash
    assert user.password_reset_expires > first_expiry


def test_consume_reset_token_changes_password_and_clears_fields(db):
    user = make_user(db)
    raw = create_password_reset_token(user)
    db.commit()

    updated = consume_password_reset_token(db, raw, "brandnew1", "brandnew1")
    db.commit()

    assert updated.id == user.id
    assert verify_password("brandnew1", updated.password_hash)
    assert updated.password_reset_token is None
    assert updated.password_reset_expires is None
    assert updated.password_changed_at is not None


def test_consume_reset_token_rejects_stale_and_unknown_tokens(db):
    user = make_user(db)
    raw = create_password_reset_token(user)
    db.commit()

    with pytest.raises(AppError) as expired:
        consume_password_reset_token(db, raw, "brandnew1", "brandnew1", now=utcnow() + timedelta(minutes=11))
    assert expired.value.status_code == 400

    with pytest.raises(AppError):
        consume_password_reset_token(db, "0" * 64, "brandnew1", "brandnew1")

    # The previous token stops working once a new one is issued
    create_password_reset_token(user)
    db.commit()
    with pytest.raises(AppError):
        consume_password_reset_token(db, raw, "brandnew1", "brandnew1")


def test_consume_reset_token_ignores_inactive_users(db):
    user = make_user(db, active=False)
    raw = create_password_reset_token(user)
    db.commit()

    with pytest.raises(AppError):
        consume_password_reset_token(db, raw, "brandnew1", "brandnew1")
