# backend/utils/credentials.py
"""Password lifecycle of a user record.

The steps run explicitly, in order, before the caller commits:
validate the new password, hash it, stamp ``password_changed_at``. Reset
tokens are handed out once in raw form and only their SHA-256 digest is kept
on the user.
"""
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from passlib.context import CryptContext
from sqlalchemy.orm import Query, Session

from config import settings
from models.users import User
from utils.errors import AppError
from utils.hashing import get_password_hash, hash_token, pwd_context

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
RESET_TOKEN_BYTES = 32

# password_changed_at is pushed back so a JWT issued in the same second stays valid
PASSWORD_CHANGE_SKEW = timedelta(seconds=1)


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every datetime column is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_epoch_seconds(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


def active_users(db: Session) -> Query:
    """Default lookup for the credential store: soft-deleted users are hidden."""
    return db.query(User).filter(User.active.is_(True))


def validate_new_password(password: Optional[str], password_confirm: Optional[str]) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise AppError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long", 400)
    if password != password_confirm:
        raise AppError("Passwords are not the same!", 400)


def set_password(
    user: User,
    password: str,
    password_confirm: str,
    *,
    is_new: bool = False,
    context: CryptContext = pwd_context,
    now: Optional[datetime] = None,
) -> str:
    """Validate, hash and store a new password on ``user``; returns the stored hash.

    The confirmation is only compared, never kept. A brand new record leaves
    ``password_changed_at`` unset.
    """
    validate_new_password(password, password_confirm)
    user.password_hash = get_password_hash(password, context)
    if not is_new:
        user.password_changed_at = (now or utcnow()) - PASSWORD_CHANGE_SKEW
    return user.password_hash


def changed_password_after(user: User, issued_at: int) -> bool:
    """True when the password changed after a token issued at ``issued_at`` (epoch seconds)."""
    if user.password_changed_at is None:
        return False
    return to_epoch_seconds(user.password_changed_at) > issued_at


def issue_password_reset_token(
    now: Optional[datetime] = None,
    lifetime: Optional[timedelta] = None,
) -> Tuple[str, str, datetime]:
    """Return ``(raw_token_hex, stored_hash_hex, expires_at)``."""
    raw_token = secrets.token_bytes(RESET_TOKEN_BYTES).hex()
    lifetime = lifetime or timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
    expires_at = (now or utcnow()) + lifetime
    return raw_token, hash_token(raw_token), expires_at


def create_password_reset_token(user: User, now: Optional[datetime] = None) -> str:
    """Issue a reset token for ``user``, replacing any pending one. Returns the raw token."""
    raw_token, token_hash, expires_at = issue_password_reset_token(now=now)
    user.password_reset_token = token_hash
    user.password_reset_expires = expires_at
    logger.info("Password reset token issued for user %s, expires at %s", user.id, expires_at.isoformat())
    return raw_token


def clear_password_reset_token(user: User) -> None:
    user.password_reset_token = None
    user.password_reset_expires = None


def find_user_by_reset_token(db: Session, raw_token: str, now: Optional[datetime] = None) -> Optional[User]:
    return (
        active_users(db)
        .filter(
            User.password_reset_token == hash_token(raw_token),
            User.password_reset_expires > (now or utcnow()),
        )
        .first()
    )


def consume_password_reset_token(
    db: Session,
    raw_token: str,
    password: str,
    password_confirm: str,
    now: Optional[datetime] = None,
) -> User:
    """Reset the password of the user owning ``raw_token`` and clear the token.

    The caller commits.
    """
    now = now or utcnow()
    user = find_user_by_reset_token(db, raw_token, now=now)
    if user is None:
        raise AppError("Token is invalid or has expired", 400)

    set_password(user, password, password_confirm, now=now)
    clear_password_reset_token(user)
    return user
