# backend/utils/hashing.py
import hashlib

from passlib.context import CryptContext

from config import settings

# bcrypt with a fixed cost factor (12 rounds unless overridden in settings)
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def get_password_hash(password: str, context: CryptContext = pwd_context) -> str:
    return context.hash(password)


def verify_password(plain: str, hashed: str, context: CryptContext = pwd_context) -> bool:
    """Check a candidate password against a stored bcrypt hash.

    A wrong password yields ``False``. Malformed input (``None``, a hash passlib
    cannot identify) raises ``TypeError`` / ``ValueError``.
    """
    return context.verify(plain, hashed)


def hash_token(raw_token: str) -> str:
    """SHA-256 hex digest used as the stored form of reset tokens."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()
