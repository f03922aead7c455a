import hmac
import logging
import secrets
from datetime import datetime, timezone

import bcrypt

logger = logging.getLogger(__name__)

BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the database stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _password_bytes(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes
    return password.encode("utf-8")[:72]


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


def is_password_hash(stored: str) -> bool:
    return stored.startswith(BCRYPT_PREFIXES)


def verify_password(password: str, stored: str) -> bool:
    """
    Check a password against a stored credential.

    Stored credentials are bcrypt hashes. Accounts imported from the legacy
    store may still hold a plaintext value; those are compared in constant
    time and should be re-hashed by the caller (see needs_rehash).
    """
    if is_password_hash(stored):
        try:
            return bcrypt.checkpw(_password_bytes(password), stored.encode("utf-8"))
        except ValueError as e:
            logger.error(f"Malformed password hash: {e}")
            return False
    return hmac.compare_digest(password.encode("utf-8"), stored.encode("utf-8"))


def needs_rehash(stored: str) -> bool:
    return not is_password_hash(stored)


def generate_session_token() -> str:
    return secrets.token_urlsafe(32)
