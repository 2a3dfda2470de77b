"""Password hashing utilities built on bcrypt."""
from __future__ import annotations

from functools import lru_cache

import bcrypt

from zap_auth.core.errors import InvalidInputError
from zap_auth.core.settings import settings

# bcrypt only looks at the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: int | None = None) -> str:
    """Hash a password with bcrypt.

    Args:
        password: Plain-text password supplied by the user.
        rounds: Work factor override; defaults to ``settings.bcrypt_rounds``.

    Returns:
        The bcrypt hash as a UTF-8 string.

    Raises:
        InvalidInputError: If the password exceeds bcrypt's 72 byte limit.
    """
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise InvalidInputError("Password must be at most 72 bytes long")
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(encoded, salt).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    """Return True if ``password`` matches ``password_hash``.

    The comparison is delegated to ``bcrypt.checkpw``. A missing hash is
    still checked against a throwaway hash so that unknown accounts cost the
    same as known ones.
    """
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    if password_hash is None:
        bcrypt.checkpw(encoded, _dummy_hash())
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError:
        return False


@lru_cache(maxsize=1)
def _dummy_hash() -> bytes:
    return bcrypt.hashpw(b"zap-auth-dummy-password", bcrypt.gensalt(rounds=settings.bcrypt_rounds))
