"""bcrypt hashing for admin passwords and product API keys."""

from __future__ import annotations

import logging

import bcrypt

from subplatform.config import settings

logger = logging.getLogger("subplatform.auth")

# bcrypt only looks at the first 72 bytes; newer releases raise instead of
# truncating, so truncate explicitly to keep hashes produced elsewhere valid.
_BCRYPT_MAX_BYTES = 72


def _encode(plaintext: str) -> bytes:
    return plaintext.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_secret(plaintext: str, rounds: int | None = None) -> str:
    """Return a bcrypt hash of *plaintext* using *rounds* (default ``BCRYPT_ROUNDS``)."""
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_encode(plaintext), salt).decode("ascii")


def verify_secret(plaintext: str, hashed: str) -> bool:
    """Constant-time check of *plaintext* against a stored bcrypt hash.

    A stored value that is not a bcrypt hash never matches.
    """
    try:
        return bcrypt.checkpw(_encode(plaintext), hashed.encode("ascii"))
    except (ValueError, UnicodeEncodeError):
        logger.warning("Stored credential hash is not a valid bcrypt hash")
        return False
