"""
auth/passwords.py -- Password hashing and verification (bcrypt, direct usage).

Security design decisions:
  bcrypt is the right choice for low-entropy secrets because its cost factor
  makes brute force expensive. Every hash gets a fresh salt from
  bcrypt.gensalt(), so hashing the same plaintext twice yields two different
  digests. The cost factor is Settings.bcrypt_rounds (default 12).

  Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
  wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
  rejects with an explicit error.

  bcrypt only reads the first 72 bytes of its input. The directory rejects
  longer passwords before they reach hash_password() (MAX_PASSWORD_BYTES).

  _DUMMY_HASH enables timing equalization in UserDirectory.authenticate() so
  response time does not reveal whether an email is registered [C1].

Layer rule: no imports from api/.
"""

from __future__ import annotations

import bcrypt

from core.config import get_settings

MAX_PASSWORD_BYTES = 72


def hash_password(plain: str, rounds: int | None = None) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    Args:
        plain:  The plaintext. Never logged, never stored.
        rounds: bcrypt cost factor. If None, uses Settings.bcrypt_rounds.
    """
    cost = rounds if rounds is not None else get_settings().bcrypt_rounds
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=cost)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    Never raises. A malformed or empty digest is simply a non-match.
    """
    if not plain or not hashed:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (TypeError, ValueError):
        return False


# Timing equalization dummy hash [C1].
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("profilevault_timing_dummy")


def burn_verification(plain: str) -> None:
    """Run one bcrypt verification whose result is discarded.

    Called on the unknown-email path of a login so it costs the same as the
    wrong-password path.
    """
    verify_password(plain, _DUMMY_HASH)
