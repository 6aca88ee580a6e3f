"""
auth/tokens.py -- Signed, time-bounded identity tokens (JWT).

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       exactly three claims: sub (user id), iat and exp. Nothing else about
       the user is embedded -- role and profile are re-read from the directory
       on every request, so a role change or a delete takes effect at once.

  SECRET_KEY: sourced from core.config.get_settings(). There is no fallback.
       TokenService raises SigningUnavailable on construction if the key is
       empty, and api/main.py constructs it during startup, so a
       misconfigured deployment refuses to boot instead of handing out
       tokens signed with a guessable key.

  Failure kinds: verify() raises ExpiredToken only when the signature is
       valid and exp has passed. jose checks the signature before any claim,
       so a forged token with a past exp is InvalidToken, not ExpiredToken.

There is no server-side revocation. A token dies when it expires, when the
client drops it, or when its subject is deleted (the guard checks that).

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from auth.errors import ExpiredToken, InvalidToken, SigningUnavailable
from core.config import Settings

logger = logging.getLogger("profilevault.auth")

_ALGORITHM = "HS256"


class TokenService:
    """Issue and verify identity tokens.

    Usage:
        tokens = TokenService.from_settings(get_settings())
        token = tokens.issue(user.id)
        user_id = tokens.verify(token)
    """

    def __init__(self, secret_key: str, expire_seconds: int) -> None:
        if not secret_key:
            raise SigningUnavailable(
                "SECRET_KEY is required to issue tokens. Set SECRET_KEY in your environment or .env file."
            )
        self._secret_key = secret_key
        self.expire_seconds = expire_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenService:
        return cls(settings.secret_key, settings.token_expire_seconds)

    def issue(self, user_id: str, expires_in: timedelta | None = None) -> str:
        """Encode a signed JWT for user_id.

        Args:
            user_id:    The subject. Must be the directory's id string.
            expires_in: Token lifetime. If None, uses expire_seconds.
        """
        issued_at = datetime.now(timezone.utc)
        lifetime = expires_in if expires_in is not None else timedelta(seconds=self.expire_seconds)
        payload = {
            "sub": user_id,
            "iat": issued_at,
            "exp": issued_at + lifetime,
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str) -> str:
        """Verify signature and expiry; return the subject user id.

        Raises:
            ExpiredToken: signature valid, exp in the past.
            InvalidToken: anything else -- malformed, bad signature, no subject.
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except ExpiredSignatureError as exc:
            raise ExpiredToken() from exc
        except JWTError as exc:
            raise InvalidToken() from exc

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject or "exp" not in payload:
            raise InvalidToken()
        return subject
