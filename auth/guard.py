"""
auth/guard.py -- Per-request authentication gate and authorization predicates.

AccessGuard turns an Authorization header into a PublicUser or raises one of
the Unauthenticated kinds:

  header absent / not "Bearer <token>"   -> MissingToken
  bad signature, malformed               -> InvalidToken
  signature fine, past exp               -> ExpiredToken
  subject no longer in the directory     -> StaleToken

The guard only authenticates. Whether the authenticated user may act on a
given target is answered by the plain predicates below, which each route
evaluates against {requester.id, requester.role, target id}.

Layer rule: no imports from api/ and no FastAPI. auth/dependencies.py is the
framework adapter.
"""

from __future__ import annotations

import logging

from auth.directory import UserDirectory
from auth.errors import MissingToken, StaleToken
from auth.models import PublicUser
from auth.tokens import TokenService

logger = logging.getLogger("profilevault.auth")

_BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from an 'Authorization: Bearer <token>' value, else None."""
    if not authorization or not authorization.startswith(_BEARER_PREFIX):
        return None
    token = authorization[len(_BEARER_PREFIX) :].strip()
    return token or None


class AccessGuard:
    def __init__(self, tokens: TokenService, directory: UserDirectory) -> None:
        self.tokens = tokens
        self.directory = directory

    def authenticate(self, authorization: str | None) -> PublicUser:
        """Resolve the caller's identity from an Authorization header value."""
        token = extract_bearer_token(authorization)
        if token is None:
            raise MissingToken()

        user_id = self.tokens.verify(token)

        user = self.directory.find_by_id(user_id)
        if user is None:
            logger.warning("Rejected token for missing user (id=%s)", user_id)
            raise StaleToken()
        return user


# ---------------------------------------------------------------------------
# Authorization predicates
# ---------------------------------------------------------------------------


def is_self_or_admin(requester: PublicUser, target_id: str) -> bool:
    """Profile and password changes: the owner, or any admin."""
    return requester.id == target_id or requester.is_admin


def can_delete(requester: PublicUser, target_id: str) -> bool:
    """Deletes: admins only, and never their own account."""
    return requester.is_admin and requester.id != target_id


def can_change_role(requester: PublicUser) -> bool:
    return requester.is_admin


def must_confirm_current_password(requester: PublicUser) -> bool:
    """Admins reset passwords without knowing the old one; everyone else confirms."""
    return not requester.is_admin
