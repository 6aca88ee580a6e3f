"""
auth/models.py -- Domain dataclasses for user identity.

Pattern: Data class (pure data container, near-zero logic). Stores and the
directory do the work.

Two shapes exist on purpose:
  UserRecord  -- the persisted form. Carries password_hash. Never crosses the
                 directory boundary except through find_by_email_with_secret().
  PublicUser  -- everything else. Has no password_hash attribute at all, so
                 there is no field to forget to strip.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


@dataclass
class UserRecord:
    """A stored user. id and created_at are immutable after creation."""

    id: str
    name: str
    email: str  # unique, case-sensitive as stored
    password_hash: str
    role: str = ROLE_USER
    created_at: str = ""
    updated_at: str = ""

    def to_public(self) -> PublicUser:
        return PublicUser(
            id=self.id,
            name=self.name,
            email=self.email,
            role=self.role,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


@dataclass(frozen=True)
class PublicUser:
    """A user as seen outside the directory. No secrets."""

    id: str
    name: str
    email: str
    role: str
    created_at: str
    updated_at: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
