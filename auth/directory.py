"""
auth/directory.py -- User domain operations over RecordStore.

UserDirectory is the only component that talks to RecordStore and the only
one that ever holds a password hash. Every public method except
find_by_email_with_secret() returns PublicUser, which has no password_hash
field at all.

Transactions:
  Every mutating operation (create, update, delete, change_password) runs its
  whole read-check-write cycle inside RecordStore.transaction(). Two
  concurrent create() calls for the same email therefore cannot both pass the
  uniqueness scan -- the second one sees the first one's committed record.

  bcrypt runs BEFORE entering the transaction, never under the write lock.
  change_password checks the current password against a snapshot, then
  commits only if the stored hash is still the one it checked.

Lookup misses on update/change_password/delete are expected outcomes, not
errors: they return None / False. The route layer turns them into 404.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from auth.errors import DuplicateEmail, InvalidCredentials, InvalidCurrentPassword, ValidationError
from auth.models import ROLE_USER, ROLES, PublicUser, UserRecord
from auth.passwords import MAX_PASSWORD_BYTES, burn_verification, hash_password, verify_password
from auth.store import RecordStore

logger = logging.getLogger("profilevault.auth")

PASSWORD_MIN_LENGTH = 6

# Fields update() accepts. id and created_at are immutable; password is
# re-hashed before it is merged as password_hash.
_UPDATABLE_FIELDS = frozenset({"name", "email", "role", "password"})


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return uuid.uuid4().hex


def validate_password(password: object, label: str = "Password") -> str:
    """Enforce the password policy. Returns the password unchanged.

    Raises ValidationError when the password is missing, shorter than
    PASSWORD_MIN_LENGTH characters, or longer than bcrypt can read.
    """
    if not isinstance(password, str) or not password:
        raise ValidationError(f"{label} is required.")
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"{label} must be at least {PASSWORD_MIN_LENGTH} characters.")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"{label} must be at most {MAX_PASSWORD_BYTES} bytes.")
    return password


def _require_text(value: object, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required.")
    return value


class UserDirectory:
    """Create, look up, update and delete users.

    Usage:
        directory = UserDirectory(RecordStore(Path("data/users.json")))
        ann = directory.create("Ann", "ann@x.com", "secret1")
        directory.find_by_id(ann.id)
    """

    def __init__(self, store: RecordStore, bcrypt_rounds: int | None = None) -> None:
        self.store = store
        self._rounds = bcrypt_rounds

    def _hash(self, plain: str) -> str:
        return hash_password(plain, rounds=self._rounds)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_by_id(self, user_id: str) -> PublicUser | None:
        for record in self.store.read_all():
            if record.id == user_id:
                return record.to_public()
        return None

    def find_by_email_with_secret(self, email: str) -> UserRecord | None:
        """Return the full stored record, password_hash included.

        For credential checks inside auth/ only. Never hand the result to a
        caller outside the directory boundary.
        """
        for record in self.store.read_all():
            if record.email == email:
                return record
        return None

    def find_all(self) -> list[PublicUser]:
        return [r.to_public() for r in self.store.read_all()]

    def count(self) -> int:
        return len(self.store.read_all())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, name: str, email: str, password: str, role: str = ROLE_USER) -> PublicUser:
        """Register a new user.

        Raises:
            ValidationError: missing name/email, bad password, unknown role.
            DuplicateEmail:  a record with exactly this email already exists.
        """
        _require_text(name, "Name")
        _require_text(email, "Email")
        validate_password(password)
        if role not in ROLES:
            raise ValidationError(f"Role must be one of: {', '.join(ROLES)}.")

        password_hash = self._hash(password)

        with self.store.transaction() as records:
            if any(r.email == email for r in records):
                raise DuplicateEmail()
            now = _now_iso()
            record = UserRecord(
                id=_new_id(),
                name=name,
                email=email,
                password_hash=password_hash,
                role=role,
                created_at=now,
                updated_at=now,
            )
            records.append(record)

        logger.info("User created (id=%s, role=%s)", record.id, record.role)
        return record.to_public()

    def update(self, user_id: str, **changes) -> PublicUser | None:
        """Merge only the provided fields into an existing user.

        Accepted fields: name, email, role, password. A password is hashed
        before it is merged. updated_at is always refreshed.

        Returns None if user_id is unknown.

        Raises:
            ValidationError: unknown field, empty name/email, bad role or password.
            DuplicateEmail:  email changed to one another record already uses.
        """
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}.")
        if "name" in changes:
            _require_text(changes["name"], "Name")
        if "email" in changes:
            _require_text(changes["email"], "Email")
        if "role" in changes and changes["role"] not in ROLES:
            raise ValidationError(f"Role must be one of: {', '.join(ROLES)}.")

        merged = {k: v for k, v in changes.items() if k != "password"}
        if "password" in changes:
            merged["password_hash"] = self._hash(validate_password(changes["password"]))

        with self.store.transaction() as records:
            target = next((r for r in records if r.id == user_id), None)
            if target is None:
                return None
            if "email" in merged and merged["email"] != target.email:
                if any(r.email == merged["email"] for r in records if r.id != user_id):
                    raise DuplicateEmail()
            for key, value in merged.items():
                setattr(target, key, value)
            target.updated_at = _now_iso()

        logger.info("User updated (id=%s, fields=%s)", user_id, ",".join(sorted(changes)))
        return target.to_public()

    def delete(self, user_id: str) -> bool:
        """Remove a user. Returns True if a record existed and was removed."""
        with self.store.transaction() as records:
            index = next((i for i, r in enumerate(records) if r.id == user_id), None)
            if index is None:
                return False
            del records[index]

        logger.info("User deleted (id=%s)", user_id)
        return True

    def change_password(
        self,
        user_id: str,
        new_password: str,
        current_password: str | None = None,
        require_current: bool = True,
    ) -> PublicUser | None:
        """Replace a user's password.

        When require_current is True the caller must supply the user's
        current password and it must verify against the stored hash. Admin
        resets pass require_current=False.

        Returns None if user_id is unknown.

        Raises:
            ValidationError:        new password fails policy, or current missing.
            InvalidCurrentPassword: current password does not match.
        """
        validate_password(new_password, label="New password")
        if require_current and not current_password:
            raise ValidationError("Current password is required.")

        # bcrypt runs outside the write lock: verify against a snapshot, then
        # require the hash to be unchanged when committing.
        verified_hash = None
        if require_current:
            snapshot = next((r for r in self.store.read_all() if r.id == user_id), None)
            if snapshot is None:
                return None
            if not verify_password(current_password, snapshot.password_hash):
                raise InvalidCurrentPassword()
            verified_hash = snapshot.password_hash

        new_hash = self._hash(new_password)

        with self.store.transaction() as records:
            target = next((r for r in records if r.id == user_id), None)
            if target is None:
                return None
            if verified_hash is not None and target.password_hash != verified_hash:
                raise InvalidCurrentPassword()
            target.password_hash = new_hash
            target.updated_at = _now_iso()

        logger.info("Password changed (id=%s, verified_current=%s)", user_id, require_current)
        return target.to_public()

    # ------------------------------------------------------------------
    # Authentication (constant-time) [C1]
    # ------------------------------------------------------------------

    def authenticate(self, email: str, password: str) -> PublicUser:
        """Check an email/password pair with timing equalization.

        Always runs bcrypt whether or not the email exists:
        - Unknown email: bcrypt runs against the dummy hash (same cost).
        - Wrong password: bcrypt runs against the real hash (same cost).

        Raises InvalidCredentials for both, with the same message.
        """
        record = self.find_by_email_with_secret(email)
        if record is None:
            # Equalize timing -- do NOT return early before running bcrypt [C1]
            burn_verification(password)
            raise InvalidCredentials()
        if not verify_password(password, record.password_hash):
            raise InvalidCredentials()
        return record.to_public()
