"""
auth/errors.py -- Error taxonomy for the authentication core.

Hierarchy:
    AuthError (base)
    ├── ValidationError
    │   └── InvalidCurrentPassword
    ├── DuplicateEmail
    ├── InvalidCredentials
    ├── Unauthenticated
    │   ├── MissingToken
    │   ├── InvalidToken
    │   ├── ExpiredToken
    │   └── StaleToken
    ├── Forbidden
    │   └── RegistrationClosed
    ├── NotFound
    ├── StoreUnavailable
    └── SigningUnavailable

Every error carries a stable machine-readable ``code`` and a human-readable
``message`` that is safe to show a client. Infrastructure detail (paths, OS
errors) belongs in the log record, never in ``message``.

The HTTP status for each class is decided in api/main.py. auth/ knows
nothing about HTTP.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every expected failure raised by auth/."""

    code = "auth_error"
    default_message = "Authentication error."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class ValidationError(AuthError):
    """Input has the wrong shape or length. User-correctable."""

    code = "validation_error"
    default_message = "Invalid input."


class InvalidCurrentPassword(ValidationError):
    # Treated as input validation rather than authorization; see DESIGN.md.
    code = "invalid_current_password"
    default_message = "Current password is incorrect."


class DuplicateEmail(AuthError):
    code = "duplicate_email"
    default_message = "A user with this email already exists."


class InvalidCredentials(AuthError):
    """Wrong email or wrong password. Deliberately does not say which."""

    code = "invalid_credentials"
    default_message = "Invalid credentials."


class Unauthenticated(AuthError):
    code = "unauthenticated"
    default_message = "Authentication required."


class MissingToken(Unauthenticated):
    code = "missing_token"
    default_message = "No token, authorization denied."


class InvalidToken(Unauthenticated):
    code = "invalid_token"
    default_message = "Token is not valid."


class ExpiredToken(Unauthenticated):
    code = "expired_token"
    default_message = "Token has expired."


class StaleToken(Unauthenticated):
    """Signature and expiry are fine but the subject no longer exists."""

    code = "stale_token"
    default_message = "Token is not valid."


class Forbidden(AuthError):
    code = "forbidden"
    default_message = "You are not allowed to perform this action."


class RegistrationClosed(Forbidden):
    code = "registration_closed"
    default_message = "Self-registration is disabled."


class NotFound(AuthError):
    code = "not_found"
    default_message = "User not found."


class StoreUnavailable(AuthError):
    """The backing medium could not be read or written."""

    code = "store_unavailable"
    default_message = "User store is unavailable."


class SigningUnavailable(AuthError):
    """No signing key is configured; tokens cannot be issued or verified."""

    code = "signing_unavailable"
    default_message = "Token signing is not configured."
