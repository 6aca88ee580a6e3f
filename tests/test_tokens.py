"""Unit tests for auth/tokens.py -- TokenService issue/verify.

Covers:
- issue() then verify() round-trips the subject
- expired tokens raise ExpiredToken; forged/malformed ones raise InvalidToken
- a missing secret key is a hard SigningUnavailable at construction
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.errors import ExpiredToken, InvalidToken, SigningUnavailable, Unauthenticated
from auth.tokens import TokenService
from core.config import Settings


def test_issue_then_verify_returns_subject(tokens):
    token = tokens.issue("user-123")
    assert tokens.verify(token) == "user-123"


def test_token_carries_only_identity_and_times(tokens):
    claims = jwt.get_unverified_claims(tokens.issue("user-123"))
    assert set(claims) == {"sub", "iat", "exp"}
    assert claims["exp"] - claims["iat"] == 3600


def test_default_lifetime_comes_from_settings():
    settings = Settings(secret_key="k" * 32, token_expire_seconds=7 * 24 * 3600)
    service = TokenService.from_settings(settings)
    claims = jwt.get_unverified_claims(service.issue("u"))
    assert claims["exp"] - claims["iat"] == 7 * 24 * 3600


def test_expired_token(tokens):
    token = tokens.issue("user-123", expires_in=timedelta(seconds=-5))
    with pytest.raises(ExpiredToken):
        tokens.verify(token)


def test_expired_and_invalid_are_both_unauthenticated(tokens):
    expired = tokens.issue("user-123", expires_in=timedelta(seconds=-5))
    for bad in (expired, "garbage"):
        with pytest.raises(Unauthenticated):
            tokens.verify(bad)


def test_wrong_signature_is_invalid_not_expired(tokens):
    other = TokenService("z" * 40, expire_seconds=3600)
    forged = other.issue("user-123", expires_in=timedelta(seconds=-5))
    with pytest.raises(InvalidToken):
        tokens.verify(forged)


@pytest.mark.parametrize("token", ["", "not.a.jwt", "a.b.c"])
def test_malformed_token_is_invalid(tokens, token):
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_token_without_subject_is_invalid(tokens):
    exp = datetime.now(timezone.utc) + timedelta(minutes=5)
    token = jwt.encode({"exp": exp}, os.environ["SECRET_KEY"], algorithm="HS256")
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_token_without_expiry_is_invalid(tokens):
    token = jwt.encode({"sub": "user-123"}, os.environ["SECRET_KEY"], algorithm="HS256")
    with pytest.raises(InvalidToken):
        tokens.verify(token)


def test_missing_secret_is_signing_unavailable():
    with pytest.raises(SigningUnavailable):
        TokenService("", expire_seconds=3600)


def test_unset_secret_from_settings_is_signing_unavailable():
    with pytest.raises(SigningUnavailable):
        TokenService.from_settings(Settings(secret_key=""))


def test_short_secret_rejected_by_settings():
    with pytest.raises(ValueError):
        Settings(secret_key="too-short")
