"""Unit tests for auth/passwords.py -- bcrypt hashing and verification.

Covers:
- hash_password() salts: same input, different digests
- digest never equals the plaintext
- verify_password() accepts the right password, rejects the wrong one
- verify_password() returns False (never raises) on malformed digests
"""

from __future__ import annotations

import pytest

from auth.passwords import hash_password, verify_password


def test_hash_is_salted():
    first = hash_password("secret1")
    second = hash_password("secret1")
    assert first != second
    assert verify_password("secret1", first)
    assert verify_password("secret1", second)


def test_hash_differs_from_plaintext():
    digest = hash_password("secret1")
    assert digest
    assert digest != "secret1"
    assert digest.startswith("$2")


def test_verify_rejects_wrong_password():
    digest = hash_password("secret1")
    assert verify_password("secret2", digest) is False


def test_explicit_rounds_are_encoded_in_digest():
    digest = hash_password("secret1", rounds=5)
    assert digest.split("$")[2] == "05"
    assert verify_password("secret1", digest)


@pytest.mark.parametrize("bad_digest", ["", "not-a-hash", "$2b$04$short", "plaintext-secret1"])
def test_verify_malformed_digest_returns_false(bad_digest):
    assert verify_password("secret1", bad_digest) is False


def test_verify_empty_plaintext_returns_false():
    assert verify_password("", hash_password("secret1")) is False
