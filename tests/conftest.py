"""
tests/conftest.py -- Shared test fixtures for ProfileVault.

This module provides:
  - store / directory / tokens: isolated auth core objects on a tmp_path file
  - _patch_lifespan(): wires test objects into app.state, bypassing real startup
  - api_client: TestClient with an admin JWT for API integration tests

Environment must be set before any core/auth/api import:
  SECRET_KEY           -- TokenService refuses to construct without one.
  BCRYPT_ROUNDS=4      -- the minimum cost; keeps the suite fast.
  RATE_LIMIT_ENABLED   -- off, or the login tests would trip 10/minute.
  ALLOWED_HOSTS        -- TestClient sends Host: testserver.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any project import -- get_settings() is cached on first call.
os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789abcdef0123456789abcdef")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ALLOWED_HOSTS", '["*"]')

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.directory import UserDirectory
from auth.guard import AccessGuard
from auth.models import ROLE_ADMIN
from auth.store import RecordStore
from auth.tokens import TokenService

TEST_SECRET = os.environ["SECRET_KEY"]

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "adminpass123"


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store(tmp_path) -> RecordStore:
    return RecordStore(tmp_path / "data" / "users.json")


@pytest.fixture
def directory(store: RecordStore) -> UserDirectory:
    return UserDirectory(store)


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(TEST_SECRET, expire_seconds=3600)


@pytest.fixture
def guard(tokens: TokenService, directory: UserDirectory) -> AccessGuard:
    return AccessGuard(tokens, directory)


# ---------------------------------------------------------------------------
# App wiring
# ---------------------------------------------------------------------------


def _patch_lifespan(directory: UserDirectory, tokens: TokenService):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test objects into app.state so TestClient routes see an
    isolated store rather than the configured USERS_FILE.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.directory = directory
        app.state.tokens = tokens
        app.state.guard = AccessGuard(tokens, directory)
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(tmp_path_factory) -> Generator[tuple[TestClient, str, str], None, None]:
    """Yield (client, admin_token, admin_id) for API integration tests.

    One store per test module. The admin is created directly through the
    directory because the API only ever registers plain users.
    """
    users_file = tmp_path_factory.mktemp("api") / "users.json"
    directory = UserDirectory(RecordStore(users_file))
    tokens = TokenService(TEST_SECRET, expire_seconds=3600)

    admin = directory.create("Admin", ADMIN_EMAIL, ADMIN_PASSWORD, role=ROLE_ADMIN)
    token = tokens.issue(admin.id)

    app.router.lifespan_context = _patch_lifespan(directory, tokens)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, admin.id