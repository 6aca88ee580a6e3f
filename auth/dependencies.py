"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Only one auth method exists: the "Authorization: Bearer <token>" header.
The heavy lifting is in auth.guard.AccessGuard; this module adapts it to the
request object and parks the resolved identity on request.state.user for
anything downstream (logging, handlers) that wants it.

get_current_user() raises the guard's Unauthenticated errors unchanged.
api/main.py renders them as 401 with the specific error code.

Layer rule: no imports from api/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.directory import UserDirectory
from auth.guard import AccessGuard
from auth.models import PublicUser
from auth.tokens import TokenService


def get_directory(request: Request) -> UserDirectory:
    return request.app.state.directory


def get_tokens(request: Request) -> TokenService:
    return request.app.state.tokens


def get_current_user(request: Request) -> PublicUser:
    """Require authentication.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: PublicUser = Depends(get_current_user)): ...
    """
    guard: AccessGuard = request.app.state.guard
    user = guard.authenticate(request.headers.get("Authorization"))
    request.state.user = user
    return user
