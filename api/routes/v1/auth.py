"""
api/routes/v1/auth.py -- Registration, login and token verification endpoints.

Routes:
  POST /api/v1/auth/register   -- create an account; returns {user, token}
  POST /api/v1/auth/login      -- password login; returns {user, token}
  POST /api/v1/auth/verify     -- check a bearer token; returns {valid, user}
  GET  /api/v1/auth/me         -- current user info (requires auth)

Security:
  [H2] POST /login and /register are rate-limited per IP (LOGIN_RATE_LIMIT).
  [C1] UserDirectory.authenticate() provides timing equalization -- use it,
       never inline find_by_email_with_secret() + verify_password().
  [M5] Cache-Control: no-store on every response that carries a token.

Handlers are plain `def`: bcrypt is CPU-bound and FastAPI runs sync handlers
in its threadpool, keeping the event loop free.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import AuthResponse, LoginRequest, RegisterRequest, UserEnvelope, UserResponse, VerifyResponse
from auth.dependencies import get_current_user, get_directory, get_tokens
from auth.directory import UserDirectory
from auth.errors import InvalidCredentials, RegistrationClosed, Unauthenticated
from auth.models import PublicUser
from auth.tokens import TokenService
from core.config import get_settings

logger = logging.getLogger("profilevault.api")

_settings = get_settings()

# Auth policy:
# - POST /api/v1/auth/register: public (unless SELF_REGISTRATION_ENABLED=false)
# - POST /api/v1/auth/login:    public -- login endpoint must be unauthenticated
# - POST /api/v1/auth/verify:   bearer token checked in-handler so failures
#                               render as {"valid": false}
# - GET  /api/v1/auth/me:       requires auth (get_current_user)
router = APIRouter()


def _token_response(status_code: int, user: PublicUser, tokens: TokenService) -> JSONResponse:
    token = tokens.issue(user.id)
    resp = JSONResponse(
        status_code=status_code,
        content=AuthResponse(
            user=UserResponse.from_user(user),
            token=token,
            expires_in=tokens.expire_seconds,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@limiter.limit(_settings.login_rate_limit)  # [H2] must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/register", response_model=AuthResponse, status_code=201)
def register(
    request: Request,
    body: RegisterRequest,
    directory: UserDirectory = Depends(get_directory),
    tokens: TokenService = Depends(get_tokens),
) -> JSONResponse:
    """Create a user account with the default role and sign them in.

    Duplicate email and a short password both come back as 400.
    """
    if not _settings.self_registration_enabled:
        raise RegistrationClosed()
    user = directory.create(body.name, body.email, body.password)
    return _token_response(201, user, tokens)


@limiter.limit(_settings.login_rate_limit)  # [H2]
@router.post("/auth/login", response_model=AuthResponse)
def login(
    request: Request,
    body: LoginRequest,
    directory: UserDirectory = Depends(get_directory),
    tokens: TokenService = Depends(get_tokens),
) -> JSONResponse:
    """Authenticate with email and password; return a fresh token.

    Returns the same generic error for an unknown email and a wrong password
    ("invalid_credentials") to avoid leaking which emails are registered.
    """
    try:
        user = directory.authenticate(body.email, body.password)
    except InvalidCredentials:
        logger.warning("Failed login attempt from %s", request.client.host if request.client else "unknown")
        raise
    return _token_response(200, user, tokens)


@router.post("/auth/verify", response_model=VerifyResponse)
def verify(request: Request) -> JSONResponse:
    """Report whether the bearer token on this request is currently valid.

    A valid signature is not enough: the subject must still exist.
    """
    try:
        user = get_current_user(request)
    except Unauthenticated as exc:
        return JSONResponse(status_code=401, content={"valid": False, "error": exc.to_dict()})
    return JSONResponse(content=VerifyResponse(valid=True, user=UserResponse.from_user(user)).model_dump())


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=UserEnvelope)
def me(current_user: PublicUser = Depends(get_current_user)) -> UserEnvelope:
    """Return the currently authenticated user."""
    return UserEnvelope(user=UserResponse.from_user(current_user))
