"""
api/routes/auth.py -- Registration, login and admin user listing endpoints.

Routes (mounted under /auth by api/main.py):
  POST /auth/register   -- create an account; 201 {message}
  POST /auth/login      -- username-or-email login; 200 {message, token, user}
  GET  /auth/users      -- list/search users (bearer token + admin role)

Security:
  POST /login is rate-limited per client IP (LOGIN_RATE_LIMIT).
  Unknown identifier and wrong password share one error code and message.
  Cache-Control: no-store on login responses so tokens are never cached.

register and login are plain `def` handlers: FastAPI runs them in its thread
pool, which keeps bcrypt's deliberate slowness off the event loop.

Domain exceptions from auth.service propagate to the handlers registered in
api/main.py, which render them as JSON.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBearer

from api.limiter import limiter, login_rate_limit
from api.models import (
    ErrorResponse,
    FieldErrorResponse,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    UserPublic,
)
from auth.dependencies import require_admin
from auth.models import TokenClaims
from auth.service import list_users, login_user, register_user
from auth.store import UserStore
from auth.tokens import TokenService

# Declares the bearer scheme in the OpenAPI document so /api-docs offers an
# "Authorize" button. auto_error=False: the access gate does the real checks.
bearer_scheme = HTTPBearer(auto_error=False)

# Auth policy:
# - POST /auth/register: public
# - POST /auth/login:    public, rate-limited
# - GET  /auth/users:    requires valid bearer token AND role == admin
router = APIRouter()


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=201,
    responses={400: {"model": FieldErrorResponse}, 500: {"model": ErrorResponse}},
)
def register(request: Request, body: RegisterRequest) -> RegisterResponse:
    """Register a new account with the default (non-admin) role.

    Returns 400 {"errors": {field: reason}} for invalid input or when the
    username and/or email is already taken. No token is issued.
    """
    user_store: UserStore = request.app.state.user_store
    register_user(
        user_store,
        username=body.username,
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        phone_number=body.phone_number,
    )
    return RegisterResponse(message="Registration successful.")


@limiter.limit(login_rate_limit)  # must be ABOVE @router to preserve FastAPI introspection
@router.post(
    "/login",
    response_model=LoginResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with a username or email and a password.

    Returns the same 400 invalid_credentials error for an unknown identifier
    and for a wrong password. A disabled account gets 403 account_disabled.
    """
    user_store: UserStore = request.app.state.user_store
    tokens: TokenService = request.app.state.tokens
    result = login_user(user_store, tokens, body.identifier, body.password)

    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            message="Login successful.",
            token=result.token,
            user=UserPublic.from_user(result.user),
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get(
    "/users",
    response_model=list[UserPublic],
    dependencies=[Depends(bearer_scheme)],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def get_users(
    request: Request,
    search: str | None = Query(default=None, max_length=100, description="Substring of username or full name"),
    claims: TokenClaims = Depends(require_admin),
) -> list[UserPublic]:
    """List users, optionally filtered by a case-insensitive substring. Admin only."""
    user_store: UserStore = request.app.state.user_store
    return [UserPublic.from_user(u) for u in list_users(user_store, search)]
