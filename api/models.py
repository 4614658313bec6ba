"""
API request and response models for LabAuth REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Request models keep every field Optional so that a missing field reaches the
registration validator and comes back in the field-keyed {"errors": {...}}
shape, rather than as a generic 400 from FastAPI's body validation. For the
same reason RegisterRequest carries no length caps: column widths are checked
by auth/validation.py and reported per field. LoginRequest keeps its caps; an
identifier wider than any column can never match an account.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import User

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /auth/register."""

    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    full_name: Optional[str] = None
    phone_number: Optional[str] = None


class LoginRequest(BaseModel):
    """Request body for POST /auth/login. identifier is a username or an email."""

    identifier: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=255)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserPublic(BaseModel):
    """Public-safe projection of a User: every attribute except password_hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    full_name: str
    phone_number: Optional[str] = None
    role: str
    is_active: bool
    created_at: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserPublic":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            full_name=user.full_name,
            phone_number=user.phone_number,
            role=user.role,
            is_active=user.is_active,
            created_at=user.created_at,
        )


class RegisterResponse(BaseModel):
    """Response for POST /auth/register."""

    model_config = ConfigDict(frozen=True)

    message: str


class LoginResponse(BaseModel):
    """Response for POST /auth/login."""

    model_config = ConfigDict(frozen=True)

    message: str
    token: str
    user: UserPublic


class FieldErrorResponse(BaseModel):
    """400 body for registration failures: field name -> reason."""

    model_config = ConfigDict(frozen=True)

    errors: dict[str, str]


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
    database: str = "ok"
