"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and the flow
controller do the work; the API layer maps these to Pydantic response models.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


@dataclass
class User:
    """A lab-management account.

    password_hash is a self-describing bcrypt string (salt and cost embedded).
    It is set once at creation and never leaves the auth layer: every HTTP
    response goes through the public-safe UserPublic projection instead.

    role and is_active are not mutated by any HTTP route. Only operator tooling
    (main.py set-active) changes them.
    """

    username: str
    email: str
    full_name: str
    password_hash: str
    phone_number: str | None = None
    role: str = ROLE_USER
    is_active: bool = True
    id: int | None = None
    created_at: str | None = None


@dataclass
class TokenClaims:
    """Verified contents of a session token."""

    id: int
    email: str
    role: str
    issued_at: datetime
    expires_at: datetime
