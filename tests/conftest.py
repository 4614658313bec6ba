"""
tests/conftest.py -- Shared test fixtures for LabAuth.

This module provides:
  - _patch_lifespan(): wires test collaborators into app.state, bypassing real startup
  - tokens: TokenService signed with the test secret
  - api_client: TestClient plus seeded admin / member / disabled accounts

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

JWT_SECRET must be set before any project import: Settings() refuses to build
without it, and api.main builds Settings at import time.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: set before any api/auth/core import.
os.environ.setdefault("JWT_SECRET", "test-secret-for-labauth-suite-0123456789abcdef")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import ROLE_ADMIN, ROLE_USER, User
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings
from factories import ADMIN_PASSWORD, DISABLED_PASSWORD, MEMBER_PASSWORD, make_store, make_user


def _patch_lifespan(user_store: UserStore, tokens: TokenService):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.tokens = tokens
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = make_store()
    yield s
    s.close()


@pytest.fixture(scope="session")
def tokens() -> TokenService:
    settings = get_settings()
    return TokenService(settings.jwt_secret, settings.token_expire_seconds)


@dataclass
class ApiContext:
    client: TestClient
    store: UserStore
    tokens: TokenService
    admin: User
    member: User
    disabled: User

    def bearer(self, user: User) -> dict[str, str]:
        token = self.tokens.issue(user.id, user.email, user.role)
        return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="module")
def api_client(tokens: TokenService) -> Generator[ApiContext, None, None]:
    """Yield an ApiContext for HTTP integration tests.

    Seeds three accounts before the client starts:
      - admin    (role admin, active)     password ADMIN_PASSWORD
      - member   (role user, active)      password MEMBER_PASSWORD
      - disabled (role user, is_active=0) password DISABLED_PASSWORD
    """
    user_store = make_store()

    admin = make_user("labadmin", "admin@lab.edu", ADMIN_PASSWORD, full_name="Lab Admin", role=ROLE_ADMIN)
    admin.id = user_store.create_user(admin)
    member = make_user("member", "member@lab.edu", MEMBER_PASSWORD, full_name="Regular Member", role=ROLE_USER)
    member.id = user_store.create_user(member)
    disabled = make_user("locked", "locked@lab.edu", DISABLED_PASSWORD, full_name="Locked Out", is_active=False)
    disabled.id = user_store.create_user(disabled)

    app.router.lifespan_context = _patch_lifespan(user_store, tokens)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiContext(client, user_store, tokens, admin, member, disabled)

    user_store.close()
