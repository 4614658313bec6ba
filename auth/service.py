"""
auth/service.py -- Registration, login, and user listing flows.

The HTTP layer calls these functions and maps the exceptions from auth.errors
to responses. Keeping the flows here means the rules (two-field uniqueness,
timing-safe login, public-safe projection) are testable without a web server.

Login ordering [timing]:
  A full bcrypt comparison runs on every path that reaches the store:
  unknown identifier -> against _DUMMY_HASH; disabled account -> against the
  real hash, result discarded; active account -> against the real hash.
  Response time therefore does not separate "no such account", "disabled"
  and "wrong password".

Registration race:
  conflicting_fields() is only a pre-check. When two requests for the same
  username both pass it, the UNIQUE constraint rejects the second insert and
  the resulting IntegrityError is translated into the same RegistrationConflict
  shape the pre-check produces.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from auth.errors import (
    AccountDisabled,
    InvalidCredentials,
    MissingCredentials,
    RegistrationConflict,
    RegistrationInvalid,
)
from auth.models import ROLE_USER, User
from auth.store import UserStore
from auth.tokens import TokenService, burn_password_check, hash_password, verify_password
from auth.validation import validate_registration

logger = logging.getLogger("labauth.auth")

MSG_USERNAME_TAKEN = "Username already exists."
MSG_EMAIL_TAKEN = "Email already exists."
_FIELD_MESSAGES = {"username": MSG_USERNAME_TAKEN, "email": MSG_EMAIL_TAKEN}


@dataclass
class LoginResult:
    token: str
    user: User


def _conflict_errors(fields: set[str]) -> dict[str, str]:
    return {field: _FIELD_MESSAGES[field] for field in ("username", "email") if field in fields}


def _errors_from_integrity(exc: IntegrityError, store: UserStore, username: str, email: str) -> dict[str, str]:
    """Work out which field lost the race after the UNIQUE constraint fired."""
    errors = _conflict_errors(store.conflicting_fields(username, email))
    if errors:
        return errors
    # The winning row is not visible yet; fall back to the constraint name in
    # the driver message.
    if "email" in str(exc.orig).lower():
        return {"email": MSG_EMAIL_TAKEN}
    return {"username": MSG_USERNAME_TAKEN}


def register_user(
    store: UserStore,
    username: str | None,
    email: str | None,
    password: str | None,
    full_name: str | None,
    phone_number: str | None = None,
    role: str = ROLE_USER,
) -> int:
    """Create an account and return its id.

    Raises RegistrationInvalid for bad input and RegistrationConflict when the
    username and/or email is already taken. No token is issued here; the
    client logs in separately.
    """
    errors = validate_registration(username, email, password, full_name, phone_number)
    if errors:
        raise RegistrationInvalid(errors)

    taken = store.conflicting_fields(username, email)
    if taken:
        raise RegistrationConflict(_conflict_errors(taken))

    user = User(
        username=username,
        email=email,
        full_name=full_name,
        password_hash=hash_password(password),
        phone_number=phone_number or None,
        role=role,
        is_active=True,
    )
    try:
        user_id = store.create_user(user)
    except IntegrityError as exc:
        logger.info("Registration race lost for username=%r", username)
        raise RegistrationConflict(_errors_from_integrity(exc, store, username, email)) from exc

    logger.info("Registered user id=%s role=%s", user_id, role)
    return user_id


def login_user(store: UserStore, tokens: TokenService, identifier: str | None, password: str | None) -> LoginResult:
    """Authenticate by username or email and issue a session token.

    Raises MissingCredentials, InvalidCredentials (same error for unknown
    identifier and wrong password) or AccountDisabled.
    """
    if not identifier or not password:
        raise MissingCredentials()

    user = store.get_by_identifier(identifier)
    if user is None:
        burn_password_check(password)
        logger.warning("Login failed: unknown identifier")
        raise InvalidCredentials()

    password_ok = verify_password(password, user.password_hash)

    if not user.is_active:
        logger.warning("Login refused: account id=%s is disabled", user.id)
        raise AccountDisabled()

    if not password_ok:
        logger.warning("Login failed: bad password for id=%s", user.id)
        raise InvalidCredentials()

    token = tokens.issue(user.id, user.email, user.role)
    logger.info("Login succeeded for id=%s", user.id)
    return LoginResult(token=token, user=user)


def list_users(store: UserStore, search: str | None = None) -> list[User]:
    """Return users matching search (username or full name, any case).

    Callers must have passed the admin access gate. The returned records never
    carry a password hash.
    """
    return store.search_users(search or None)
