"""
auth/validation.py -- Structural checks on registration input.

validate_registration() never raises for bad input. Malformed input is an
ordinary outcome, returned as a field -> reason mapping; an empty mapping means
the input is valid. Every field is checked independently so the client sees
all of its mistakes in one round trip.

Layer rule: stdlib only.
"""

from __future__ import annotations

import re

EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

# At least 8 chars with one lowercase, one uppercase, one digit, and one
# symbol (anything outside letters, digits and underscore).
PASSWORD_RE = re.compile(r"(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*\W).{8,}", re.DOTALL)

MSG_USERNAME_REQUIRED = "Username is required."
MSG_EMAIL_REQUIRED = "Email is required."
MSG_EMAIL_INVALID = "Email is not valid."
MSG_PASSWORD_REQUIRED = "Password is required."
MSG_PASSWORD_WEAK = (
    "Password is too weak. It must be at least 8 characters and include an uppercase letter, "
    "a lowercase letter, a digit, and a special character."
)
MSG_PASSWORD_TOO_LONG = "Password must be at most 72 bytes."
MSG_FULL_NAME_REQUIRED = "Full name is required."
MSG_TOO_LONG = "Must be at most {limit} characters."

# bcrypt hashes at most 72 bytes of input.
MAX_PASSWORD_BYTES = 72

# Column widths of the users table.
MAX_LENGTHS = {"username": 100, "email": 255, "full_name": 255, "phone_number": 30}


def _blank(value) -> bool:
    return value is None or not isinstance(value, str) or value.strip() == ""


def _too_long(field: str, value) -> bool:
    return isinstance(value, str) and len(value) > MAX_LENGTHS[field]


def is_valid_email(email: str) -> bool:
    return EMAIL_RE.fullmatch(email) is not None


def is_strong_password(password: str) -> bool:
    return PASSWORD_RE.fullmatch(password) is not None


def validate_registration(
    username: str | None,
    email: str | None,
    password: str | None,
    full_name: str | None,
    phone_number: str | None = None,
) -> dict[str, str]:
    """Return a mapping of field name to reason for every rule the input breaks.

    phone_number carries no format constraint, only the column width. Values
    wider than their column are reported here rather than failing the insert.
    """
    errors: dict[str, str] = {}

    if _blank(username):
        errors["username"] = MSG_USERNAME_REQUIRED
    elif _too_long("username", username):
        errors["username"] = MSG_TOO_LONG.format(limit=MAX_LENGTHS["username"])

    if _blank(email):
        errors["email"] = MSG_EMAIL_REQUIRED
    elif _too_long("email", email):
        errors["email"] = MSG_TOO_LONG.format(limit=MAX_LENGTHS["email"])
    elif not is_valid_email(email):
        errors["email"] = MSG_EMAIL_INVALID

    if _blank(password):
        errors["password"] = MSG_PASSWORD_REQUIRED
    elif not is_strong_password(password):
        errors["password"] = MSG_PASSWORD_WEAK
    elif len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        errors["password"] = MSG_PASSWORD_TOO_LONG

    if _blank(full_name):
        errors["full_name"] = MSG_FULL_NAME_REQUIRED
    elif _too_long("full_name", full_name):
        errors["full_name"] = MSG_TOO_LONG.format(limit=MAX_LENGTHS["full_name"])

    if _too_long("phone_number", phone_number):
        errors["phone_number"] = MSG_TOO_LONG.format(limit=MAX_LENGTHS["phone_number"])

    return errors
