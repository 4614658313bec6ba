"""
auth/errors.py -- Exceptions raised by the auth flow controller.

The flow controller raises; api/main.py owns the mapping to HTTP status codes
and response bodies. Each exception carries a stable machine-readable code so
clients never have to parse messages.

Credential mismatch (unknown identifier, wrong password) is deliberately a
single exception with a single message, so a client cannot tell which half of
the pair was wrong. AccountDisabled is the one disclosed exception: a locked-out
user gets told why.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for expected, client-caused auth failures."""

    code = "auth_error"
    status_code = 400
    message = "Authentication failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message


class FieldErrors(AuthError):
    """A failure reported as a field -> reason mapping."""

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__()
        self.errors = dict(errors)


class RegistrationInvalid(FieldErrors):
    code = "validation_error"
    message = "Registration input is invalid."


class RegistrationConflict(FieldErrors):
    code = "conflict"
    message = "Username or email already exists."


class MissingCredentials(AuthError):
    code = "missing_credentials"
    message = "Identifier and password are required."


class InvalidCredentials(AuthError):
    code = "invalid_credentials"
    message = "Invalid credentials."


class AccountDisabled(AuthError):
    code = "account_disabled"
    status_code = 403
    message = "This account has been disabled."
