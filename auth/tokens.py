"""
auth/tokens.py -- Password hashing and session token utilities.

Security design decisions:
  Passwords: bcrypt used directly (no passlib wrapper) at a fixed cost of 10
       rounds. The hash string embeds its own salt and cost, so verification
       needs nothing but the stored value. Hashing is deliberately slow; the
       HTTP handlers that call it are sync functions, which FastAPI runs in its
       worker thread pool, so one login never stalls the event loop.

  Timing equalization: _DUMMY_HASH lets the flow controller run a full bcrypt
       comparison even when the identifier matches no account, so response
       time does not reveal whether an account exists.

  JWT: python-jose with HS256. Tokens carry id, email, role, iat and exp,
       with a fixed lifetime (2 hours by default). They are stateless and not
       revocable before expiry. TokenService.verify() returns a TokenResult
       instead of raising, and distinguishes malformed, badly-signed and
       expired tokens so the access gate can report each precisely.

  Secret: TokenService is constructed once at startup from Settings and kept
       on app.state. Nothing in this module reads configuration on its own.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from auth.models import TokenClaims

logger = logging.getLogger("labauth.auth")

_ALGORITHM = "HS256"

BCRYPT_ROUNDS = 10

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    bcrypt refuses input over 72 bytes; validate_registration() rejects such
    passwords before they get here.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A corrupt stored hash or an over-long password is a mismatch, not an error.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("bcrypt rejected the password check input")
        return False


# Computed once at import so the first unknown-identifier login is not
# measurably faster or slower than later ones.
_DUMMY_HASH: str = hash_password("labauth_timing_dummy")


def burn_password_check(plain: str) -> None:
    """Run a full bcrypt comparison whose result is discarded."""
    verify_password(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------


class TokenError(str, enum.Enum):
    malformed = "malformed"
    invalid_signature = "invalid_signature"
    expired = "expired"


@dataclass
class TokenResult:
    """Outcome of TokenService.verify(): exactly one of claims / error is set."""

    claims: TokenClaims | None = None
    error: TokenError | None = None

    @property
    def ok(self) -> bool:
        return self.claims is not None


class TokenService:
    """Issues and verifies HS256 session tokens with a fixed lifetime.

    Usage:
        tokens = TokenService(settings.jwt_secret, settings.token_expire_seconds)
        token = tokens.issue(user.id, user.email, user.role)
        result = tokens.verify(token)
        if result.ok:
            result.claims.role
    """

    def __init__(self, secret: str, expire_seconds: int = 2 * 60 * 60) -> None:
        if not secret:
            raise ValueError("TokenService requires a non-empty signing secret.")
        self._secret = secret
        self.expire_seconds = expire_seconds

    def issue(self, user_id: int, email: str, role: str, now: datetime | None = None) -> str:
        """Encode a signed token for the given identity.

        now is injectable so tests can mint already-expired tokens.
        """
        issued = now or datetime.now(timezone.utc)
        payload = {
            "id": user_id,
            "email": email,
            "role": role,
            "iat": int(issued.timestamp()),
            "exp": int((issued + timedelta(seconds=self.expire_seconds)).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str) -> TokenResult:
        """Check signature, structure and expiry. Never raises for bad input."""
        try:
            jwt.get_unverified_claims(token)
        except JWTError:
            return TokenResult(error=TokenError.malformed)

        try:
            payload = jwt.decode(token, self._secret, algorithms=[_ALGORITHM])
        except ExpiredSignatureError:
            return TokenResult(error=TokenError.expired)
        except JWTError:
            return TokenResult(error=TokenError.invalid_signature)

        try:
            claims = TokenClaims(
                id=int(payload["id"]),
                email=str(payload["email"]),
                role=str(payload["role"]),
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (KeyError, TypeError, ValueError):
            # Correctly signed but missing identity claims.
            return TokenResult(error=TokenError.malformed)
        return TokenResult(claims=claims)
