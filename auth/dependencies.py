"""
auth/dependencies.py -- FastAPI Depends() helpers forming the access gate.

Two stages, always in this order:
  1. require_token()  -- Authorization: Bearer <token> must be present (else 401)
                         and verify (else 403 with the specific reason). The
                         verified claims are stored on request.state.claims.
  2. require_admin()  -- claims.role must be "admin" (else 403 forbidden).

require_admin depends on require_token, so the role check can never run for
an unauthenticated request.

The gate is stateless: it trusts the signed claims and does not hit the
credential store, so a disabled account keeps access until its token expires.

Layer rule: no imports from api/. This module may import from fastapi
because it is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from auth.models import ROLE_ADMIN, TokenClaims
from auth.tokens import TokenError, TokenService

_TOKEN_FAILURES = {
    TokenError.malformed: ("token_malformed", "Token is malformed."),
    TokenError.invalid_signature: ("token_invalid", "Token is invalid."),
    TokenError.expired: ("token_expired", "Token has expired."),
}


def extract_bearer_token(request: Request) -> str | None:
    """Return the token from an 'Authorization: Bearer <token>' header, or None.

    Any other scheme (e.g. Basic) counts as no credential at all.
    """
    header = request.headers.get("Authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return value.strip() or None


def require_token(request: Request) -> TokenClaims:
    """Authentication stage. Raises 401 if no token, 403 if the token is rejected."""
    token = extract_bearer_token(request)
    if token is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        )

    tokens: TokenService = request.app.state.tokens
    result = tokens.verify(token)
    if not result.ok:
        code, message = _TOKEN_FAILURES[result.error]
        raise HTTPException(status_code=403, detail={"code": code, "message": message})

    request.state.claims = result.claims
    return result.claims


def require_admin(claims: TokenClaims = Depends(require_token)) -> TokenClaims:
    """Authorization stage. Raises 403 unless the verified role is admin."""
    if claims.role != ROLE_ADMIN:
        raise HTTPException(
            status_code=403,
            detail={"code": "forbidden", "message": "Admin access required."},
        )
    return claims
