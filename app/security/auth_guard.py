# =============================================================================
# File: app/security/auth_guard.py - Bearer token guard
# =============================================================================
# Responsibilities:
# - Reject requests without a well-formed 'Authorization: Bearer <token>'
# - Token verification is a stub: the literal token "invalid" is refused,
#   any other token maps to a fixed user
# =============================================================================

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import Header
from pydantic import BaseModel, Field

from app.common.exceptions.exceptions import AuthenticationError

log = logging.getLogger("message_service.security.auth_guard")

BEARER_PREFIX = "Bearer "


class AuthenticatedUser(BaseModel):
    """Identity attached to a request that passed the guard"""
    id: str
    roles: List[str] = Field(default_factory=list)


def validate_token(token: str) -> AuthenticatedUser:
    """Stub verification; swap for real JWT validation when an identity provider exists."""
    if token == "invalid":
        raise AuthenticationError("Invalid token")
    return AuthenticatedUser(id="user-id-from-token", roles=["user"])


def authenticate_header(authorization: Optional[str]) -> AuthenticatedUser:
    if not authorization:
        raise AuthenticationError("Missing authentication token")

    if not authorization.startswith(BEARER_PREFIX):
        raise AuthenticationError("Invalid authentication token format")

    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise AuthenticationError("Empty authentication token")

    return validate_token(token)


async def require_bearer_token(
        authorization: Optional[str] = Header(default=None),
) -> AuthenticatedUser:
    """
    FastAPI dependency for HTTP endpoints.
    - Expects 'Authorization: Bearer <token>'.
    - Returns the authenticated user or raises AuthenticationError (401).
    """
    user = authenticate_header(authorization)
    log.debug(f"Authenticated request for user {user.id}")
    return user
