"""
Bearer token handling.

The identity provider issues an HS256 JWT whose payload carries
{"user": {"id": "<uuid>", "role": "user" | "admin"}}. This module turns
it into a RequestContext; the core never sees the token.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.config import AuthSettings
from src.models.ledger import GlobalRole, RequestContext, UserId


bearer_scheme = HTTPBearer(auto_error=False)


def issue_token(
    user_id: UserId,
    role: GlobalRole,
    settings: AuthSettings,
    lifetime: Optional[timedelta] = None,
) -> str:
    """Sign a bearer token for a user (used by tooling and tests)."""
    expires = datetime.now(timezone.utc) + (lifetime or timedelta(hours=settings.token_lifetime_hours))
    payload = {
        "user": {"id": str(user_id), "role": GlobalRole(role).value},
        "exp": expires,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: AuthSettings) -> RequestContext:
    """
    Verify a token and build the request context.

    Raises:
        ValueError: bad signature, expired token or malformed payload
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as e:
        raise ValueError(f"Invalid token: {e}")

    user = payload.get("user")
    if not isinstance(user, dict) or "id" not in user:
        raise ValueError("Token payload has no user")

    return RequestContext(
        user_id=UUID(str(user["id"])),
        global_role=GlobalRole(user.get("role", GlobalRole.USER.value)),
    )


def get_request_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> RequestContext:
    """FastAPI dependency: 401 unless a valid bearer token is present."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token, authorization denied",
        )
    try:
        return decode_token(credentials.credentials, request.app.state.auth_settings)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is not valid",
        )
