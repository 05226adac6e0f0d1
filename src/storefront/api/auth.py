"""Bearer-token authentication for the storefront API.

Tokens are HS256 JWTs issued elsewhere (user registration and login are not
part of this service). The ``sub`` claim is the user id, ``name`` the display
name used as the shipping recipient, and ``role`` marks administrators.
"""

import os
from dataclasses import dataclass

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ALGORITHM = "HS256"
ADMIN_ROLE = "admin"

_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    id: str
    name: str
    role: str = "customer"

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def decode_token(token: str) -> CurrentUser:
    secret = os.environ.get("AUTH_TOKEN_SECRET")
    if not secret:
        logger.error("AUTH_TOKEN_SECRET is not configured; rejecting all tokens")
        raise _unauthorized("Authentication is not configured")

    try:
        claims = jwt.decode(token, secret, algorithms=[ALGORITHM], options={"require": ["sub"]})
    except jwt.ExpiredSignatureError as exc:
        raise _unauthorized("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        logger.warning("Rejected bearer token", error=str(exc))
        raise _unauthorized("Invalid token") from exc

    return CurrentUser(
        id=str(claims["sub"]),
        name=claims.get("name") or str(claims["sub"]),
        role=claims.get("role", "customer"),
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> CurrentUser:
    """FastAPI dependency resolving the authenticated caller."""
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Not authenticated")
    return decode_token(credentials.credentials)


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Administrator role required")
    return user
