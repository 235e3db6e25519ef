"""
Admin authentication: JWT verification and the FastAPI dependency that turns
a bearer token into the acting admin.

Admins are issued tokens elsewhere; this service only verifies them. The
payload carries the admin username in `sub` and an `is_super_admin` flag.
"""
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from mediarating.core.config import settings
from mediarating.core.datetime_utils import utc_now
from mediarating.core.error_responses import ErrorMessages

# Missing credentials are turned into 401 below rather than HTTPBearer's default
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class ActingAdmin:
    """The authenticated admin performing an operation."""

    username: str
    is_super_admin: bool = False

    def can_manage(self, created_by: str) -> bool:
        """Owners and super admins may mutate a test."""
        return self.is_super_admin or self.username == created_by


def create_access_token(
    username: str,
    is_super_admin: bool = False,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed admin access token.

    Args:
        username: Admin username, stored in the `sub` claim
        is_super_admin: Whether the admin may act on any test
        expires_delta: Optional custom expiration time delta

    Returns:
        Encoded JWT token string
    """
    now = utc_now()
    expire = now + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {
        "sub": username,
        "is_super_admin": is_super_admin,
        "type": "access",
        "exp": expire,
        "iat": now,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(
        to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM
    )


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a JWT token.

    Returns:
        Decoded token payload if valid, None if invalid or expired
    """
    try:
        return jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        return None


def _raise_unauthorized(detail: str) -> None:
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_acting_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> ActingAdmin:
    """
    Resolve the acting admin from the Authorization header.

    Raises:
        HTTPException: 401 if the token is missing, invalid or malformed
    """
    if credentials is None:
        _raise_unauthorized(ErrorMessages.AUTH_REQUIRED)

    payload = decode_token(credentials.credentials)  # type: ignore[union-attr]
    if payload is None or payload.get("type") != "access":
        _raise_unauthorized(ErrorMessages.INVALID_TOKEN)

    username = payload.get("sub")  # type: ignore[union-attr]
    if not username:
        _raise_unauthorized(ErrorMessages.INVALID_TOKEN_PAYLOAD)

    return ActingAdmin(
        username=username,
        is_super_admin=bool(payload.get("is_super_admin", False)),  # type: ignore[union-attr]
    )
