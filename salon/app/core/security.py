"""
Security helpers for the salon admin area.

Sessions are HS256 JWTs (python-jose) stored in an HTTP-only cookie. The
signing secret comes from the Settings object handed to AuthService at
startup; nothing here reads a process-wide secret.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, TYPE_CHECKING

from fastapi import Depends, Request
from jose import jwt

from salon.app.core.config import Settings
from salon.app.core.errors import AuthError, ConfigurationError
from salon.app.schemas.auth import SessionUser

if TYPE_CHECKING:
    from salon.app.services.auth_service import AuthService


# Role definitions
class Role:
    ADMIN = "admin"


def create_access_token(data: dict, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    """
    Generate a signed JWT token.
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str, settings: Settings) -> dict:
    """Verify signature and expiry; raises jose.JWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])


def get_auth_service(request: Request) -> "AuthService":
    auth_service = getattr(request.app.state, "auth_service", None)
    if auth_service is None:
        raise ConfigurationError("Authentication not configured")
    return auth_service


def extract_token(request: Request, cookie_name: str) -> Optional[str]:
    """Session cookie first, then an ``Authorization: Bearer`` header."""
    token = request.cookies.get(cookie_name)
    if token:
        return token
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


async def get_current_user(
    request: Request,
    auth_service: "AuthService" = Depends(get_auth_service),
) -> SessionUser:
    """
    Validate the session token and return its user.
    """
    token = extract_token(request, auth_service.cookie_name)
    return auth_service.validate_session(token)


def require_role(*roles: str):
    """Dependency factory restricting a route to the given roles."""

    async def _check(user: SessionUser = Depends(get_current_user)) -> SessionUser:
        if roles and user.role not in roles:
            raise AuthError("Not enough permissions", details=f"Required role: {', '.join(roles)}")
        return user

    return _check
