"""
Authentication router.

Login sets the session token as an HTTP-only cookie; ``/me`` reports the
user behind the cookie and ``/logout`` clears it.
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from salon.app.api.envelope import ok
from salon.app.core.database import get_db
from salon.app.core.security import get_auth_service, get_current_user
from salon.app.schemas.auth import LoginRequest, SessionUser
from salon.app.services.auth_service import AuthService

router = APIRouter()


@router.post("/login")
async def login(
    credentials: LoginRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    db: AsyncSession = Depends(get_db),
):
    """
    Exchange username and password for a session cookie.
    """
    session = await auth_service.login(db, credentials.username, credentials.password)
    response.set_cookie(
        key=auth_service.cookie_name,
        value=session.token,
        max_age=session.max_age,
        httponly=True,
        secure=auth_service.settings.auth_cookie_secure,
        samesite="lax",
        path="/",
    )
    return ok(message="Login successful", user=session.user)


@router.get("/me")
async def me(user: SessionUser = Depends(get_current_user)):
    return ok(authenticated=True, user=user)


@router.post("/logout")
async def logout(response: Response, auth_service: AuthService = Depends(get_auth_service)):
    response.delete_cookie(auth_service.cookie_name, path="/")
    return ok(message="Logged out")
