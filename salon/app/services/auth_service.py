import logging
from datetime import timedelta
from typing import Optional

import bcrypt
from jose import JWTError
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from salon.app.core.config import Settings
from salon.app.core.errors import AuthError, ValidationError
from salon.app.core.security import Role, create_access_token, decode_access_token
from salon.app.models.admin_orm import AdminORM
from salon.app.schemas.auth import Session, SessionUser

logger = logging.getLogger(__name__)


def hash_password(plain: str) -> str:
    """Hash a password using direct bcrypt."""
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(plain.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a password against a hash using direct bcrypt."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError as e:
        logger.error(f"Password verification error: {e}")
        return False


async def get_admin_by_username(db: AsyncSession, username: str) -> Optional[AdminORM]:
    result = await db.execute(select(AdminORM).where(AdminORM.username == username))
    return result.scalar_one_or_none()


class AuthService:
    """
    The single login/session component.

    ``login`` exchanges credentials for a signed session token and
    ``validate_session`` turns a token back into its user. Every login page
    variant calls these two operations.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def cookie_name(self) -> str:
        return self.settings.auth_cookie_name

    @property
    def session_max_age(self) -> int:
        return self.settings.access_token_expire_minutes * 60

    async def login(self, db: AsyncSession, username: str, password: str) -> Session:
        if not username or not password:
            raise ValidationError("Username and password required")

        admin = await get_admin_by_username(db, username)
        if admin is None or not admin.is_active or not verify_password(password, admin.hashed_password):
            logger.info(f"Rejected login for {username!r}")
            raise AuthError("Invalid credentials")

        user = SessionUser(id=admin.id, username=admin.username, name=admin.name, role=admin.role)
        token = create_access_token(
            {"sub": admin.username, **user.model_dump()},
            self.settings,
            expires_delta=timedelta(minutes=self.settings.access_token_expire_minutes),
        )
        logger.info(f"Login successful for {username!r}")
        return Session(token=token, user=user, max_age=self.session_max_age)

    def validate_session(self, token: Optional[str]) -> SessionUser:
        if not token:
            raise AuthError("No token provided")
        try:
            payload = decode_access_token(token, self.settings)
            return SessionUser(
                id=payload["id"],
                username=payload["username"],
                name=payload.get("name", payload["username"]),
                role=payload.get("role", Role.ADMIN),
            )
        except JWTError as e:
            raise AuthError("Invalid token", details=str(e))
        except (KeyError, PydanticValidationError):
            raise AuthError("Invalid token", details="Token is missing required claims")


async def create_admin(db: AsyncSession, username: str, password: str, name: str) -> AdminORM:
    admin = AdminORM(
        username=username,
        hashed_password=hash_password(password),
        name=name,
        role=Role.ADMIN,
        is_active=True,
    )
    db.add(admin)
    await db.flush()
    return admin


async def seed_admin(db: AsyncSession, settings: Settings) -> Optional[AdminORM]:
    """Seed the configured admin on first startup. Password from env vars."""
    if not settings.admin_password:
        return None
    existing = await db.execute(select(AdminORM).limit(1))
    if existing.scalar_one_or_none():
        return None
    admin = await create_admin(db, settings.admin_username, settings.admin_password, settings.admin_name)
    logger.info(f"Seeded default admin {settings.admin_username!r}")
    return admin
