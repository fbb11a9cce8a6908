"""Login request and session user payloads."""
from pydantic import BaseModel

from salon.app.schemas.common import CamelModel


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class SessionUser(CamelModel):
    """Claims carried in the session token."""
    id: int
    username: str
    name: str
    role: str


class Session(CamelModel):
    token: str
    user: SessionUser
    max_age: int  # seconds
