"""Customer records, search and sort parameters."""
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from salon.app.schemas.common import CamelModel


class CustomerCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=3, max_length=32)
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    is_vip: bool = False

    @field_validator("name", "phone")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip()


class CustomerUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, min_length=3, max_length=32)
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    is_vip: Optional[bool] = None


class CustomerResponse(CamelModel):
    id: int
    name: str
    phone: str
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    total_visits: int
    total_spending: int
    loyalty_visits: int
    is_vip: bool
    last_visit: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
