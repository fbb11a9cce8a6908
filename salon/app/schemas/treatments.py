"""Treatment create/update payloads and list summaries."""
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from salon.app.schemas.common import CamelModel, to_wall_clock

_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class TreatmentCreate(CamelModel):
    date: datetime
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_id: Optional[int] = None
    phone: Optional[str] = None  # Links an existing customer when customerId is absent
    service_id: int
    therapist_id: int
    price: int = Field(..., ge=0)
    tip_amount: int = Field(0, ge=0)
    payment_method: str = "cash"
    is_free_visit: bool = False
    start_time: Optional[str] = Field(None, pattern=_TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=_TIME_PATTERN)
    notes: Optional[str] = None

    @field_validator("date")
    @classmethod
    def wall_clock(cls, v: datetime) -> datetime:
        return to_wall_clock(v)


class TreatmentUpdate(CamelModel):
    date: Optional[datetime] = None
    customer_name: Optional[str] = Field(None, min_length=1, max_length=255)
    service_id: Optional[int] = None
    therapist_id: Optional[int] = None
    price: Optional[int] = Field(None, ge=0)
    tip_amount: Optional[int] = Field(None, ge=0)
    payment_method: Optional[str] = None
    is_free_visit: Optional[bool] = None
    start_time: Optional[str] = Field(None, pattern=_TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=_TIME_PATTERN)
    notes: Optional[str] = None

    @field_validator("date")
    @classmethod
    def wall_clock(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_wall_clock(v)


class TreatmentResponse(CamelModel):
    id: int
    date: datetime
    customer_id: Optional[int] = None
    customer_name: str
    customer_phone: Optional[str] = None
    service_id: int
    service_name: str
    therapist_id: int
    therapist_name: str
    therapist_initial: str
    price: int
    tip_amount: int
    payment_method: str
    is_free_visit: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    notes: Optional[str] = None
    therapist_fee: int
    therapist_earnings: int
    revenue: int
    profit: int
    has_feedback: bool = False
    # Set on creation when the visit used up the customer's loyalty reward
    loyalty_redeemed: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TreatmentListSummary(CamelModel):
    total: int
    free_visits: int = 0
    total_revenue: int
    total_tips: int
    total_therapist_earnings: int
    average_price: int
    average_tip: int


class TreatmentReverted(CamelModel):
    customer_spending: int
    therapist_earnings: int
    service_popularity: int
