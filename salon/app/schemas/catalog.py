"""Service and therapist schemas."""
from datetime import datetime
from typing import Optional

from pydantic import Field, model_validator

from salon.app.schemas.common import CamelModel


class ServiceCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    normal_price: int = Field(..., ge=0)
    promo_price: Optional[int] = Field(None, ge=0)
    duration: int = Field(..., gt=0)
    therapist_fee: int = Field(0, ge=0)
    is_active: bool = True

    @model_validator(mode="after")
    def check_prices(self) -> "ServiceCreate":
        if self.promo_price is not None and self.promo_price > self.normal_price:
            raise ValueError("promoPrice must not exceed normalPrice")
        if self.therapist_fee > self.normal_price:
            raise ValueError("therapistFee must not exceed normalPrice")
        return self


class ServiceUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    normal_price: Optional[int] = Field(None, ge=0)
    promo_price: Optional[int] = Field(None, ge=0)
    duration: Optional[int] = Field(None, gt=0)
    therapist_fee: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class ServiceResponse(CamelModel):
    id: int
    name: str
    category: str
    description: Optional[str] = None
    normal_price: int
    promo_price: Optional[int] = None
    duration: int
    therapist_fee: int
    is_active: bool
    popularity: int
    created_at: Optional[datetime] = None


class TherapistCreate(CamelModel):
    initial: str = Field(..., min_length=1, max_length=10)
    full_name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = None
    base_fee_per_treatment: int = Field(0, ge=0)
    commission_rate: float = Field(0.0, ge=0.0, le=1.0)
    is_active: bool = True


class TherapistUpdate(CamelModel):
    initial: Optional[str] = Field(None, min_length=1, max_length=10)
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = None
    base_fee_per_treatment: Optional[int] = Field(None, ge=0)
    commission_rate: Optional[float] = Field(None, ge=0.0, le=1.0)
    is_active: Optional[bool] = None


class TherapistResponse(CamelModel):
    id: int
    initial: str
    full_name: str
    phone: Optional[str] = None
    base_fee_per_treatment: int
    commission_rate: float
    total_treatments: int
    total_earnings: int
    average_rating: float
    is_active: bool
    created_at: Optional[datetime] = None
