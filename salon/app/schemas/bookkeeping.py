"""Monthly bookkeeping snapshot schemas."""
from datetime import datetime
from typing import Optional

from pydantic import Field

from salon.app.schemas.common import CamelModel


class CloseMonthRequest(CamelModel):
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    notes: Optional[str] = None


class MonthlyBookkeepingResponse(CamelModel):
    id: int
    year: int
    month: int
    total_revenue: int
    total_therapist_fees: int
    total_treatments: int
    free_treatments: int
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None
