from typing import Optional

from fastapi import APIRouter, Depends, Query

from salon.app.api.deps import get_bookkeeping_service
from salon.app.api.envelope import ok
from salon.app.schemas.bookkeeping import CloseMonthRequest, MonthlyBookkeepingResponse
from salon.app.services.bookkeeping_service import BookkeepingService

router = APIRouter()


@router.get("")
async def list_bookkeeping(
    year: Optional[int] = Query(None),
    service: BookkeepingService = Depends(get_bookkeeping_service),
):
    records = await service.list(year)
    return ok([MonthlyBookkeepingResponse.model_validate(r) for r in records])


@router.post("/close")
async def close_month(
    payload: CloseMonthRequest,
    service: BookkeepingService = Depends(get_bookkeeping_service),
):
    """Snapshot the month's totals. Closing a month again refreshes the snapshot."""
    record = await service.close_month(payload)
    return ok(
        MonthlyBookkeepingResponse.model_validate(record),
        message=f"Closed {payload.year}-{payload.month:02d}",
    )


@router.delete("/{record_id}")
async def delete_bookkeeping(
    record_id: int,
    service: BookkeepingService = Depends(get_bookkeeping_service),
):
    await service.delete(record_id)
    return ok(message="Bookkeeping record deleted")
