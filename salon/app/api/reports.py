"""Period revenue reports."""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from salon.app.api.deps import get_aggregation_service
from salon.app.api.envelope import ok
from salon.app.services.aggregation_service import AggregationService, parse_target_date

router = APIRouter()


@router.get("")
async def period_report(
    period: str = Query("monthly", description="daily, weekly, monthly or yearly"),
    date: Optional[str] = Query(None, description="Any day inside the period, YYYY-MM-DD; defaults to today"),
    service: AggregationService = Depends(get_aggregation_service),
):
    report = await service.period_summary(period, parse_target_date(date))
    return ok(report)
