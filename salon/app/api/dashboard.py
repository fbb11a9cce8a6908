"""Dashboard summary endpoint."""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from salon.app.api.deps import get_aggregation_service
from salon.app.api.envelope import ok
from salon.app.services.aggregation_service import AggregationService, parse_target_date

router = APIRouter()


@router.get("/dashboard-summary")
async def dashboard_summary(
    date: Optional[str] = Query(None, description="Target day, YYYY-MM-DD; defaults to today"),
    service: AggregationService = Depends(get_aggregation_service),
):
    """
    Today's and month-to-date totals plus customer and catalogue counts.
    """
    target = parse_target_date(date)
    summary = await service.dashboard_summary(target)
    return ok(summary)
