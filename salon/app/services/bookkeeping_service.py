"""
Monthly bookkeeping.

Closing a month stores a snapshot of its totals. Once a month is closed,
every treatment mutation touching that month recomputes the snapshot inside
the mutation's own transaction, so a closed month never drifts from its
treatments.
"""
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from salon.app.core.errors import NotFoundError
from salon.app.models.bookkeeping_orm import MonthlyBookkeepingORM
from salon.app.schemas.bookkeeping import CloseMonthRequest
from salon.app.schemas.dashboard import PeriodSummary
from salon.app.services.aggregation_service import (
    AggregationService,
    month_window,
    period_rows_query,
    summarize_treatments,
)

logger = logging.getLogger(__name__)


async def _find(session: AsyncSession, year: int, month: int) -> Optional[MonthlyBookkeepingORM]:
    result = await session.execute(
        select(MonthlyBookkeepingORM).where(
            MonthlyBookkeepingORM.year == year,
            MonthlyBookkeepingORM.month == month,
        )
    )
    return result.scalar_one_or_none()


def _apply(record: MonthlyBookkeepingORM, summary: PeriodSummary) -> None:
    record.total_revenue = summary.revenue
    record.total_therapist_fees = summary.therapist_fees
    record.total_treatments = summary.treatments
    record.free_treatments = summary.free_treatments


async def refresh_month_snapshot(session: AsyncSession, year: int, month: int) -> Optional[MonthlyBookkeepingORM]:
    """
    Recompute a closed month's totals with the caller's session.

    Months without a snapshot are left alone; returns the refreshed record
    or None.
    """
    record = await _find(session, year, month)
    if record is None:
        return None

    result = await session.execute(period_rows_query(*month_window(year, month)))
    _apply(record, summarize_treatments(tuple(row) for row in result.all()))
    await session.flush()

    logger.debug(f"Snapshot {year}-{month:02d} refreshed")
    return record


class BookkeepingService:
    def __init__(self, db: AsyncSession, aggregation: AggregationService):
        self.db = db
        self.aggregation = aggregation

    async def list(self, year: Optional[int] = None) -> List[MonthlyBookkeepingORM]:
        stmt = select(MonthlyBookkeepingORM).order_by(
            MonthlyBookkeepingORM.year.desc(), MonthlyBookkeepingORM.month.desc()
        )
        if year is not None:
            stmt = stmt.where(MonthlyBookkeepingORM.year == year)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def close_month(self, request: CloseMonthRequest) -> MonthlyBookkeepingORM:
        """Snapshot a month's totals; closing it again overwrites the snapshot."""
        summary = await self.aggregation.month_summary(request.year, request.month)

        record = await _find(self.db, request.year, request.month)
        if record is None:
            record = MonthlyBookkeepingORM(year=request.year, month=request.month)
            self.db.add(record)

        _apply(record, summary)
        if request.notes is not None:
            record.notes = request.notes
        await self.db.flush()
        await self.db.refresh(record)

        logger.info(
            f"Closed {request.year}-{request.month:02d}",
            extra={"extra_data": {"year": request.year, "month": request.month, **summary.model_dump()}},
        )
        return record

    async def delete(self, record_id: int) -> None:
        record = await self.db.get(MonthlyBookkeepingORM, record_id)
        if record is None:
            raise NotFoundError("Bookkeeping record not found")
        await self.db.delete(record)
        await self.db.flush()
