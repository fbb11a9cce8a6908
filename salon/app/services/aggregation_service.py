"""
Dashboard and period report aggregation.

All reads for a summary are issued concurrently, each on its own session,
and reduced once every one of them has returned. The first failing read
cancels the others and the whole summary fails; there are no partial
results. Reads are independent snapshots and may observe slightly
different instants.
"""
import asyncio
import logging
from datetime import date, datetime, timedelta
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Tuple

from sqlalchemy import Select, distinct, func, select
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from salon.app.core.database import Database
from salon.app.core.errors import DataUnavailable, QueryFailed, ValidationError
from salon.app.models.bookkeeping_orm import MonthlyBookkeepingORM
from salon.app.models.customer_orm import CustomerORM
from salon.app.models.service_orm import ServiceORM
from salon.app.models.therapist_orm import TherapistORM
from salon.app.models.treatment_orm import TreatmentORM
from salon.app.schemas.dashboard import (
    CustomerStats,
    DashboardSummary,
    PeriodReport,
    PeriodSummary,
    SystemStats,
    TodaySummary,
    TreatmentDetail,
)

logger = logging.getLogger(__name__)

# (price, is_free_visit, service therapist fee)
TreatmentRow = Tuple[Optional[int], Optional[bool], Optional[int]]


def summarize_treatments(rows: Iterable[TreatmentRow]) -> PeriodSummary:
    """
    Reduce treatment rows to period totals.

    Free visits are counted but add nothing to revenue or fees. Paid visits
    add their recorded price and the service's configured therapist fee.
    """
    treatments = revenue = therapist_fees = free_treatments = 0
    for price, is_free_visit, therapist_fee in rows:
        treatments += 1
        if is_free_visit:
            free_treatments += 1
            continue
        revenue += int(price or 0)
        therapist_fees += int(therapist_fee or 0)

    return PeriodSummary(
        treatments=treatments,
        revenue=revenue,
        therapist_fees=therapist_fees,
        free_treatments=free_treatments,
        profit=revenue - therapist_fees,
    )


def parse_target_date(value: Optional[str]) -> date:
    """Parse ``YYYY-MM-DD``; empty means today."""
    if not value:
        return date.today()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("Invalid date", details=f"Expected YYYY-MM-DD, got {value!r}")


def day_window(day: date) -> Tuple[datetime, datetime]:
    start = datetime(day.year, day.month, day.day)
    return start, start + timedelta(days=1)


def month_to_date_window(day: date) -> Tuple[datetime, datetime]:
    start = datetime(day.year, day.month, 1)
    return start, datetime(day.year, day.month, day.day) + timedelta(days=1)


def month_window(year: int, month: int) -> Tuple[datetime, datetime]:
    start = datetime(year, month, 1)
    if month == 12:
        return start, datetime(year + 1, 1, 1)
    return start, datetime(year, month + 1, 1)


def week_window(day: date) -> Tuple[datetime, datetime]:
    """Monday 00:00 of the week containing ``day`` to the next Monday."""
    start = datetime(day.year, day.month, day.day) - timedelta(days=day.weekday())
    return start, start + timedelta(days=7)


def year_window(year: int) -> Tuple[datetime, datetime]:
    return datetime(year, 1, 1), datetime(year + 1, 1, 1)


PERIODS = ("daily", "weekly", "monthly", "yearly")


def period_window(period: str, day: date) -> Tuple[datetime, datetime]:
    if period == "daily":
        return day_window(day)
    if period == "weekly":
        return week_window(day)
    if period == "monthly":
        return month_window(day.year, day.month)
    if period == "yearly":
        return year_window(day.year)
    raise ValidationError("Invalid period", details=f"Expected one of {', '.join(PERIODS)}, got {period!r}")


def period_rows_query(start: datetime, end: datetime) -> Select:
    """``(price, is_free_visit, service therapist fee)`` for treatments in ``[start, end)``."""
    return (
        select(TreatmentORM.price, TreatmentORM.is_free_visit, ServiceORM.therapist_fee)
        .outerjoin(ServiceORM, ServiceORM.id == TreatmentORM.service_id)
        .where(TreatmentORM.date >= start, TreatmentORM.date < end)
    )


def _error_message(exc: BaseException) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


class AggregationService:
    def __init__(self, database: Database, loyalty_threshold: int = 3):
        self.database = database
        self.loyalty_threshold = loyalty_threshold

    async def _read(self, name: str, query: Callable[[AsyncSession], Awaitable[Any]]) -> Any:
        """Run one read on its own session, translating store errors."""
        try:
            async with self.database.session_factory() as session:
                return await query(session)
        except OSError as e:
            raise DataUnavailable(details=f"{name}: {e}")
        except DBAPIError as e:
            if e.connection_invalidated:
                raise DataUnavailable(details=f"{name}: {_error_message(e)}")
            raise QueryFailed(details=f"{name}: {_error_message(e)}")
        except SQLAlchemyError as e:
            raise QueryFailed(details=f"{name}: {_error_message(e)}")

    async def _fan_out(self, *reads: Awaitable[Any]) -> List[Any]:
        tasks = [asyncio.ensure_future(r) for r in reads]
        try:
            return await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _treatments_between(self, name: str, start: datetime, end: datetime) -> List[TreatmentORM]:
        async def query(session: AsyncSession) -> List[TreatmentORM]:
            result = await session.execute(
                select(TreatmentORM)
                .options(
                    selectinload(TreatmentORM.customer),
                    selectinload(TreatmentORM.service),
                    selectinload(TreatmentORM.therapist),
                )
                .where(TreatmentORM.date >= start, TreatmentORM.date < end)
                .order_by(TreatmentORM.created_at.desc(), TreatmentORM.id.desc())
            )
            return list(result.scalars().all())

        return await self._read(name, query)

    async def _period_rows(self, start: datetime, end: datetime, name: str = "period_treatments") -> List[TreatmentRow]:
        async def query(session: AsyncSession) -> List[TreatmentRow]:
            result = await session.execute(period_rows_query(start, end))
            return [tuple(row) for row in result.all()]

        return await self._read(name, query)

    async def _count(self, name: str, stmt) -> int:
        async def query(session: AsyncSession) -> int:
            result = await session.execute(stmt)
            return int(result.scalar() or 0)

        return await self._read(name, query)

    async def dashboard_summary(self, target: Optional[date] = None) -> DashboardSummary:
        target = target or date.today()
        today_start, today_end = day_window(target)
        month_start, month_end = month_to_date_window(target)

        (
            today_treatments,
            monthly_rows,
            total_customers,
            active_services,
            active_therapists,
            ready_for_free,
        ) = await self._fan_out(
            self._treatments_between("today_treatments", today_start, today_end),
            self._period_rows(month_start, month_end),
            self._count("customers", select(func.count(CustomerORM.id))),
            self._count(
                "active_services",
                select(func.count(ServiceORM.id)).where(ServiceORM.is_active.is_(True)),
            ),
            self._count(
                "active_therapists",
                select(func.count(TherapistORM.id)).where(TherapistORM.is_active.is_(True)),
            ),
            self._count(
                "loyalty_customers",
                select(func.count(CustomerORM.id)).where(CustomerORM.loyalty_visits == self.loyalty_threshold),
            ),
        )

        today_totals = summarize_treatments(
            (t.price, t.is_free_visit, t.service.therapist_fee if t.service else 0)
            for t in today_treatments
        )
        details = [
            TreatmentDetail(
                id=t.id,
                customer_name=t.customer.name if t.customer else (t.customer_name or "Customer"),
                service_name=t.service.name if t.service else (t.service_name or "Service"),
                therapist_name=t.therapist.full_name if t.therapist else "Unknown",
                price=int(t.price or 0),
                is_free_visit=bool(t.is_free_visit),
                created_at=t.created_at,
            )
            for t in today_treatments
        ]

        summary = DashboardSummary(
            date=target.isoformat(),
            today=TodaySummary(**today_totals.model_dump(), treatments_detail=details),
            monthly=summarize_treatments(monthly_rows),
            customers=CustomerStats(total=total_customers, ready_for_free=ready_for_free),
            system=SystemStats(active_services=active_services, active_therapists=active_therapists),
        )

        logger.info(
            "Dashboard summary computed",
            extra={"extra_data": {
                "date": summary.date,
                "today_treatments": summary.today.treatments,
                "monthly_treatments": summary.monthly.treatments,
                "total_customers": total_customers,
            }},
        )
        return summary

    async def month_summary(self, year: int, month: int) -> PeriodSummary:
        start, end = month_window(year, month)
        rows = await self._period_rows(start, end)
        return summarize_treatments(rows)

    async def _month_snapshot(self, year: int, month: int) -> Optional[MonthlyBookkeepingORM]:
        async def query(session: AsyncSession) -> Optional[MonthlyBookkeepingORM]:
            result = await session.execute(
                select(MonthlyBookkeepingORM).where(
                    MonthlyBookkeepingORM.year == year,
                    MonthlyBookkeepingORM.month == month,
                )
            )
            return result.scalar_one_or_none()

        return await self._read("monthly_bookkeeping", query)

    async def period_summary(self, period: str, ref_date: Optional[date] = None) -> PeriodReport:
        """
        Totals for the daily, weekly (Monday to Sunday), monthly or yearly
        window around ``ref_date``. A monthly report for a month with a
        bookkeeping snapshot reports the snapshot's totals.
        """
        ref_date = ref_date or date.today()
        start, end = period_window(period, ref_date)

        reads = [
            self._period_rows(start, end, name=f"{period}_treatments"),
            self._count(
                f"{period}_customers",
                select(func.count(distinct(TreatmentORM.customer_id))).where(
                    TreatmentORM.date >= start,
                    TreatmentORM.date < end,
                    TreatmentORM.customer_id.is_not(None),
                ),
            ),
        ]
        if period == "monthly":
            reads.append(self._month_snapshot(ref_date.year, ref_date.month))
        rows, customers, *rest = await self._fan_out(*reads)

        totals = summarize_treatments(rows)
        source = "treatments"
        snapshot = rest[0] if rest else None
        if snapshot is not None:
            totals = PeriodSummary(
                treatments=snapshot.total_treatments,
                revenue=snapshot.total_revenue,
                therapist_fees=snapshot.total_therapist_fees,
                free_treatments=snapshot.free_treatments,
                profit=snapshot.total_revenue - snapshot.total_therapist_fees,
            )
            source = "bookkeeping"

        return PeriodReport(
            **totals.model_dump(),
            period=period,
            start=start.date(),
            end=(end - timedelta(days=1)).date(),
            customers=customers,
            source=source,
        )
