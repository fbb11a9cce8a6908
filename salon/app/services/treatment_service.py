"""
Treatment bookkeeping.

A treatment row carries counters elsewhere: customer visits, spending and
loyalty, service popularity, therapist treatment count and earnings, and the
snapshot of its month once that month is closed. Every mutation changes the
row and those counters inside one transaction, so either all of them move or
none do.

A registered customer whose loyalty count has reached the threshold gets
their next treatment free; redeeming it resets the count. Paid visits add
one to the count, free visits add nothing to spending.
"""
import logging
import math
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import AsyncGenerator, List, Optional, Tuple, Type

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from salon.app.core.database import Database
from salon.app.core.errors import ConflictError, NotFoundError, QueryFailed, ValidationError
from salon.app.models.customer_orm import CustomerORM
from salon.app.models.feedback_orm import FeedbackORM
from salon.app.models.service_orm import ServiceORM
from salon.app.models.therapist_orm import TherapistORM
from salon.app.models.treatment_orm import TreatmentORM
from salon.app.schemas.common import Pagination
from salon.app.schemas.treatments import (
    TreatmentCreate,
    TreatmentListSummary,
    TreatmentResponse,
    TreatmentReverted,
    TreatmentUpdate,
)
from salon.app.services.aggregation_service import day_window
from salon.app.services.bookkeeping_service import refresh_month_snapshot

logger = logging.getLogger(__name__)

# Columns that may not be cleared through an update
_REQUIRED_FIELDS = {
    "date", "customer_name", "service_id", "therapist_id",
    "price", "tip_amount", "payment_method", "is_free_visit",
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def therapist_earnings(therapist: Optional[TherapistORM], price: int, tip: int) -> int:
    """Base fee plus commission on the price plus the full tip."""
    if therapist is None:
        return round_half_up(tip or 0)
    return round_half_up(
        (therapist.base_fee_per_treatment or 0)
        + (price or 0) * (therapist.commission_rate or 0)
        + (tip or 0)
    )


def customer_spending(price: Optional[int], is_free_visit: Optional[bool]) -> int:
    """What one visit adds to the customer's total spending."""
    return 0 if is_free_visit else (price or 0)


@dataclass
class TreatmentFilters:
    day: Optional[date] = None
    therapist_id: Optional[int] = None
    customer_id: Optional[int] = None
    service_id: Optional[int] = None
    search: Optional[str] = None


def to_response(treatment: TreatmentORM) -> TreatmentResponse:
    service = treatment.service
    therapist = treatment.therapist
    fee = service.therapist_fee if service is not None else 0
    revenue = 0 if treatment.is_free_visit else treatment.price
    return TreatmentResponse(
        id=treatment.id,
        date=treatment.date,
        customer_id=treatment.customer_id,
        customer_name=treatment.customer_name,
        customer_phone=treatment.customer.phone if treatment.customer is not None else None,
        service_id=treatment.service_id,
        service_name=service.name if service is not None else treatment.service_name,
        therapist_id=treatment.therapist_id,
        therapist_name=therapist.full_name if therapist is not None else "Unknown",
        therapist_initial=therapist.initial if therapist is not None else "",
        price=treatment.price,
        tip_amount=treatment.tip_amount,
        payment_method=treatment.payment_method,
        is_free_visit=treatment.is_free_visit,
        start_time=treatment.start_time,
        end_time=treatment.end_time,
        notes=treatment.notes,
        therapist_fee=fee,
        therapist_earnings=therapist_earnings(therapist, treatment.price, treatment.tip_amount),
        revenue=revenue,
        profit=revenue - (0 if treatment.is_free_visit else fee),
        has_feedback=treatment.feedback is not None,
        created_at=treatment.created_at,
        updated_at=treatment.updated_at,
    )


class TreatmentService:
    def __init__(self, database: Database, loyalty_threshold: int = 3):
        self.database = database
        self.loyalty_threshold = loyalty_threshold

    @asynccontextmanager
    async def _transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """One transaction per mutation; any exception rolls everything back."""
        try:
            async with self.database.session_factory() as session:
                async with session.begin():
                    yield session
        except IntegrityError as e:
            raise ConflictError("Conflicting data", details=str(e.orig))
        except SQLAlchemyError as e:
            raise QueryFailed(details=str(e))

    @staticmethod
    def _with_relations(stmt):
        return stmt.options(
            selectinload(TreatmentORM.customer),
            selectinload(TreatmentORM.service),
            selectinload(TreatmentORM.therapist),
            selectinload(TreatmentORM.feedback),
        )

    async def _load(self, session: AsyncSession, treatment_id: int) -> TreatmentORM:
        result = await session.execute(
            self._with_relations(select(TreatmentORM))
            .where(TreatmentORM.id == treatment_id)
            .execution_options(populate_existing=True)
        )
        treatment = result.scalar_one_or_none()
        if treatment is None:
            raise NotFoundError("Treatment not found")
        return treatment

    @staticmethod
    async def _require(session: AsyncSession, model: Type, pk: int, message: str):
        obj = await session.get(model, pk)
        if obj is None:
            raise NotFoundError(message)
        return obj

    async def _resolve_customer(self, session: AsyncSession, payload: TreatmentCreate) -> Optional[CustomerORM]:
        if payload.customer_id is not None:
            return await self._require(session, CustomerORM, payload.customer_id, "Customer not found")
        if payload.phone and payload.phone.strip():
            result = await session.execute(
                select(CustomerORM).where(CustomerORM.phone == payload.phone.strip())
            )
            return result.scalar_one_or_none()
        return None

    async def create(self, payload: TreatmentCreate) -> TreatmentResponse:
        async with self._transaction() as session:
            service = await self._require(session, ServiceORM, payload.service_id, "Service not found")
            therapist = await self._require(session, TherapistORM, payload.therapist_id, "Therapist not found")
            customer = await self._resolve_customer(session, payload)

            redeemed = customer is not None and (customer.loyalty_visits or 0) >= self.loyalty_threshold
            is_free_visit = payload.is_free_visit or redeemed

            treatment = TreatmentORM(
                date=payload.date,
                customer_id=customer.id if customer is not None else None,
                customer_name=payload.customer_name.strip(),
                service_id=service.id,
                service_name=service.name,
                therapist_id=therapist.id,
                price=payload.price,
                tip_amount=payload.tip_amount,
                payment_method=payload.payment_method,
                is_free_visit=is_free_visit,
                start_time=payload.start_time,
                end_time=payload.end_time,
                notes=payload.notes,
            )
            session.add(treatment)

            if customer is not None:
                customer.total_visits = (customer.total_visits or 0) + 1
                customer.total_spending = (customer.total_spending or 0) + customer_spending(
                    payload.price, is_free_visit
                )
                if redeemed:
                    customer.loyalty_visits = 0
                elif not is_free_visit:
                    customer.loyalty_visits = (customer.loyalty_visits or 0) + 1
                customer.last_visit = datetime.now(timezone.utc)
            service.popularity = (service.popularity or 0) + 1
            earnings = therapist_earnings(therapist, payload.price, payload.tip_amount)
            therapist.total_treatments = (therapist.total_treatments or 0) + 1
            therapist.total_earnings = (therapist.total_earnings or 0) + earnings

            await session.flush()
            await refresh_month_snapshot(session, payload.date.year, payload.date.month)
            treatment = await self._load(session, treatment.id)
            response = to_response(treatment).model_copy(update={"loyalty_redeemed": redeemed})

        logger.info(
            f"Treatment {response.id} created",
            extra={"extra_data": {
                "treatment_id": response.id,
                "therapist_id": response.therapist_id,
                "price": response.price,
                "is_free_visit": response.is_free_visit,
                "loyalty_redeemed": redeemed,
            }},
        )
        return response

    async def update(self, treatment_id: int, payload: TreatmentUpdate) -> TreatmentResponse:
        changes = payload.model_dump(exclude_unset=True)
        cleared = sorted(k for k, v in changes.items() if v is None and k in _REQUIRED_FIELDS)
        if cleared:
            raise ValidationError("Invalid request", details=f"Fields cannot be null: {', '.join(cleared)}")

        async with self._transaction() as session:
            treatment = await self._load(session, treatment_id)

            old_price, old_tip = treatment.price, treatment.tip_amount
            old_free, old_date = treatment.is_free_visit, treatment.date
            old_service, old_therapist = treatment.service, treatment.therapist
            old_earnings = therapist_earnings(old_therapist, old_price, old_tip)

            new_service = old_service
            if changes.get("service_id", treatment.service_id) != treatment.service_id:
                new_service = await self._require(session, ServiceORM, changes["service_id"], "Service not found")
            new_therapist = old_therapist
            if changes.get("therapist_id", treatment.therapist_id) != treatment.therapist_id:
                new_therapist = await self._require(
                    session, TherapistORM, changes["therapist_id"], "Therapist not found"
                )

            new_price = changes.get("price", old_price)
            new_tip = changes.get("tip_amount", old_tip)
            new_free = changes.get("is_free_visit", old_free)
            new_earnings = therapist_earnings(new_therapist, new_price, new_tip)

            customer = treatment.customer
            spending_delta = customer_spending(new_price, new_free) - customer_spending(old_price, old_free)
            if customer is not None and spending_delta:
                customer.total_spending = max(0, (customer.total_spending or 0) + spending_delta)

            if new_service is not old_service:
                if old_service is not None:
                    old_service.popularity = max(0, (old_service.popularity or 0) - 1)
                new_service.popularity = (new_service.popularity or 0) + 1
                treatment.service = new_service
                treatment.service_name = new_service.name

            if new_therapist is not old_therapist:
                if old_therapist is not None:
                    old_therapist.total_treatments = max(0, (old_therapist.total_treatments or 0) - 1)
                    old_therapist.total_earnings = (old_therapist.total_earnings or 0) - old_earnings
                new_therapist.total_treatments = (new_therapist.total_treatments or 0) + 1
                new_therapist.total_earnings = (new_therapist.total_earnings or 0) + new_earnings
                treatment.therapist = new_therapist
            elif new_therapist is not None and new_earnings != old_earnings:
                new_therapist.total_earnings = (new_therapist.total_earnings or 0) + new_earnings - old_earnings

            for field in ("date", "customer_name", "price", "tip_amount", "payment_method",
                          "is_free_visit", "start_time", "end_time", "notes"):
                if field in changes:
                    setattr(treatment, field, changes[field])

            await session.flush()
            for year, month in {(old_date.year, old_date.month), (treatment.date.year, treatment.date.month)}:
                await refresh_month_snapshot(session, year, month)
            treatment = await self._load(session, treatment_id)
            response = to_response(treatment)

        logger.info(
            f"Treatment {treatment_id} updated",
            extra={"extra_data": {"treatment_id": treatment_id, "fields": sorted(changes)}},
        )
        return response

    async def delete(self, treatment_id: int) -> TreatmentReverted:
        """
        Delete a treatment together with its feedback and roll back the
        counters it contributed to.
        """
        async with self._transaction() as session:
            treatment = await self._load(session, treatment_id)
            spending = customer_spending(treatment.price, treatment.is_free_visit)
            earnings = therapist_earnings(treatment.therapist, treatment.price, treatment.tip_amount)
            month = (treatment.date.year, treatment.date.month)

            await session.execute(delete(FeedbackORM).where(FeedbackORM.treatment_id == treatment_id))
            await session.execute(delete(TreatmentORM).where(TreatmentORM.id == treatment_id))

            await self._revert_customer(session, treatment.customer, spending, paid=not treatment.is_free_visit)
            await self._revert_service(session, treatment.service)
            await self._revert_therapist(session, treatment.therapist, earnings)
            await refresh_month_snapshot(session, *month)

            reverted = TreatmentReverted(
                customer_spending=spending if treatment.customer is not None else 0,
                therapist_earnings=earnings,
                service_popularity=1 if treatment.service is not None else 0,
            )

        logger.info(
            f"Treatment {treatment_id} deleted",
            extra={"extra_data": {"treatment_id": treatment_id, **reverted.model_dump()}},
        )
        return reverted

    async def _revert_customer(
        self, session: AsyncSession, customer: Optional[CustomerORM], spending: int, paid: bool
    ) -> None:
        if customer is None:
            return
        customer.total_visits = max(0, (customer.total_visits or 0) - 1)
        customer.total_spending = max(0, (customer.total_spending or 0) - spending)
        # A redeemed reset is not restored
        if paid:
            customer.loyalty_visits = max(0, (customer.loyalty_visits or 0) - 1)
        if (customer.loyalty_visits or 0) > customer.total_visits:
            customer.loyalty_visits = customer.total_visits
        await session.flush()

    async def _revert_service(self, session: AsyncSession, service: Optional[ServiceORM]) -> None:
        if service is None:
            return
        service.popularity = max(0, (service.popularity or 0) - 1)
        await session.flush()

    async def _revert_therapist(self, session: AsyncSession, therapist: Optional[TherapistORM], earnings: int) -> None:
        if therapist is None:
            return
        therapist.total_treatments = max(0, (therapist.total_treatments or 0) - 1)
        therapist.total_earnings = (therapist.total_earnings or 0) - earnings
        await session.flush()

    async def get(self, treatment_id: int) -> TreatmentResponse:
        async with self.database.session_factory() as session:
            return to_response(await self._load(session, treatment_id))

    async def list(
        self,
        filters: Optional[TreatmentFilters] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[TreatmentResponse], Pagination, TreatmentListSummary]:
        filters = filters or TreatmentFilters()
        conditions = []
        if filters.day is not None:
            start, end = day_window(filters.day)
            conditions.extend([TreatmentORM.date >= start, TreatmentORM.date < end])
        if filters.therapist_id is not None:
            conditions.append(TreatmentORM.therapist_id == filters.therapist_id)
        if filters.customer_id is not None:
            conditions.append(TreatmentORM.customer_id == filters.customer_id)
        if filters.service_id is not None:
            conditions.append(TreatmentORM.service_id == filters.service_id)
        if filters.search:
            pattern = f"%{filters.search}%"
            conditions.append(or_(
                TreatmentORM.customer_name.ilike(pattern),
                TreatmentORM.service_name.ilike(pattern),
                TreatmentORM.notes.ilike(pattern),
            ))

        async with self.database.session_factory() as session:
            totals = await session.execute(
                select(
                    TreatmentORM.price,
                    TreatmentORM.is_free_visit,
                    TreatmentORM.tip_amount,
                    TherapistORM.base_fee_per_treatment,
                    TherapistORM.commission_rate,
                )
                .outerjoin(TherapistORM, TherapistORM.id == TreatmentORM.therapist_id)
                .where(*conditions)
            )
            rows = totals.all()

            result = await session.execute(
                self._with_relations(select(TreatmentORM))
                .where(*conditions)
                .order_by(TreatmentORM.date.desc(), TreatmentORM.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
            items = [to_response(t) for t in result.scalars().all()]

        total = len(rows)
        # Free visits bring in no revenue and stay out of the average price
        paid = [price for price, is_free, _, _, _ in rows if not is_free]
        total_revenue = sum(paid)
        total_tips = sum(tip for _, _, tip, _, _ in rows)
        total_earnings = sum(
            round_half_up((base or 0) + price * (rate or 0) + tip) for price, _, tip, base, rate in rows
        )
        summary = TreatmentListSummary(
            total=total,
            free_visits=total - len(paid),
            total_revenue=total_revenue,
            total_tips=total_tips,
            total_therapist_earnings=total_earnings,
            average_price=round_half_up(total_revenue / len(paid)) if paid else 0,
            average_tip=round_half_up(total_tips / total) if total else 0,
        )
        pagination = Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit) if limit else 0)
        return items, pagination, summary
