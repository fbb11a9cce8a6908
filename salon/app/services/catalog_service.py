"""
Customer, service and therapist management.

These services work on the request-scoped session from ``get_db``; the
session dependency commits when the endpoint returns.
"""
import logging
import math
from typing import Any, Dict, List, Optional, Tuple, Type

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from salon.app.core.errors import ConflictError, NotFoundError, ValidationError
from salon.app.models.customer_orm import CustomerORM
from salon.app.models.service_orm import ServiceORM
from salon.app.models.therapist_orm import TherapistORM
from salon.app.models.treatment_orm import TreatmentORM
from salon.app.schemas.catalog import ServiceCreate, ServiceUpdate, TherapistCreate, TherapistUpdate
from salon.app.schemas.common import Pagination
from salon.app.schemas.customers import CustomerCreate, CustomerUpdate

logger = logging.getLogger(__name__)

CUSTOMER_SORT_COLUMNS = {
    "name": CustomerORM.name,
    "totalSpending": CustomerORM.total_spending,
    "totalVisits": CustomerORM.total_visits,
    "lastVisit": CustomerORM.last_visit,
    "createdAt": CustomerORM.created_at,
}


async def _get_or_404(db: AsyncSession, model: Type, pk: int, label: str):
    obj = await db.get(model, pk)
    if obj is None:
        raise NotFoundError(f"{label} not found")
    return obj


async def _ensure_unreferenced(db: AsyncSession, column, pk: int, label: str) -> None:
    result = await db.execute(select(func.count(TreatmentORM.id)).where(column == pk))
    count = result.scalar() or 0
    if count:
        raise ConflictError(
            f"{label} has treatments and cannot be deleted",
            details=f"{count} treatment(s) reference this {label.lower()}",
        )


def _apply(obj: Any, changes: Dict[str, Any]) -> None:
    for field, value in changes.items():
        setattr(obj, field, value)


class CustomerService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _ensure_phone_free(self, phone: str, exclude_id: Optional[int] = None) -> None:
        stmt = select(CustomerORM.id).where(CustomerORM.phone == phone)
        if exclude_id is not None:
            stmt = stmt.where(CustomerORM.id != exclude_id)
        result = await self.db.execute(stmt)
        if result.first() is not None:
            raise ConflictError("Customer with this phone already exists")

    async def list(
        self,
        search: Optional[str] = None,
        vip: Optional[bool] = None,
        sort_by: str = "name",
        order: str = "asc",
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[CustomerORM], Pagination]:
        conditions = []
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(
                CustomerORM.name.ilike(pattern),
                CustomerORM.phone.ilike(pattern),
                CustomerORM.email.ilike(pattern),
            ))
        if vip is not None:
            conditions.append(CustomerORM.is_vip.is_(vip))

        column = CUSTOMER_SORT_COLUMNS.get(sort_by, CustomerORM.name)
        ordering = column.desc() if order == "desc" else column.asc()

        total = (await self.db.execute(
            select(func.count(CustomerORM.id)).where(*conditions)
        )).scalar() or 0
        result = await self.db.execute(
            select(CustomerORM)
            .where(*conditions)
            .order_by(ordering, CustomerORM.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        pagination = Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit) if limit else 0)
        return list(result.scalars().all()), pagination

    async def get(self, customer_id: int) -> CustomerORM:
        return await _get_or_404(self.db, CustomerORM, customer_id, "Customer")

    async def create(self, payload: CustomerCreate) -> CustomerORM:
        await self._ensure_phone_free(payload.phone)
        customer = CustomerORM(**payload.model_dump())
        self.db.add(customer)
        await self.db.flush()
        logger.info(f"Customer {customer.id} created")
        return customer

    async def update(self, customer_id: int, payload: CustomerUpdate) -> CustomerORM:
        customer = await self.get(customer_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        if "phone" in changes:
            changes["phone"] = changes["phone"].strip()
            await self._ensure_phone_free(changes["phone"], exclude_id=customer_id)
        _apply(customer, changes)
        await self.db.flush()
        await self.db.refresh(customer)
        return customer

    async def delete(self, customer_id: int) -> None:
        customer = await self.get(customer_id)
        await _ensure_unreferenced(self.db, TreatmentORM.customer_id, customer_id, "Customer")
        await self.db.delete(customer)
        await self.db.flush()
        logger.info(f"Customer {customer_id} deleted")


class ServiceCatalog:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self, active: Optional[bool] = None) -> List[ServiceORM]:
        stmt = select(ServiceORM).order_by(ServiceORM.category, ServiceORM.name)
        if active is not None:
            stmt = stmt.where(ServiceORM.is_active.is_(active))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get(self, service_id: int) -> ServiceORM:
        return await _get_or_404(self.db, ServiceORM, service_id, "Service")

    async def create(self, payload: ServiceCreate) -> ServiceORM:
        service = ServiceORM(**payload.model_dump())
        self.db.add(service)
        await self.db.flush()
        logger.info(f"Service {service.id} created")
        return service

    async def update(self, service_id: int, payload: ServiceUpdate) -> ServiceORM:
        service = await self.get(service_id)
        changes = payload.model_dump(exclude_unset=True)
        # promoPrice may be cleared explicitly; other fields ignore nulls
        changes = {k: v for k, v in changes.items() if v is not None or k in ("promo_price", "description")}
        _apply(service, changes)
        if service.promo_price is not None and service.promo_price > service.normal_price:
            raise ValidationError("promoPrice must not exceed normalPrice")
        if service.therapist_fee > service.normal_price:
            raise ValidationError("therapistFee must not exceed normalPrice")
        await self.db.flush()
        await self.db.refresh(service)
        return service

    async def delete(self, service_id: int) -> None:
        service = await self.get(service_id)
        await _ensure_unreferenced(self.db, TreatmentORM.service_id, service_id, "Service")
        await self.db.delete(service)
        await self.db.flush()
        logger.info(f"Service {service_id} deleted")


class TherapistRoster:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self, active: Optional[bool] = None) -> List[TherapistORM]:
        stmt = select(TherapistORM).order_by(TherapistORM.full_name)
        if active is not None:
            stmt = stmt.where(TherapistORM.is_active.is_(active))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get(self, therapist_id: int) -> TherapistORM:
        return await _get_or_404(self.db, TherapistORM, therapist_id, "Therapist")

    async def create(self, payload: TherapistCreate) -> TherapistORM:
        therapist = TherapistORM(**payload.model_dump())
        self.db.add(therapist)
        await self.db.flush()
        logger.info(f"Therapist {therapist.id} created")
        return therapist

    async def update(self, therapist_id: int, payload: TherapistUpdate) -> TherapistORM:
        therapist = await self.get(therapist_id)
        changes = payload.model_dump(exclude_unset=True)
        changes = {k: v for k, v in changes.items() if v is not None or k == "phone"}
        _apply(therapist, changes)
        await self.db.flush()
        await self.db.refresh(therapist)
        return therapist

    async def delete(self, therapist_id: int) -> None:
        therapist = await self.get(therapist_id)
        await _ensure_unreferenced(self.db, TreatmentORM.therapist_id, therapist_id, "Therapist")
        await self.db.delete(therapist)
        await self.db.flush()
        logger.info(f"Therapist {therapist_id} deleted")
