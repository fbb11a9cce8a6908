from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from salon.app.api.envelope import ok
from salon.app.core.database import get_db
from salon.app.schemas.customers import CustomerCreate, CustomerResponse, CustomerUpdate
from salon.app.services.catalog_service import CustomerService

router = APIRouter()


@router.get("")
async def list_customers(
    search: Optional[str] = Query(None),
    vip: Optional[bool] = Query(None),
    sort_by: str = Query("name", alias="sortBy"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    customers, pagination = await CustomerService(db).list(
        search=search, vip=vip, sort_by=sort_by, order=order, page=page, limit=limit
    )
    return ok([CustomerResponse.model_validate(c) for c in customers], pagination=pagination)


@router.post("", status_code=201)
async def create_customer(payload: CustomerCreate, db: AsyncSession = Depends(get_db)):
    customer = await CustomerService(db).create(payload)
    return ok(CustomerResponse.model_validate(customer), message="Customer created")


@router.get("/{customer_id}")
async def get_customer(customer_id: int, db: AsyncSession = Depends(get_db)):
    customer = await CustomerService(db).get(customer_id)
    return ok(CustomerResponse.model_validate(customer))


@router.put("/{customer_id}")
async def update_customer(customer_id: int, payload: CustomerUpdate, db: AsyncSession = Depends(get_db)):
    customer = await CustomerService(db).update(customer_id, payload)
    return ok(CustomerResponse.model_validate(customer), message="Customer updated")


@router.delete("/{customer_id}")
async def delete_customer(customer_id: int, db: AsyncSession = Depends(get_db)):
    await CustomerService(db).delete(customer_id)
    return ok(message="Customer deleted")
