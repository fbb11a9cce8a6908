"""
Service catalogue. Listing is public so the feedback form can show it.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from salon.app.api.envelope import ok
from salon.app.core.database import get_db
from salon.app.core.security import Role, require_role
from salon.app.schemas.catalog import ServiceCreate, ServiceResponse, ServiceUpdate
from salon.app.services.catalog_service import ServiceCatalog

router = APIRouter()
admin_only = [Depends(require_role(Role.ADMIN))]


@router.get("")
async def list_services(
    active: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    services = await ServiceCatalog(db).list(active=active)
    return ok([ServiceResponse.model_validate(s) for s in services])


@router.post("", status_code=201, dependencies=admin_only)
async def create_service(payload: ServiceCreate, db: AsyncSession = Depends(get_db)):
    service = await ServiceCatalog(db).create(payload)
    return ok(ServiceResponse.model_validate(service), message="Service created")


@router.get("/{service_id}", dependencies=admin_only)
async def get_service(service_id: int, db: AsyncSession = Depends(get_db)):
    return ok(ServiceResponse.model_validate(await ServiceCatalog(db).get(service_id)))


@router.put("/{service_id}", dependencies=admin_only)
async def update_service(service_id: int, payload: ServiceUpdate, db: AsyncSession = Depends(get_db)):
    service = await ServiceCatalog(db).update(service_id, payload)
    return ok(ServiceResponse.model_validate(service), message="Service updated")


@router.delete("/{service_id}", dependencies=admin_only)
async def delete_service(service_id: int, db: AsyncSession = Depends(get_db)):
    await ServiceCatalog(db).delete(service_id)
    return ok(message="Service deleted")
