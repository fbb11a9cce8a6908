"""
Treatment entry and history.

Create, update and delete keep the customer, service and therapist counters
in step with the treatment rows.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from salon.app.api.deps import get_treatment_service
from salon.app.api.envelope import ok
from salon.app.schemas.treatments import TreatmentCreate, TreatmentUpdate
from salon.app.services.aggregation_service import parse_target_date
from salon.app.services.treatment_service import TreatmentFilters, TreatmentService

router = APIRouter()


@router.get("")
async def list_treatments(
    date: Optional[str] = Query(None),
    therapist_id: Optional[int] = Query(None, alias="therapistId"),
    customer_id: Optional[int] = Query(None, alias="customerId"),
    service_id: Optional[int] = Query(None, alias="serviceId"),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    service: TreatmentService = Depends(get_treatment_service),
):
    filters = TreatmentFilters(
        day=parse_target_date(date) if date else None,
        therapist_id=therapist_id,
        customer_id=customer_id,
        service_id=service_id,
        search=search,
    )
    items, pagination, summary = await service.list(filters, page=page, limit=limit)
    return ok(items, pagination=pagination, summary=summary)


@router.post("", status_code=201)
async def create_treatment(
    payload: TreatmentCreate,
    service: TreatmentService = Depends(get_treatment_service),
):
    treatment = await service.create(payload)
    return ok(treatment, message="Treatment recorded")


@router.get("/{treatment_id}")
async def get_treatment(
    treatment_id: int,
    service: TreatmentService = Depends(get_treatment_service),
):
    return ok(await service.get(treatment_id))


@router.put("/{treatment_id}")
async def update_treatment(
    treatment_id: int,
    payload: TreatmentUpdate,
    service: TreatmentService = Depends(get_treatment_service),
):
    treatment = await service.update(treatment_id, payload)
    return ok(treatment, message="Treatment updated")


@router.delete("/{treatment_id}")
async def delete_treatment(
    treatment_id: int,
    service: TreatmentService = Depends(get_treatment_service),
):
    reverted = await service.delete(treatment_id)
    return ok(message="Treatment deleted", reverted=reverted)
