from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from salon.app.api.envelope import ok
from salon.app.core.database import get_db
from salon.app.schemas.catalog import TherapistCreate, TherapistResponse, TherapistUpdate
from salon.app.services.catalog_service import TherapistRoster

router = APIRouter()


@router.get("")
async def list_therapists(
    active: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    therapists = await TherapistRoster(db).list(active=active)
    return ok([TherapistResponse.model_validate(t) for t in therapists])


@router.post("", status_code=201)
async def create_therapist(payload: TherapistCreate, db: AsyncSession = Depends(get_db)):
    therapist = await TherapistRoster(db).create(payload)
    return ok(TherapistResponse.model_validate(therapist), message="Therapist created")


@router.get("/{therapist_id}")
async def get_therapist(therapist_id: int, db: AsyncSession = Depends(get_db)):
    return ok(TherapistResponse.model_validate(await TherapistRoster(db).get(therapist_id)))


@router.put("/{therapist_id}")
async def update_therapist(therapist_id: int, payload: TherapistUpdate, db: AsyncSession = Depends(get_db)):
    therapist = await TherapistRoster(db).update(therapist_id, payload)
    return ok(TherapistResponse.model_validate(therapist), message="Therapist updated")


@router.delete("/{therapist_id}")
async def delete_therapist(therapist_id: int, db: AsyncSession = Depends(get_db)):
    await TherapistRoster(db).delete(therapist_id)
    return ok(message="Therapist deleted")
