import uuid
from typing import Literal
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.db import get_session
from clinic.core.paging import paginate, SortOrder
from clinic.core.security import get_current_admin, Principal
from clinic.modules.patients.schemas import (
    PatientCreate, PatientUpdate, PatientRegister, PatientOut, PatientPage, PatientStats, DenyRequest,
)
from clinic.modules.patients.service import PatientService

router = APIRouter()
# mounted without the admin gate
public_router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> PatientService:
    return PatientService(session)

@public_router.post("/register")
async def register_patient(payload: PatientRegister, service: PatientService = Depends(svc)):
    obj = await service.register(payload)
    return {
        "success": True,
        "message": "Registration submitted successfully. You will receive an email once it has been reviewed.",
        "patient_id": obj.id,
    }

@router.get("", response_model=PatientPage)
async def list_patients(
    search: str | None = None,
    registration_status: Literal["pending", "approved", "denied"] | None = None,
    sort_by: Literal["created_at", "first_name", "last_name"] = "created_at",
    sort_order: SortOrder = "desc",
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: PatientService = Depends(svc),
):
    items, total = await service.list(
        search=search, registration_status=registration_status,
        sort_by=sort_by, sort_order=sort_order, limit=limit, offset=offset,
    )
    return {"items": items, "pagination": paginate(limit, offset, total)}

@router.post("", response_model=PatientOut, status_code=201)
async def create_patient(payload: PatientCreate, service: PatientService = Depends(svc)):
    return await service.create(payload)

@router.get("/{patient_id}", response_model=PatientOut)
async def get_patient(patient_id: uuid.UUID, service: PatientService = Depends(svc)):
    return await service.get(patient_id)

@router.put("/{patient_id}", response_model=PatientOut)
async def update_patient(patient_id: uuid.UUID, payload: PatientUpdate, service: PatientService = Depends(svc)):
    return await service.update(patient_id, payload)

@router.delete("/{patient_id}")
async def delete_patient(patient_id: uuid.UUID, service: PatientService = Depends(svc)):
    obj = await service.delete(patient_id)
    return {
        "message": "Patient deleted successfully",
        "deleted_patient": {
            "id": obj.id,
            "patient_code": obj.patient_code,
            "first_name": obj.first_name,
            "last_name": obj.last_name,
        },
    }

@router.get("/{patient_id}/stats", response_model=PatientStats)
async def patient_stats(patient_id: uuid.UUID, service: PatientService = Depends(svc)):
    return await service.stats(patient_id)

@router.post("/{patient_id}/approve", response_model=PatientOut)
async def approve_patient(
    patient_id: uuid.UUID,
    principal: Principal = Depends(get_current_admin),
    service: PatientService = Depends(svc),
):
    return await service.approve(patient_id, principal.user_id)

@router.post("/{patient_id}/deny", response_model=PatientOut)
async def deny_patient(
    patient_id: uuid.UUID,
    payload: DenyRequest,
    principal: Principal = Depends(get_current_admin),
    service: PatientService = Depends(svc),
):
    return await service.deny(patient_id, principal.user_id, payload.reason)
