import uuid
from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.db import get_session
from clinic.core.paging import paginate
from clinic.modules.treatments.schemas import TreatmentCreate, TreatmentUpdate, TreatmentOut, TreatmentPage, PaymentStatus
from clinic.modules.treatments.service import TreatmentService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> TreatmentService:
    return TreatmentService(session)

@router.get("", response_model=TreatmentPage)
async def list_treatments(
    start_date: date | None = None,
    end_date: date | None = None,
    payment_status: PaymentStatus | None = None,
    patient_id: uuid.UUID | None = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    service: TreatmentService = Depends(svc),
):
    items, total = await service.list(
        start_date=start_date, end_date=end_date, payment_status=payment_status,
        patient_id=patient_id, limit=limit, offset=offset,
    )
    return {"treatments": items, "pagination": paginate(limit, offset, total)}

@router.post("", response_model=TreatmentOut, status_code=201)
async def create_treatment(payload: TreatmentCreate, service: TreatmentService = Depends(svc)):
    return await service.create(payload)

@router.get("/{treatment_id}", response_model=TreatmentOut)
async def get_treatment(treatment_id: uuid.UUID, service: TreatmentService = Depends(svc)):
    return await service.get(treatment_id)

@router.put("/{treatment_id}", response_model=TreatmentOut)
async def update_treatment(treatment_id: uuid.UUID, payload: TreatmentUpdate, service: TreatmentService = Depends(svc)):
    return await service.update(treatment_id, payload)

@router.delete("/{treatment_id}")
async def delete_treatment(treatment_id: uuid.UUID, service: TreatmentService = Depends(svc)):
    deleted_id = await service.delete(treatment_id)
    return {"message": "Treatment deleted successfully", "id": deleted_id}
