import re
import uuid
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.db import get_session
from clinic.core.paging import paginate
from clinic.modules.appointments.schemas import (
    AppointmentCreate, AppointmentUpdate, AppointmentOut, AppointmentPage, AppointmentStatus,
    AvailabilityOut, NotifyRequest,
)
from clinic.modules.appointments.service import AppointmentService, present

router = APIRouter()

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

def svc(session: AsyncSession = Depends(get_session)) -> AppointmentService:
    return AppointmentService(session)

@router.get("", response_model=AppointmentPage)
async def list_appointments(
    start_date: date | None = None,
    end_date: date | None = None,
    status: AppointmentStatus | None = None,
    patient_id: uuid.UUID | None = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: AppointmentService = Depends(svc),
):
    items, total = await service.list(
        start_date=start_date, end_date=end_date, status=status, patient_id=patient_id, limit=limit, offset=offset,
    )
    return {"appointments": items, "pagination": paginate(limit, offset, total)}

@router.post("", response_model=AppointmentOut, status_code=201)
async def create_appointment(payload: AppointmentCreate, service: AppointmentService = Depends(svc)):
    obj, patient = await service.create(payload)
    return present(obj, patient)

@router.get("/availability", response_model=AvailabilityOut, response_model_exclude_none=True)
async def availability(
    raw_date: str | None = Query(None, alias="date"),
    duration: int = Query(60, ge=15, le=240),
    service: AppointmentService = Depends(svc),
):
    if not raw_date:
        raise HTTPException(status_code=400, detail="Date parameter is required")
    try:
        if not _ISO_DATE.match(raw_date):
            raise ValueError(raw_date)
        day = date.fromisoformat(raw_date)
    except ValueError:
        raise HTTPException(status_code=400, detail="Date must be in YYYY-MM-DD format")
    return await service.availability(day, duration)

@router.post("/notify")
async def notify(payload: NotifyRequest, service: AppointmentService = Depends(svc)):
    email_id = await service.notify(payload.appointment_id)
    return {"success": True, "email_id": email_id}

@router.get("/{appointment_id}", response_model=AppointmentOut)
async def get_appointment(appointment_id: uuid.UUID, service: AppointmentService = Depends(svc)):
    obj, patient = await service.get(appointment_id)
    return present(obj, patient)

@router.put("/{appointment_id}", response_model=AppointmentOut)
async def update_appointment(
    appointment_id: uuid.UUID, payload: AppointmentUpdate, service: AppointmentService = Depends(svc),
):
    obj, patient = await service.update(appointment_id, payload)
    return present(obj, patient)

@router.delete("/{appointment_id}")
async def cancel_appointment(appointment_id: uuid.UUID, service: AppointmentService = Depends(svc)):
    obj = await service.cancel(appointment_id)
    return {"message": "Appointment cancelled successfully", "id": obj.id, "status": obj.status}