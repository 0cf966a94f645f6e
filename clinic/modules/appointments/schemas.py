import uuid
from datetime import date, datetime, time
from typing import Literal
from pydantic import BaseModel, Field, field_validator
from clinic.core.paging import Pagination
from clinic.modules.patients.schemas import PatientBrief

AppointmentStatus = Literal["scheduled", "completed", "cancelled", "no-show"]

def _wall_clock(v: time | None) -> time | None:
    if v is not None and v.tzinfo is not None:
        raise ValueError("Appointment time must be local clinic time without a UTC offset")
    return v

class _TextFields(BaseModel):
    reason: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=1000)

    @field_validator("reason", "notes", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

class AppointmentCreate(_TextFields):
    patient_id: uuid.UUID
    appointment_date: date
    appointment_time: time
    duration_minutes: int = Field(60, ge=15, le=240)
    status: AppointmentStatus = "scheduled"

    check_local_time = field_validator("appointment_time")(_wall_clock)

class AppointmentUpdate(_TextFields):
    # any subset of fields
    patient_id: uuid.UUID | None = None
    appointment_date: date | None = None
    appointment_time: time | None = None
    duration_minutes: int | None = Field(None, ge=15, le=240)
    status: AppointmentStatus | None = None

    check_local_time = field_validator("appointment_time")(_wall_clock)

class AppointmentOut(BaseModel):
    id: uuid.UUID
    patient_id: uuid.UUID
    appointment_date: date
    appointment_time: time
    duration_minutes: int
    status: str
    reason: str | None
    notes: str | None
    email_sent: bool
    created_at: datetime
    updated_at: datetime
    patient: PatientBrief | None = None

class AppointmentPage(BaseModel):
    appointments: list[AppointmentOut]
    pagination: Pagination

class AvailabilityOut(BaseModel):
    date: date
    duration: int
    available_slots: list[str]
    business_hours: dict | None = None
    total_slots: int = 0
    message: str | None = None

class NotifyRequest(BaseModel):
    appointment_id: uuid.UUID
