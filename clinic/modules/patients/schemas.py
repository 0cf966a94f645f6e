import re
import uuid
from datetime import date, datetime
from typing import Literal
from pydantic import BaseModel, EmailStr, Field, field_validator
from clinic.core.clock import local_today
from clinic.core.paging import Pagination

PHONE_PATTERN = r"^09\d{9}$"
_UNSAFE_NAME_CHARS = re.compile(r"[<>\"'&]")

def _years_ago(today: date, years: int) -> date:
    try:
        return today.replace(year=today.year - years)
    except ValueError:  # Feb 29
        return today.replace(year=today.year - years, day=28)

class PatientFields(BaseModel):
    middle_name: str | None = Field(None, max_length=100)
    date_of_birth: date | None = None
    gender: str | None = Field(None, max_length=20)
    phone: str | None = Field(None, pattern=PHONE_PATTERN)
    email: EmailStr | None = None
    address: str | None = Field(None, max_length=500)
    emergency_contact_name: str | None = Field(None, max_length=200)
    emergency_contact_phone: str | None = Field(None, pattern=PHONE_PATTERN)
    medical_history: dict | None = None
    notes: str | None = Field(None, max_length=2000)

    @field_validator("first_name", "last_name", "middle_name", mode="before", check_fields=False)
    @classmethod
    def _clean_name(cls, v):
        if isinstance(v, str):
            v = _UNSAFE_NAME_CHARS.sub("", v).strip()
        return v

    @field_validator(
        "middle_name", "date_of_birth", "gender", "phone", "email", "address",
        "emergency_contact_name", "emergency_contact_phone", "notes",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("phone", "emergency_contact_phone", mode="before")
    @classmethod
    def _strip_phone(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("date_of_birth")
    @classmethod
    def _plausible_birth_date(cls, v: date | None):
        if v is None:
            return v
        today = local_today()
        if v > today:
            raise ValueError("Date of birth cannot be in the future")
        if v < _years_ago(today, 120):
            raise ValueError("Date of birth cannot be more than 120 years ago")
        return v

class PatientCreate(PatientFields):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    registration_source: Literal["manual", "qr-token", "online", "referral"] = "manual"

class PatientUpdate(PatientFields):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)

class PatientRegister(PatientFields):
    """Public self-registration form."""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    registration_source: Literal["online", "qr-token", "referral"] = "online"

class DenyRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)

    @field_validator("reason", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

class PatientOut(BaseModel):
    id: uuid.UUID
    patient_code: str
    first_name: str
    last_name: str
    middle_name: str | None
    date_of_birth: date | None
    gender: str | None
    phone: str | None
    email: str | None
    address: str | None
    emergency_contact_name: str | None
    emergency_contact_phone: str | None
    medical_history: dict | None
    notes: str | None
    registration_status: str
    registration_source: str
    consent_signed_at: datetime | None
    approved_at: datetime | None
    approved_by: uuid.UUID | None
    denied_at: datetime | None
    denied_by: uuid.UUID | None
    denial_reason: str | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class PatientBrief(BaseModel):
    id: uuid.UUID
    patient_code: str
    first_name: str
    last_name: str
    phone: str | None = None
    email: str | None = None

    class Config:
        from_attributes = True

class PatientPage(BaseModel):
    items: list[PatientOut]
    pagination: Pagination

class PatientStats(BaseModel):
    total_treatments: int
    total_amount_paid: float
    upcoming_appointments: int
    patient_since: datetime
    last_updated: datetime
