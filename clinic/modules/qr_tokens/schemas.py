import uuid
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, Field
from clinic.core.paging import Pagination
from clinic.modules.patients.schemas import PatientRegister

QRType = Literal["generic", "reusable", "single-use"]
TokenStatus = Literal["active", "used", "expired"]

class QRTokenCreate(BaseModel):
    qr_type: QRType = "single-use"
    expiration_hours: int = Field(24, ge=1, le=8760)
    note: str | None = Field(None, max_length=500)

class QRTokenOut(BaseModel):
    id: uuid.UUID
    token: str
    qr_type: str
    reusable: bool
    used: bool
    usage_count: int
    expires_at: datetime | None
    note: str | None
    created_by: uuid.UUID | None
    created_at: datetime
    updated_at: datetime
    registration_url: str
    is_expired: bool
    is_used: bool
    status: TokenStatus

class QRTokenPage(BaseModel):
    tokens: list[QRTokenOut]
    pagination: Pagination

class ValidateRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=64)

class QRRegistrationRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=64)
    patient_data: PatientRegister
