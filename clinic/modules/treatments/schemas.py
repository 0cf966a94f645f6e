import uuid
from datetime import date, datetime
from typing import Literal
from pydantic import BaseModel, Field
from clinic.core.paging import Pagination
from clinic.modules.patients.schemas import PatientBrief

PaymentStatus = Literal["pending", "partial", "paid"]

class TreatmentLineIn(BaseModel):
    procedure_id: uuid.UUID
    quantity: int = Field(1, ge=1)
    # defaults to the procedure's default_cost
    cost_per_unit: float | None = Field(None, ge=0)
    tooth_number: str | None = Field(None, max_length=16)
    notes: str | None = Field(None, max_length=1000)

class TreatmentCreate(BaseModel):
    patient_id: uuid.UUID
    appointment_id: uuid.UUID | None = None
    treatment_date: date | None = None
    payment_status: PaymentStatus = "pending"
    notes: str | None = Field(None, max_length=2000)
    procedures: list[TreatmentLineIn] = Field(..., min_length=1)

class TreatmentUpdate(BaseModel):
    treatment_date: date | None = None
    payment_status: PaymentStatus | None = None
    notes: str | None = Field(None, max_length=2000)
    procedures: list[TreatmentLineIn] | None = Field(None, min_length=1)

class ProcedureBrief(BaseModel):
    id: uuid.UUID
    name: str

class TreatmentLineOut(BaseModel):
    id: uuid.UUID
    procedure_id: uuid.UUID
    quantity: int
    cost_per_unit: float
    total_cost: float
    tooth_number: str | None
    notes: str | None
    procedure: ProcedureBrief | None = None

class TreatmentOut(BaseModel):
    id: uuid.UUID
    patient_id: uuid.UUID
    appointment_id: uuid.UUID | None
    treatment_date: date
    total_cost: float
    payment_status: str
    notes: str | None
    created_at: datetime
    updated_at: datetime
    patient: PatientBrief | None = None
    procedures: list[TreatmentLineOut] = []

class TreatmentPage(BaseModel):
    treatments: list[TreatmentOut]
    pagination: Pagination
