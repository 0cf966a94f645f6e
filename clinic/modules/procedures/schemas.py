import uuid
from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from clinic.core.paging import Pagination

class ProcedureCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    default_cost: float = Field(0, ge=0)
    estimated_duration: int | None = Field(None, ge=0)
    is_active: bool = True

    @field_validator("name", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

class ProcedureUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    default_cost: float | None = Field(None, ge=0)
    estimated_duration: int | None = Field(None, ge=0)
    is_active: bool | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

class ProcedureOut(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None
    default_cost: float
    estimated_duration: int | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class ProcedurePage(BaseModel):
    procedures: list[ProcedureOut]
    pagination: Pagination
