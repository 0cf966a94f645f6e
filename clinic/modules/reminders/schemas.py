import uuid
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, EmailStr, Field

ReminderType = Literal["24_hour", "day_of", "custom"]

class ReminderConfigIn(BaseModel):
    reminder_type: ReminderType
    hours_before: int = Field(..., ge=1, le=168)
    is_enabled: bool = True
    email_template_subject: str = Field(..., min_length=1, max_length=200)
    email_template_body: str = Field(..., min_length=10, max_length=5000)

class ReminderConfigUpdate(BaseModel):
    hours_before: int | None = Field(None, ge=1, le=168)
    is_enabled: bool | None = None
    email_template_subject: str | None = Field(None, min_length=1, max_length=200)
    email_template_body: str | None = Field(None, min_length=10, max_length=5000)

class ReminderConfigOut(BaseModel):
    id: uuid.UUID
    reminder_type: str
    hours_before: int
    is_enabled: bool
    email_template_subject: str
    email_template_body: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class ReminderStatistics(BaseModel):
    total_sent: int
    total_failed: int
    by_type: dict[str, int]

class ReminderOverview(BaseModel):
    configs: list[ReminderConfigOut]
    statistics: ReminderStatistics
    email_configured: bool

class ProcessResult(BaseModel):
    processed: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[str] = []

class TestReminderRequest(BaseModel):
    appointment_id: uuid.UUID
    reminder_type: ReminderType
    test_email: EmailStr | None = None
