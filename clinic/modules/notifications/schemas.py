import uuid
from datetime import datetime
from pydantic import BaseModel, Field

class NotificationCreate(BaseModel):
    type: str = Field(..., min_length=1, max_length=48)
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=2000)

class NotificationOut(BaseModel):
    id: uuid.UUID
    type: str
    title: str
    message: str
    is_read: bool
    user_id: uuid.UUID | None = None
    patient_id: uuid.UUID | None = None
    created_at: datetime

    class Config:
        from_attributes = True

class NotificationList(BaseModel):
    notifications: list[NotificationOut]
    unread_count: int
