import hmac
import uuid
from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.config import settings
from clinic.core.db import get_session
from clinic.core.security import get_optional_admin, Principal
from clinic.modules.reminders.schemas import (
    ReminderConfigIn, ReminderConfigUpdate, ReminderConfigOut, ReminderOverview, ProcessResult, TestReminderRequest,
)
from clinic.modules.reminders.service import ReminderService

router = APIRouter()
# admin session or scheduler secret, checked per request
scheduler_router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> ReminderService:
    return ReminderService(session)

def _cron_secret_ok(value: str | None) -> bool:
    if not settings.CRON_SECRET or not value:
        return False
    return hmac.compare_digest(value, settings.CRON_SECRET)

@router.get("/config", response_model=ReminderOverview)
async def get_config(service: ReminderService = Depends(svc)):
    return await service.overview()

@router.post("/config", response_model=ReminderConfigOut, status_code=201)
async def create_config(payload: ReminderConfigIn, service: ReminderService = Depends(svc)):
    return await service.create_config(payload)

@router.put("/config/{config_id}", response_model=ReminderConfigOut)
async def update_config(config_id: uuid.UUID, payload: ReminderConfigUpdate, service: ReminderService = Depends(svc)):
    return await service.update_config(config_id, payload)

@router.post("/test")
async def send_test(payload: TestReminderRequest, service: ReminderService = Depends(svc)):
    email_id = await service.send_test(payload.appointment_id, payload.reminder_type, payload.test_email)
    return {"success": True, "email_id": email_id}

@scheduler_router.post("/process", response_model=ProcessResult)
async def process_reminders(
    x_cron_secret: str | None = Header(None),
    principal: Principal | None = Depends(get_optional_admin),
    service: ReminderService = Depends(svc),
):
    if principal is None and not _cron_secret_ok(x_cron_secret):
        raise HTTPException(status_code=401, detail="Unauthorized")
    return await service.process()
