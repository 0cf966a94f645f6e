import uuid
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.db import get_session
from clinic.core.security import get_current_admin, Principal
from clinic.modules.notifications.schemas import NotificationCreate, NotificationOut, NotificationList
from clinic.modules.notifications.service import NotificationsService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> NotificationsService:
    return NotificationsService(session)

@router.get("/notifications", response_model=NotificationList)
async def list_notifications(
    principal: Principal = Depends(get_current_admin),
    service: NotificationsService = Depends(svc),
):
    items, unread = await service.list_for(principal.user_id)
    return {"notifications": items, "unread_count": unread}

@router.post("/notifications", response_model=NotificationOut, status_code=201)
async def create_notification(
    payload: NotificationCreate,
    principal: Principal = Depends(get_current_admin),
    service: NotificationsService = Depends(svc),
):
    return await service.create(principal.user_id, **payload.model_dump())

@router.post("/notifications/{notification_id}/read", response_model=NotificationOut)
async def mark_read(notification_id: uuid.UUID, service: NotificationsService = Depends(svc)):
    return await service.mark_read(notification_id)
