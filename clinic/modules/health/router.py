import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import select, func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.base import utcnow
from clinic.core.config import settings
from clinic.core.db import get_session
from clinic.modules.auth.models import AdminUser
from clinic.modules.patients.models import Patient
from clinic.modules.appointments.models import Appointment
from clinic.modules.procedures.models import Procedure
from clinic.modules.treatments.models import Treatment
from clinic.modules.qr_tokens.models import QRToken
from clinic.modules.notifications.models import Notification

log = logging.getLogger(__name__)

router = APIRouter()

TABLES = {
    "admin_users": AdminUser,
    "patients": Patient,
    "appointments": Appointment,
    "procedures": Procedure,
    "treatments": Treatment,
    "qr_tokens": QRToken,
    "notifications": Notification,
}

async def _probe(s: AsyncSession, stmt) -> bool:
    try:
        await s.execute(stmt)
        return True
    except SQLAlchemyError as e:
        log.error(f"Health probe failed: {e}")
        await s.rollback()
        return False

@router.get("/health")
async def health(s: AsyncSession = Depends(get_session)):
    database = await _probe(s, text("SELECT 1"))
    tables = {}
    for name, model in TABLES.items():
        tables[name] = database and await _probe(s, select(func.count()).select_from(model))
    services = {"api": True, "database": database, "email": settings.email_configured}
    healthy = all(services.values()) and all(tables.values())
    body = {
        "status": "healthy" if healthy else "degraded",
        "timestamp": utcnow().isoformat(),
        "services": services,
        "tables": tables,
    }
    return JSONResponse(status_code=200 if healthy else 503, content=body)
