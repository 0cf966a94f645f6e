from fastapi import APIRouter, Depends
from clinic.core.security import get_current_admin
from clinic.modules.auth.router import router as auth_router
from clinic.modules.patients.router import router as patients_router, public_router as patients_public_router
from clinic.modules.qr_tokens.router import router as qr_tokens_router, public_router as qr_public_router
from clinic.modules.appointments.router import router as appointments_router
from clinic.modules.procedures.router import router as procedures_router
from clinic.modules.treatments.router import router as treatments_router
from clinic.modules.notifications.router import router as notifications_router
from clinic.modules.reminders.router import router as reminders_router, scheduler_router as reminders_scheduler_router
from clinic.modules.medical_history.router import router as medical_history_router
from clinic.modules.dashboard.router import router as dashboard_router
from clinic.modules.health.router import router as health_router

admin_only = [Depends(get_current_admin)]

api_router = APIRouter()

# Public
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(patients_public_router, prefix="/patients", tags=["patients"])
api_router.include_router(qr_public_router, tags=["qr-tokens"])
# admin session or X-Cron-Secret
api_router.include_router(reminders_scheduler_router, prefix="/reminders", tags=["reminders"])

# Admin
api_router.include_router(patients_router, prefix="/patients", tags=["patients"], dependencies=admin_only)
api_router.include_router(qr_tokens_router, tags=["qr-tokens"], dependencies=admin_only)
api_router.include_router(appointments_router, prefix="/appointments", tags=["appointments"], dependencies=admin_only)
api_router.include_router(procedures_router, prefix="/procedures", tags=["procedures"], dependencies=admin_only)
api_router.include_router(treatments_router, prefix="/treatments", tags=["treatments"], dependencies=admin_only)
api_router.include_router(notifications_router, tags=["notifications"], dependencies=admin_only)
api_router.include_router(reminders_router, prefix="/reminders", tags=["reminders"], dependencies=admin_only)
api_router.include_router(medical_history_router, prefix="/medical-history-fields", tags=["medical-history"], dependencies=admin_only)
api_router.include_router(dashboard_router, prefix="/dashboard", tags=["dashboard"], dependencies=admin_only)
