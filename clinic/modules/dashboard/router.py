import calendar
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.base import utcnow
from clinic.core.clock import local_today
from clinic.core.config import settings
from clinic.core.db import get_session
from clinic.modules.appointments.repository import AppointmentRepository
from clinic.modules.patients.repository import PatientRepository
from clinic.modules.procedures.repository import ProcedureRepository
from clinic.modules.treatments.repository import TreatmentRepository

router = APIRouter()

def progress(value: float, target: float) -> int:
    if target <= 0:
        return 0
    return min(round(value / target * 100), 100)

@router.get("/stats")
async def dashboard_stats(s: AsyncSession = Depends(get_session)):
    today = local_today()
    month_start = today.replace(day=1)
    month_end = today.replace(day=calendar.monthrange(today.year, today.month)[1])

    patients = PatientRepository(s)
    total_patients = await patients.count()
    pending = await patients.count(registration_status="pending")
    today_appointments = await AppointmentRepository(s).count_on(today)
    revenue = float(await TreatmentRepository(s).revenue_between(month_start, month_end))
    active_procedures = await ProcedureRepository(s).count_active()

    return {
        "total_patients": total_patients,
        "today_appointments": today_appointments,
        "monthly_revenue": round(revenue, 2),
        "active_procedures": active_procedures,
        "pending_registrations": pending,
        "progress": {
            "patients": progress(total_patients, settings.TARGET_PATIENTS),
            "daily_schedule": progress(today_appointments, settings.TARGET_DAILY_SLOTS),
            "monthly_revenue": progress(revenue, settings.TARGET_MONTHLY_REVENUE),
            "procedures": 100 if active_procedures > 0 else 0,
        },
        "targets": {
            "patients": settings.TARGET_PATIENTS,
            "daily_slots": settings.TARGET_DAILY_SLOTS,
            "monthly_revenue": settings.TARGET_MONTHLY_REVENUE,
        },
        "metadata": {
            "current_date": today.isoformat(),
            "current_month": today.strftime("%Y-%m"),
            "last_updated": utcnow().isoformat(),
        },
    }
