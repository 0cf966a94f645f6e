import uuid
import logging
from datetime import date, timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.clock import local_now, local_today, date_label, time_label
from clinic.core.config import settings
from clinic.core.errors import ApiError, not_found
from clinic.modules.appointments import booking_logic
from clinic.modules.appointments.models import Appointment
from clinic.modules.appointments.repository import AppointmentRepository
from clinic.modules.appointments.schemas import AppointmentCreate, AppointmentUpdate
from clinic.modules.notifications import templates
from clinic.modules.notifications.service import NotificationsService
from clinic.modules.patients.models import Patient
from clinic.modules.patients.repository import PatientRepository
from clinic.platform.ports.email import EmailDeliveryError

log = logging.getLogger(__name__)

CONFLICT = "Appointment time conflicts with existing appointment"

def present(obj: Appointment, patient: Patient | None) -> dict:
    return {
        "id": obj.id,
        "patient_id": obj.patient_id,
        "appointment_date": obj.appointment_date,
        "appointment_time": obj.appointment_time,
        "duration_minutes": obj.duration_minutes,
        "status": obj.status,
        "reason": obj.reason,
        "notes": obj.notes,
        "email_sent": obj.email_sent,
        "created_at": obj.created_at,
        "updated_at": obj.updated_at,
        "patient": patient,
    }

def business_hours() -> dict:
    return {
        "start": settings.BUSINESS_HOURS_START,
        "end": settings.BUSINESS_HOURS_END,
        "slot_duration": settings.SLOT_MINUTES,
        "break_duration": settings.BREAK_MINUTES,
    }

class AppointmentService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = AppointmentRepository(session)
        self.patients = PatientRepository(session)

    async def _patient(self, patient_id: uuid.UUID) -> Patient:
        patient = await self.patients.get(patient_id)
        if not patient:
            raise not_found("Patient")
        return patient

    async def _ensure_free(self, day: date, at, minutes: int, exclude_id: uuid.UUID | None = None):
        wanted = booking_logic.interval(day, at, minutes)
        for other in await self.repo.active_on(day, exclude_id):
            if booking_logic.overlaps(wanted, booking_logic.interval(other.appointment_date, other.appointment_time, other.duration_minutes)):
                log.info(f"Slot {day} {at} ({minutes}m) conflicts with appointment {other.id}")
                raise ApiError(409, CONFLICT)

    async def get(self, appt_id: uuid.UUID) -> tuple[Appointment, Patient | None]:
        obj = await self.repo.get(appt_id)
        if not obj:
            raise not_found("Appointment")
        patients = await self.patients.get_many({obj.patient_id})
        return obj, patients.get(obj.patient_id)

    async def list(self, **filters) -> tuple[list[dict], int]:
        items, total = await self.repo.list(**filters)
        patients = await self.patients.get_many({a.patient_id for a in items})
        return [present(a, patients.get(a.patient_id)) for a in items], total

    async def create(self, payload: AppointmentCreate) -> tuple[Appointment, Patient]:
        patient = await self._patient(payload.patient_id)
        start = booking_logic.start_of(payload.appointment_date, payload.appointment_time)
        lead = settings.MIN_BOOKING_LEAD_MINUTES
        if start < local_now() + timedelta(minutes=lead):
            raise ApiError(400, f"Appointments must be scheduled at least {lead} minutes in advance")
        if payload.status != "cancelled":
            await self._ensure_free(payload.appointment_date, payload.appointment_time, payload.duration_minutes)
        obj = await self.repo.create(**payload.model_dump())
        await self.session.commit()
        log.info(f"Booked appointment {obj.id} for patient {patient.patient_code} on {start}")
        return obj, patient

    async def update(self, appt_id: uuid.UUID, payload: AppointmentUpdate) -> tuple[Appointment, Patient | None]:
        obj = await self.repo.get(appt_id)
        if not obj:
            raise not_found("Appointment")
        data = payload.model_dump(exclude_unset=True)
        # explicit nulls only make sense for the free-text fields
        data = {k: v for k, v in data.items() if v is not None or k in ("reason", "notes")}

        if "patient_id" in data and data["patient_id"] != obj.patient_id:
            await self._patient(data["patient_id"])

        day = data.get("appointment_date", obj.appointment_date)
        at = data.get("appointment_time", obj.appointment_time)
        minutes = data.get("duration_minutes", obj.duration_minutes)
        status = data.get("status", obj.status)

        # only a still-scheduled visit has to lie in the future
        if status == "scheduled" and booking_logic.start_of(day, at) < local_now():
            raise ApiError(400, "Cannot schedule appointments in the past")

        moved = any(k in data for k in ("appointment_date", "appointment_time", "duration_minutes"))
        if status != "cancelled" and (moved or (obj.status == "cancelled" and status != obj.status)):
            await self._ensure_free(day, at, minutes, exclude_id=obj.id)

        for k, v in data.items():
            setattr(obj, k, v)
        await self.session.commit()
        patients = await self.patients.get_many({obj.patient_id})
        return obj, patients.get(obj.patient_id)

    async def cancel(self, appt_id: uuid.UUID) -> Appointment:
        obj = await self.repo.get(appt_id)
        if not obj:
            raise not_found("Appointment")
        obj.status = "cancelled"
        await self.session.commit()
        log.info(f"Cancelled appointment {obj.id}")
        return obj

    async def availability(self, day: date, duration: int) -> dict:
        if day < local_today():
            return {
                "date": day, "duration": duration, "available_slots": [],
                "total_slots": 0, "message": "Cannot book appointments in the past",
            }
        busy = [(a.appointment_time, a.duration_minutes) for a in await self.repo.active_on(day)]
        not_before = None
        if day == local_today():
            not_before = local_now() + timedelta(minutes=settings.MIN_BOOKING_LEAD_MINUTES)
        slots = booking_logic.available_slots(
            day, duration, busy,
            opens=booking_logic.parse_hhmm(settings.BUSINESS_HOURS_START),
            closes=booking_logic.parse_hhmm(settings.BUSINESS_HOURS_END),
            step_minutes=settings.SLOT_MINUTES,
            break_minutes=settings.BREAK_MINUTES,
            not_before=not_before,
        )
        return {
            "date": day, "duration": duration, "available_slots": slots,
            "business_hours": business_hours(), "total_slots": len(slots),
        }

    async def notify(self, appt_id: uuid.UUID) -> str:
        obj, patient = await self.get(appt_id)
        if not patient or not patient.email:
            raise ApiError(400, "Patient does not have an email address")
        subject, html, text = templates.appointment_reminder(
            f"{patient.first_name} {patient.last_name}",
            date_label(obj.appointment_date),
            time_label(obj.appointment_time),
            obj.notes,
        )
        try:
            message_id = await NotificationsService(self.session).send_email(patient.email, subject, html, text)
        except EmailDeliveryError:
            raise ApiError(500, "Failed to send email")
        obj.email_sent = True
        await self.session.commit()
        return message_id
