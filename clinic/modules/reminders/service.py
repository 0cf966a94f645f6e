import uuid
import logging
from datetime import timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.base import utcnow
from clinic.core.clock import local_now, date_label, time_label
from clinic.core.config import settings
from clinic.core.errors import ApiError, not_found
from clinic.modules.appointments import booking_logic
from clinic.modules.appointments.models import Appointment
from clinic.modules.appointments.repository import AppointmentRepository
from clinic.modules.notifications import templates
from clinic.modules.notifications.service import NotificationsService
from clinic.modules.patients.models import Patient
from clinic.modules.patients.repository import PatientRepository
from clinic.modules.reminders.models import ReminderConfig
from clinic.modules.reminders.repository import ReminderRepository
from clinic.modules.reminders.schemas import ReminderConfigIn, ReminderConfigUpdate
from clinic.platform.ports.email import EmailDeliveryError

log = logging.getLogger(__name__)

STATS_WINDOW = timedelta(days=30)

def template_values(appt: Appointment, patient: Patient) -> dict:
    return {
        "patient_name": f"{patient.first_name} {patient.last_name}",
        "appointment_date": date_label(appt.appointment_date),
        "appointment_time": time_label(appt.appointment_time),
        "duration": appt.duration_minutes,
        "reason": appt.reason or "General consultation",
        "patient_id": patient.patient_code,
    }

class ReminderService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = ReminderRepository(session)
        self.appointments = AppointmentRepository(session)
        self.patients = PatientRepository(session)
        self.notifications = NotificationsService(session)

    async def overview(self) -> dict:
        configs = await self.repo.list_configs()
        logs = await self.repo.logs_since(utcnow() - STATS_WINDOW)
        by_type: dict[str, int] = {"24_hour": 0, "day_of": 0}
        for entry in logs:
            if entry.status == "sent":
                by_type[entry.reminder_type] = by_type.get(entry.reminder_type, 0) + 1
        return {
            "configs": configs,
            "statistics": {
                "total_sent": sum(1 for e in logs if e.status == "sent"),
                "total_failed": sum(1 for e in logs if e.status == "failed"),
                "by_type": by_type,
            },
            "email_configured": settings.email_configured,
        }

    async def create_config(self, payload: ReminderConfigIn) -> ReminderConfig:
        if await self.repo.config_by_type(payload.reminder_type):
            raise ApiError(409, f"Configuration for {payload.reminder_type} already exists")
        obj = await self.repo.create_config(**payload.model_dump())
        await self.session.commit()
        return obj

    async def update_config(self, config_id: uuid.UUID, payload: ReminderConfigUpdate) -> ReminderConfig:
        obj = await self.repo.get_config(config_id)
        if not obj:
            raise not_found("Reminder configuration")
        for k, v in payload.model_dump(exclude_unset=True).items():
            if v is not None:
                setattr(obj, k, v)
        await self.session.commit()
        return obj

    async def _deliver(self, config: ReminderConfig, appt: Appointment, patient: Patient, to: str, log_type: str | None = None) -> str:
        log_type = log_type or config.reminder_type
        subject, html, text = templates.reminder(
            config.email_template_subject, config.email_template_body, template_values(appt, patient),
        )
        try:
            message_id = await self.notifications.send_email(to, subject, html, text)
        except EmailDeliveryError as e:
            await self.repo.log(
                appointment_id=appt.id, reminder_type=log_type, status="failed",
                email_address=to, error_message=str(e),
            )
            await self.session.commit()
            raise
        await self.repo.log(
            appointment_id=appt.id, reminder_type=log_type, status="sent",
            email_address=to, provider_message_id=message_id,
        )
        await self.session.commit()
        return message_id

    async def process(self) -> dict:
        """Send every reminder that is due now; safe to call repeatedly."""
        results = {"processed": 0, "sent": 0, "failed": 0, "skipped": 0, "errors": []}
        now = local_now()
        for config in await self.repo.list_configs(enabled_only=True):
            window_end = now + timedelta(hours=config.hours_before)
            window_start = window_end - timedelta(hours=1)
            candidates = await self.appointments.scheduled_between(window_start.date(), window_end.date())
            due = [
                a for a in candidates
                if window_start < booking_logic.start_of(a.appointment_date, a.appointment_time) <= window_end
            ]
            if not due:
                continue
            already = await self.repo.sent_appointment_ids(config.reminder_type, [a.id for a in due])
            patients = await self.patients.get_many({a.patient_id for a in due})
            for appt in due:
                results["processed"] += 1
                patient = patients.get(appt.patient_id)
                if appt.id in already or not patient or not patient.email:
                    results["skipped"] += 1
                    continue
                try:
                    await self._deliver(config, appt, patient, patient.email)
                    results["sent"] += 1
                except EmailDeliveryError as e:
                    results["failed"] += 1
                    results["errors"].append(f"{config.reminder_type} reminder for appointment {appt.id}: {e}")
        log.info(
            f"Reminder run processed={results['processed']} sent={results['sent']} "
            f"failed={results['failed']} skipped={results['skipped']}"
        )
        return results

    async def send_test(self, appointment_id: uuid.UUID, reminder_type: str, test_email: str | None) -> str:
        config = await self.repo.config_by_type(reminder_type)
        if not config:
            raise not_found("Reminder configuration")
        appt = await self.appointments.get(appointment_id)
        if not appt:
            raise not_found("Appointment")
        patient = await self.patients.get(appt.patient_id)
        if not patient:
            raise not_found("Patient")
        to = test_email or patient.email
        if not to:
            raise ApiError(400, "No email address available for test reminder")
        try:
            # test sends never count as the real reminder
            return await self._deliver(config, appt, patient, to, log_type=f"test_{reminder_type}")
        except EmailDeliveryError:
            raise ApiError(500, "Failed to send email")
