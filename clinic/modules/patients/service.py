import uuid
import logging
from decimal import Decimal
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.base import utcnow
from clinic.core.clock import local_today
from clinic.core.errors import ApiError, not_found
from clinic.modules.patients.models import Patient
from clinic.modules.patients.repository import PatientRepository
from clinic.modules.patients.schemas import PatientCreate, PatientUpdate, PatientRegister
from clinic.modules.appointments.models import Appointment
from clinic.modules.treatments.models import Treatment
from clinic.modules.notifications import templates
from clinic.modules.notifications.service import NotificationsService

log = logging.getLogger(__name__)

def full_name(p: Patient) -> str:
    return f"{p.first_name} {p.last_name}"

class PatientService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = PatientRepository(session)
        self.notifications = NotificationsService(session)

    async def _ensure_email_free(self, email: str | None, exclude_id: uuid.UUID | None = None, message: str = "A patient with this email already exists"):
        if email and await self.repo.find_by_email(email, exclude_id):
            raise ApiError(409, message)

    async def _insert(self, **data) -> Patient:
        """Flush a new patient, retrying once when a concurrent insert took the same code."""
        for attempt in (1, 2):
            try:
                return await self.repo.create(**data)
            except IntegrityError:
                await self.session.rollback()
                if attempt == 2:
                    raise ApiError(409, "Could not assign a patient code, please try again")
                log.warning("Patient code collision, retrying with the next code")

    async def get(self, patient_id: uuid.UUID) -> Patient:
        obj = await self.repo.get(patient_id)
        if not obj:
            raise not_found("Patient")
        return obj

    async def list(self, **filters):
        return await self.repo.list(**filters)

    async def create(self, payload: PatientCreate) -> Patient:
        data = payload.model_dump(exclude_unset=True)
        await self._ensure_email_free(data.get("email"))
        obj = await self._insert(registration_status="approved", approved_at=utcnow(), **data)
        await self.session.commit()
        log.info(f"Created patient {obj.patient_code}")
        return obj

    async def update(self, patient_id: uuid.UUID, payload: PatientUpdate) -> Patient:
        obj = await self.get(patient_id)
        data = payload.model_dump()  # full replace; omitted optional fields are cleared
        await self._ensure_email_free(data.get("email"), exclude_id=obj.id)
        await self.repo.update(obj, **data)
        await self.session.commit()
        return obj

    async def delete(self, patient_id: uuid.UUID) -> Patient:
        obj = await self.get(patient_id)
        await self.repo.soft_delete(obj)
        await self.session.commit()
        log.info(f"Soft-deleted patient {obj.patient_code}")
        return obj

    async def stats(self, patient_id: uuid.UUID) -> dict:
        obj = await self.get(patient_id)
        total_treatments = (await self.session.execute(
            select(func.count(Treatment.id)).where(Treatment.patient_id == obj.id)
        )).scalar_one()
        paid = (await self.session.execute(
            select(func.coalesce(func.sum(Treatment.total_cost), 0))
            .where(Treatment.patient_id == obj.id, Treatment.payment_status == "paid")
        )).scalar_one()
        upcoming = (await self.session.execute(
            select(func.count(Appointment.id)).where(
                Appointment.patient_id == obj.id,
                Appointment.deleted_at.is_(None),
                Appointment.appointment_date >= local_today(),
                Appointment.status != "cancelled",
            )
        )).scalar_one()
        return {
            "total_treatments": total_treatments,
            "total_amount_paid": round(float(Decimal(str(paid))), 2),
            "upcoming_appointments": upcoming,
            "patient_since": obj.created_at,
            "last_updated": obj.updated_at,
        }

    # Self-registration

    async def stage_registration(self, payload: PatientRegister, source: str | None = None) -> Patient:
        """Insert a pending patient and its admin notification without committing."""
        data = payload.model_dump(exclude_unset=True)
        data["registration_source"] = source or payload.registration_source
        await self._ensure_email_free(data.get("email"), message="Email already registered")
        obj = await self._insert(registration_status="pending", consent_signed_at=utcnow(), **data)
        await self.notifications.add(
            type="registration_pending",
            title="New patient registration",
            message=f"{full_name(obj)} registered via {obj.registration_source} and is awaiting approval.",
            patient_id=obj.id,
        )
        return obj

    async def send_registration_received(self, obj: Patient) -> None:
        if not obj.email:
            return
        subject, html, text = templates.registration_received(full_name(obj))
        await self.notifications.try_send_email(obj.email, subject, html, text)

    async def register(self, payload: PatientRegister) -> Patient:
        obj = await self.stage_registration(payload)
        await self.session.commit()
        log.info(f"Patient {obj.patient_code} self-registered ({obj.registration_source})")
        await self.send_registration_received(obj)
        return obj

    # Admin review

    async def _pending(self, patient_id: uuid.UUID) -> Patient:
        obj = await self.get(patient_id)
        if obj.registration_status != "pending":
            raise ApiError(400, f"Patient registration is already {obj.registration_status}")
        return obj

    async def approve(self, patient_id: uuid.UUID, admin_id: uuid.UUID) -> Patient:
        obj = await self._pending(patient_id)
        obj.registration_status = "approved"
        obj.approved_at = utcnow()
        obj.approved_by = admin_id
        await self.notifications.add(
            type="registration_approved",
            title="Registration approved",
            message=f"{full_name(obj)} ({obj.patient_code}) was approved.",
            patient_id=obj.id,
        )
        await self.session.commit()
        log.info(f"Approved patient {obj.patient_code}")
        if obj.email:
            subject, html, text = templates.registration_approved(full_name(obj), obj.patient_code)
            await self.notifications.try_send_email(obj.email, subject, html, text)
        return obj

    async def deny(self, patient_id: uuid.UUID, admin_id: uuid.UUID, reason: str) -> Patient:
        obj = await self._pending(patient_id)
        obj.registration_status = "denied"
        obj.denied_at = utcnow()
        obj.denied_by = admin_id
        obj.denial_reason = reason
        await self.notifications.add(
            type="registration_denied",
            title="Registration denied",
            message=f"{full_name(obj)} ({obj.patient_code}) was denied: {reason}",
            patient_id=obj.id,
        )
        await self.session.commit()
        log.info(f"Denied patient {obj.patient_code}")
        if obj.email:
            subject, html, text = templates.registration_denied(full_name(obj), reason)
            await self.notifications.try_send_email(obj.email, subject, html, text)
        return obj
