import uuid
import logging
from datetime import timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.base import utcnow, as_utc
from clinic.core.config import settings
from clinic.core.errors import ApiError, not_found
from clinic.modules.patients.models import Patient
from clinic.modules.patients.schemas import PatientRegister
from clinic.modules.patients.service import PatientService
from clinic.modules.qr_tokens.models import QRToken
from clinic.modules.qr_tokens.repository import QRTokenRepository

log = logging.getLogger(__name__)

NOT_FOUND = "Token not found"
ALREADY_USED = "Token has already been used"
EXPIRED = "Token has expired"

def is_expired(obj: QRToken) -> bool:
    expires_at = as_utc(obj.expires_at)
    return expires_at is not None and expires_at <= utcnow()

def is_used(obj: QRToken) -> bool:
    return not obj.reusable and obj.used

def token_status(obj: QRToken) -> str:
    if is_used(obj):
        return "used"
    if is_expired(obj):
        return "expired"
    return "active"

def rejection_reason(obj: QRToken | None) -> str | None:
    if obj is None:
        return NOT_FOUND
    if is_used(obj):
        return ALREADY_USED
    if is_expired(obj):
        return EXPIRED
    return None

def registration_url(obj: QRToken) -> str:
    base = f"{settings.SITE_URL.rstrip('/')}/patient-registration"
    if obj.qr_type == "generic":
        return base
    return f"{base}/{obj.token}"

def present(obj: QRToken) -> dict:
    return {
        "id": obj.id,
        "token": obj.token,
        "qr_type": obj.qr_type,
        "reusable": obj.reusable,
        "used": obj.used,
        "usage_count": obj.usage_count,
        "expires_at": obj.expires_at,
        "note": obj.note,
        "created_by": obj.created_by,
        "created_at": obj.created_at,
        "updated_at": obj.updated_at,
        "registration_url": registration_url(obj),
        "is_expired": is_expired(obj),
        "is_used": is_used(obj),
        "status": token_status(obj),
    }

class QRTokenService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = QRTokenRepository(session)

    async def create(self, admin_id: uuid.UUID, *, qr_type: str, expiration_hours: int, note: str | None) -> QRToken:
        generic = qr_type == "generic"
        obj = await self.repo.create(
            token=str(uuid.uuid4()),
            qr_type=qr_type,
            reusable=qr_type in ("generic", "reusable"),
            expires_at=None if generic else utcnow() + timedelta(hours=expiration_hours),
            note=note,
            created_by=admin_id,
        )
        await self.session.commit()
        log.info(f"Issued {qr_type} QR token {obj.id}")
        return obj

    async def get(self, token_id: uuid.UUID) -> QRToken:
        obj = await self.repo.get(token_id)
        if not obj:
            raise not_found("QR token")
        return obj

    async def list(self, **filters):
        return await self.repo.list(**filters)

    async def delete(self, token_id: uuid.UUID) -> QRToken:
        obj = await self.get(token_id)
        await self.repo.soft_delete(obj)
        await self.session.commit()
        return obj

    async def validate(self, token: str) -> dict:
        obj = await self.repo.get_by_token(token)
        reason = rejection_reason(obj)
        if reason:
            return {"valid": False, "reason": reason}
        return {
            "valid": True,
            "token": {
                "id": obj.id,
                "expires_at": obj.expires_at,
                "created_at": obj.created_at,
                "reusable": obj.reusable,
                "qr_type": obj.qr_type,
                "usage_count": obj.usage_count,
            },
        }

    async def register(self, token: str, patient_data: PatientRegister) -> Patient:
        obj = await self.repo.get_by_token(token)
        reason = rejection_reason(obj)
        if reason:
            raise ApiError(400, reason)

        # captured up front since a rollback expires loaded rows
        token_id, reusable = obj.id, obj.reusable
        patients = PatientService(self.session)
        patient = await patients.stage_registration(patient_data, source="qr-token")
        if not await self.repo.consume(token_id, reusable):
            await self.session.rollback()
            log.info(f"QR token {token_id} was consumed concurrently")
            raise ApiError(400, EXPIRED if reusable else ALREADY_USED)
        await self.session.commit()
        log.info(f"Patient {patient.patient_code} registered with QR token {token_id}")
        await patients.send_registration_received(patient)
        return patient
