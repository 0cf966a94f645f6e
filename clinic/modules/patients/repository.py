import re
import uuid
from typing import Sequence
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.base import utcnow
from clinic.modules.patients.models import Patient

_CODE_DIGITS = re.compile(r"(\d+)$")

SORTABLE = {
    "created_at": Patient.created_at,
    "first_name": Patient.first_name,
    "last_name": Patient.last_name,
}

class PatientRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def next_code(self) -> str:
        # longest then highest code, so P1000 sorts after P999
        q = (
            select(Patient.patient_code)
            .order_by(func.length(Patient.patient_code).desc(), Patient.patient_code.desc())
            .limit(1)
        )
        last = (await self.session.execute(q)).scalar_one_or_none()
        n = 0
        if last:
            m = _CODE_DIGITS.search(last)
            n = int(m.group(1)) if m else 0
        return f"P{n + 1:03d}"

    async def create(self, **data) -> Patient:
        obj = Patient(patient_code=await self.next_code(), **data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, patient_id: uuid.UUID) -> Patient | None:
        q = select(Patient).where(Patient.id == patient_id, Patient.deleted_at.is_(None))
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def get_many(self, ids: set[uuid.UUID]) -> dict[uuid.UUID, Patient]:
        if not ids:
            return {}
        res = await self.session.execute(select(Patient).where(Patient.id.in_(ids)))
        return {p.id: p for p in res.scalars().all()}

    async def find_by_email(self, email: str, exclude_id: uuid.UUID | None = None) -> Patient | None:
        q = select(Patient).where(func.lower(Patient.email) == email.lower(), Patient.deleted_at.is_(None))
        if exclude_id:
            q = q.where(Patient.id != exclude_id)
        res = await self.session.execute(q.limit(1))
        return res.scalar_one_or_none()

    async def list(
        self, *, search: str | None = None, registration_status: str | None = None,
        sort_by: str = "created_at", sort_order: str = "desc", limit: int = 20, offset: int = 0,
    ) -> tuple[Sequence[Patient], int]:
        cond = [Patient.deleted_at.is_(None)]
        if search:
            like = f"%{search.strip()}%"
            cond.append(or_(
                Patient.first_name.ilike(like),
                Patient.last_name.ilike(like),
                Patient.patient_code.ilike(like),
                Patient.phone.ilike(like),
            ))
        if registration_status:
            cond.append(Patient.registration_status == registration_status)

        total = (await self.session.execute(select(func.count(Patient.id)).where(*cond))).scalar_one()
        col = SORTABLE.get(sort_by, Patient.created_at)
        q = (
            select(Patient).where(*cond)
            .order_by(col.asc() if sort_order == "asc" else col.desc(), Patient.patient_code.asc())
            .limit(limit).offset(offset)
        )
        res = await self.session.execute(q)
        return res.scalars().all(), total

    async def update(self, obj: Patient, **data) -> Patient:
        for k, v in data.items():
            setattr(obj, k, v)
        await self.session.flush()
        return obj

    async def soft_delete(self, obj: Patient) -> None:
        obj.deleted_at = utcnow()
        await self.session.flush()

    async def count(self, registration_status: str | None = None) -> int:
        q = select(func.count(Patient.id)).where(Patient.deleted_at.is_(None))
        if registration_status:
            q = q.where(Patient.registration_status == registration_status)
        return (await self.session.execute(q)).scalar_one()
