import uuid
from typing import Sequence
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.modules.medical_history.models import MedicalHistoryField

class MedicalHistoryFieldRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **data) -> MedicalHistoryField:
        obj = MedicalHistoryField(**data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, field_id: uuid.UUID) -> MedicalHistoryField | None:
        res = await self.session.execute(select(MedicalHistoryField).where(MedicalHistoryField.id == field_id))
        return res.scalar_one_or_none()

    async def list(self, active_only: bool = False) -> Sequence[MedicalHistoryField]:
        q = select(MedicalHistoryField)
        if active_only:
            q = q.where(MedicalHistoryField.is_active.is_(True))
        res = await self.session.execute(q.order_by(MedicalHistoryField.field_name.asc()))
        return res.scalars().all()

    async def delete(self, obj: MedicalHistoryField) -> None:
        await self.session.delete(obj)
        await self.session.flush()
