import uuid
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Sequence
from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.modules.treatments.models import Treatment, TreatmentProcedure

class TreatmentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, lines: list[dict], **data) -> Treatment:
        obj = Treatment(**data)
        self.session.add(obj)
        await self.session.flush()
        await self.add_lines(obj.id, lines)
        return obj

    async def add_lines(self, treatment_id: uuid.UUID, lines: list[dict]) -> None:
        self.session.add_all([TreatmentProcedure(treatment_id=treatment_id, **line) for line in lines])
        await self.session.flush()

    async def remove_lines(self, treatment_id: uuid.UUID) -> None:
        await self.session.execute(delete(TreatmentProcedure).where(TreatmentProcedure.treatment_id == treatment_id))

    async def get(self, treatment_id: uuid.UUID) -> Treatment | None:
        res = await self.session.execute(select(Treatment).where(Treatment.id == treatment_id))
        return res.scalar_one_or_none()

    async def lines_for(self, treatment_ids: list[uuid.UUID]) -> dict[uuid.UUID, list[TreatmentProcedure]]:
        out: dict[uuid.UUID, list[TreatmentProcedure]] = defaultdict(list)
        if not treatment_ids:
            return out
        q = (
            select(TreatmentProcedure)
            .where(TreatmentProcedure.treatment_id.in_(treatment_ids))
            .order_by(TreatmentProcedure.created_at)
        )
        for line in (await self.session.execute(q)).scalars().all():
            out[line.treatment_id].append(line)
        return out

    async def list(
        self, *, start_date: date | None = None, end_date: date | None = None, payment_status: str | None = None,
        patient_id: uuid.UUID | None = None, limit: int = 50, offset: int = 0,
    ) -> tuple[Sequence[Treatment], int]:
        cond = []
        if start_date:
            cond.append(Treatment.treatment_date >= start_date)
        if end_date:
            cond.append(Treatment.treatment_date <= end_date)
        if payment_status:
            cond.append(Treatment.payment_status == payment_status)
        if patient_id:
            cond.append(Treatment.patient_id == patient_id)
        total = (await self.session.execute(select(func.count(Treatment.id)).where(*cond))).scalar_one()
        q = (
            select(Treatment).where(*cond)
            .order_by(Treatment.treatment_date.desc(), Treatment.created_at.desc())
            .limit(limit).offset(offset)
        )
        res = await self.session.execute(q)
        return res.scalars().all(), total

    async def revenue_between(self, first: date, last: date) -> Decimal:
        q = select(func.coalesce(func.sum(Treatment.total_cost), 0)).where(
            Treatment.treatment_date >= first, Treatment.treatment_date <= last,
        )
        return Decimal(str((await self.session.execute(q)).scalar_one()))

    async def delete(self, obj: Treatment) -> None:
        await self.remove_lines(obj.id)
        await self.session.delete(obj)
        await self.session.flush()
