import uuid
from datetime import date
from typing import Sequence
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.modules.appointments.models import Appointment

class AppointmentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **data) -> Appointment:
        obj = Appointment(**data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, appt_id: uuid.UUID) -> Appointment | None:
        q = select(Appointment).where(Appointment.id == appt_id, Appointment.deleted_at.is_(None))
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def list(
        self, *, start_date: date | None = None, end_date: date | None = None, status: str | None = None,
        patient_id: uuid.UUID | None = None, limit: int = 50, offset: int = 0,
    ) -> tuple[Sequence[Appointment], int]:
        cond = [Appointment.deleted_at.is_(None)]
        if start_date:
            cond.append(Appointment.appointment_date >= start_date)
        if end_date:
            cond.append(Appointment.appointment_date <= end_date)
        if status:
            cond.append(Appointment.status == status)
        if patient_id:
            cond.append(Appointment.patient_id == patient_id)
        total = (await self.session.execute(select(func.count(Appointment.id)).where(*cond))).scalar_one()
        q = (
            select(Appointment).where(*cond)
            .order_by(Appointment.appointment_date.asc(), Appointment.appointment_time.asc())
            .limit(limit).offset(offset)
        )
        res = await self.session.execute(q)
        return res.scalars().all(), total

    async def active_on(self, day: date, exclude_id: uuid.UUID | None = None) -> Sequence[Appointment]:
        """Appointments on ``day`` that occupy the schedule (everything but cancelled)."""
        q = select(Appointment).where(
            Appointment.appointment_date == day,
            Appointment.status != "cancelled",
            Appointment.deleted_at.is_(None),
        )
        if exclude_id:
            q = q.where(Appointment.id != exclude_id)
        res = await self.session.execute(q.order_by(Appointment.appointment_time))
        return res.scalars().all()

    async def scheduled_between(self, first: date, last: date) -> Sequence[Appointment]:
        q = select(Appointment).where(
            Appointment.appointment_date >= first,
            Appointment.appointment_date <= last,
            Appointment.status == "scheduled",
            Appointment.deleted_at.is_(None),
        )
        res = await self.session.execute(q)
        return res.scalars().all()

    async def count_on(self, day: date) -> int:
        q = select(func.count(Appointment.id)).where(
            Appointment.appointment_date == day,
            Appointment.status != "cancelled",
            Appointment.deleted_at.is_(None),
        )
        return (await self.session.execute(q)).scalar_one()
