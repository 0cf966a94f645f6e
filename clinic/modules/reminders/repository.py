import uuid
from datetime import datetime
from typing import Sequence
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.modules.reminders.models import ReminderConfig, ReminderLog

class ReminderRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_config(self, **data) -> ReminderConfig:
        obj = ReminderConfig(**data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get_config(self, config_id: uuid.UUID) -> ReminderConfig | None:
        res = await self.session.execute(select(ReminderConfig).where(ReminderConfig.id == config_id))
        return res.scalar_one_or_none()

    async def config_by_type(self, reminder_type: str) -> ReminderConfig | None:
        res = await self.session.execute(select(ReminderConfig).where(ReminderConfig.reminder_type == reminder_type))
        return res.scalar_one_or_none()

    async def list_configs(self, enabled_only: bool = False) -> Sequence[ReminderConfig]:
        q = select(ReminderConfig)
        if enabled_only:
            q = q.where(ReminderConfig.is_enabled.is_(True))
        res = await self.session.execute(q.order_by(ReminderConfig.hours_before.asc()))
        return res.scalars().all()

    async def log(self, **data) -> ReminderLog:
        obj = ReminderLog(**data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def sent_appointment_ids(self, reminder_type: str, appointment_ids: list[uuid.UUID]) -> set[uuid.UUID]:
        if not appointment_ids:
            return set()
        q = select(ReminderLog.appointment_id).where(
            ReminderLog.reminder_type == reminder_type,
            ReminderLog.status == "sent",
            ReminderLog.appointment_id.in_(appointment_ids),
        )
        return set((await self.session.execute(q)).scalars().all())

    async def logs_since(self, since: datetime) -> Sequence[ReminderLog]:
        res = await self.session.execute(select(ReminderLog).where(ReminderLog.sent_at >= since))
        return res.scalars().all()
