import uuid
from typing import Sequence
from sqlalchemy import select, func, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.modules.notifications.models import Notification, OutboundMessage

class NotificationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **data) -> Notification:
        obj = Notification(**data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, notification_id: uuid.UUID) -> Notification | None:
        res = await self.session.execute(select(Notification).where(Notification.id == notification_id))
        return res.scalar_one_or_none()

    def _visible_to(self, user_id: uuid.UUID):
        return or_(Notification.user_id == user_id, Notification.user_id.is_(None))

    async def list_for(self, user_id: uuid.UUID, limit: int = 50) -> Sequence[Notification]:
        q = (
            select(Notification)
            .where(self._visible_to(user_id))
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        res = await self.session.execute(q)
        return res.scalars().all()

    async def unread_count(self, user_id: uuid.UUID) -> int:
        q = select(func.count(Notification.id)).where(and_(self._visible_to(user_id), Notification.is_read.is_(False)))
        return (await self.session.execute(q)).scalar_one()


class OutboundMessageRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **data) -> OutboundMessage:
        obj = OutboundMessage(**data)
        self.session.add(obj)
        await self.session.flush()
        return obj
