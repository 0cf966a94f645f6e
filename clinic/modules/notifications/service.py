import uuid
import logging
from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.errors import not_found
from clinic.modules.notifications.models import Notification, OutboundMessage
from clinic.modules.notifications.repository import NotificationRepository, OutboundMessageRepository
from clinic.platform.ports.email import EmailDeliveryError
from clinic.platform.provider_registry import registry

log = logging.getLogger(__name__)

class NotificationsService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = NotificationRepository(session)
        self.outbound = OutboundMessageRepository(session)

    async def add(self, *, type: str, title: str, message: str,
                  user_id: uuid.UUID | None = None, patient_id: uuid.UUID | None = None) -> Notification:
        # joins the caller's transaction
        return await self.repo.create(type=type, title=title, message=message, user_id=user_id, patient_id=patient_id)

    async def create(self, user_id: uuid.UUID, *, type: str, title: str, message: str) -> Notification:
        obj = await self.add(type=type, title=title, message=message, user_id=user_id)
        await self.session.commit()
        return obj

    async def list_for(self, user_id: uuid.UUID, limit: int = 50) -> tuple[Sequence[Notification], int]:
        items = await self.repo.list_for(user_id, limit)
        unread = await self.repo.unread_count(user_id)
        return items, unread

    async def mark_read(self, notification_id: uuid.UUID) -> Notification:
        obj = await self.repo.get(notification_id)
        if not obj:
            raise not_found("Notification")
        obj.is_read = True
        await self.session.commit()
        return obj

    async def send_email(self, to: str, subject: str, html: str, text: str | None = None) -> str:
        """Deliver through the configured provider and log the attempt.

        Raises ``EmailDeliveryError`` after recording the failure.
        """
        msg: OutboundMessage = await self.outbound.create(channel="email", to=to, subject=subject, body=html, status="queued")
        try:
            message_id = await registry.email().send(to, subject, html, text)
        except EmailDeliveryError as e:
            msg.status = "failed"
            msg.error = str(e)
            await self.session.commit()
            log.warning(f"Email to {to} failed: {e}")
            raise
        msg.status = "sent"
        msg.provider_message_id = message_id
        await self.session.commit()
        log.info(f"Email '{subject}' sent to {to} id={message_id}")
        return message_id

    async def try_send_email(self, to: str, subject: str, html: str, text: str | None = None) -> str | None:
        """Like ``send_email`` but failures are only logged."""
        try:
            return await self.send_email(to, subject, html, text)
        except EmailDeliveryError:
            return None
