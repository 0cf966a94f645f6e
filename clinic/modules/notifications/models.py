import uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Boolean, ForeignKey
from clinic.core.base import Base, TimestampedMixin

class Notification(Base, TimestampedMixin):
    type: Mapped[str] = mapped_column(String(48))  # registration_pending, registration_approved, registration_denied, ...
    title: Mapped[str] = mapped_column(String(200))
    message: Mapped[str] = mapped_column(Text)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    # null user_id means clinic-wide
    user_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("adminuser.id"), nullable=True)
    patient_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("patient.id"), nullable=True)

class OutboundMessage(Base, TimestampedMixin):
    channel: Mapped[str] = mapped_column(String(16), default="email")
    to: Mapped[str] = mapped_column(String(320))
    subject: Mapped[str | None] = mapped_column(String(200), nullable=True)
    body: Mapped[str] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(16), default="queued")  # queued | sent | failed
    provider_message_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
