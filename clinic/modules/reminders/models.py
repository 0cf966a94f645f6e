import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Boolean, Integer, TIMESTAMP, ForeignKey
from clinic.core.base import Base, TimestampedMixin, utcnow

class ReminderConfig(Base, TimestampedMixin):
    reminder_type: Mapped[str] = mapped_column(String(16), unique=True)  # 24_hour | day_of | custom
    hours_before: Mapped[int] = mapped_column(Integer)
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    email_template_subject: Mapped[str] = mapped_column(String(200))
    email_template_body: Mapped[str] = mapped_column(Text)

class ReminderLog(Base, TimestampedMixin):
    appointment_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("appointment.id"), index=True)
    reminder_type: Mapped[str] = mapped_column(String(16))
    status: Mapped[str] = mapped_column(String(16))  # sent | failed
    email_address: Mapped[str | None] = mapped_column(String(320), nullable=True)
    provider_message_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    sent_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow)
