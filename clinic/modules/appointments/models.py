import uuid
from datetime import date, time
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Boolean, Integer, Date, Time, ForeignKey
from clinic.core.base import Base, TimestampedMixin, SoftDeleteMixin

class Appointment(Base, TimestampedMixin, SoftDeleteMixin):
    patient_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("patient.id"), index=True)

    # Wall-clock slot in the clinic timezone
    appointment_date: Mapped[date] = mapped_column(Date, index=True)
    appointment_time: Mapped[time] = mapped_column(Time)
    duration_minutes: Mapped[int] = mapped_column(Integer, default=60)

    status: Mapped[str] = mapped_column(String(16), default="scheduled")  # scheduled, completed, cancelled, no-show
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    email_sent: Mapped[bool] = mapped_column(Boolean, default=False)
