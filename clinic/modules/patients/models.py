import uuid
from datetime import date, datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Date, JSON, TIMESTAMP, ForeignKey
from clinic.core.base import Base, TimestampedMixin, SoftDeleteMixin

class Patient(Base, TimestampedMixin, SoftDeleteMixin):
    patient_code: Mapped[str] = mapped_column(String(16), unique=True, index=True)  # P001, P002, ...
    first_name: Mapped[str] = mapped_column(String(100))
    last_name: Mapped[str] = mapped_column(String(100))
    middle_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(20), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True, index=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    emergency_contact_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    emergency_contact_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    # answers keyed by medical history field name
    medical_history: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Registration lifecycle
    registration_status: Mapped[str] = mapped_column(String(16), default="approved")  # pending | approved | denied
    registration_source: Mapped[str] = mapped_column(String(16), default="manual")  # manual | qr-token | online | referral
    consent_signed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    approved_by: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("adminuser.id"), nullable=True)
    denied_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    denied_by: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("adminuser.id"), nullable=True)
    denial_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
